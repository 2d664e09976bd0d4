"""
FEniCS Backend Module
DOLFINx implementation of the finite element engine used by the heat equation driver
"""

import logging

try:
	from .solver_core import DolfinxEngine
	FENICS_AVAILABLE = True
except ImportError as e:
	logging.getLogger(__name__).debug(f"FEniCS backend components not available: {e}")
	DolfinxEngine = None
	FENICS_AVAILABLE = False

__all__ = ['DolfinxEngine', 'FENICS_AVAILABLE']
