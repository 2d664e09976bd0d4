"""
Heat equation time stepping driver
Property coupling, solution history and boundary integral reporting on top
of an external finite element engine
"""

from .driver import HeatEquationDriver, DriverState
from .engine import FEEngine, FormBuilder
from .exceptions import (
	HeatSolverError,
	ConfigurationError,
	ModelReadError,
	PreprocessingError,
	SolveError,
	OutputError,
)
from .time_integration import Method

__all__ = [
	"HeatEquationDriver",
	"DriverState",
	"FEEngine",
	"FormBuilder",
	"HeatSolverError",
	"ConfigurationError",
	"ModelReadError",
	"PreprocessingError",
	"SolveError",
	"OutputError",
	"Method",
]
