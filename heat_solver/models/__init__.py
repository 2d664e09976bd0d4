"""
Input data models for the heat equation driver
"""

from .simulation_params import Material, TimeParameters, OutputParameters
from .pde_config import (
	PropertyType,
	BoundaryCondition,
	AnalyticalSolutionConfig,
	BoundaryQuantityConfig,
	EnvironmentProperties,
	SourceConfig,
	HeatEquationSection,
	MaterialSection,
	TopologySetConfig,
	GeometryConfig,
	ProblemConfig,
)

__all__ = [
	"Material",
	"TimeParameters",
	"OutputParameters",
	"PropertyType",
	"BoundaryCondition",
	"AnalyticalSolutionConfig",
	"BoundaryQuantityConfig",
	"EnvironmentProperties",
	"SourceConfig",
	"HeatEquationSection",
	"MaterialSection",
	"TopologySetConfig",
	"GeometryConfig",
	"ProblemConfig",
]
