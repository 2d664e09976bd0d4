"""
Problem description data models.

Mirrors the sections of the JSON input document: geometry, boundary
conditions, material block, heat equation block, time stepping and output.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .simulation_params import Material, TimeParameters, OutputParameters

Expression = Union[float, str, List[str]]


class PropertyType(str, Enum):
	"""Classification of a property code"""
	UNDEFINED = "undefined"
	MATERIAL = "material"
	DIRICHLET = "dirichlet"
	NEUMANN = "neumann"
	NEUMANN_GENERIC = "neumann_generic"
	ROBIN = "robin"


BOUNDARY_CONDITION_TYPES = (
	PropertyType.DIRICHLET,
	PropertyType.NEUMANN,
	PropertyType.NEUMANN_GENERIC,
	PropertyType.ROBIN,
)


class BoundaryCondition(BaseModel):
	"""One boundary condition bound to a topology set through its property code"""
	model_config = ConfigDict(populate_by_name=True)

	set_name: str = Field(alias="set")
	type: PropertyType
	code: int = Field(gt=0)
	value: Optional[float] = None
	expression: Optional[Union[str, List[str]]] = None

	@field_validator("type")
	@classmethod
	def _boundary_type_only(cls, value: PropertyType) -> PropertyType:
		if value not in BOUNDARY_CONDITION_TYPES:
			raise ValueError(f"'{value.value}' is not a boundary condition type")
		return value

	def function_spec(self) -> Optional[Expression]:
		"""Return the expression if given, else the constant value."""
		if self.expression is not None:
			return self.expression
		return self.value


class AnalyticalSolutionConfig(BaseModel):
	"""Analytical reference solution (anasol)"""
	primary: Optional[str] = None
	secondary: Optional[Union[str, List[str]]] = None
	code: int = 0


class BoundaryQuantityConfig(BaseModel):
	"""A heatflux or storedenergy request"""
	model_config = ConfigDict(populate_by_name=True)

	set_name: str = Field(default="", alias="set")
	file: str = ""
	stride: int = 1
	code: int = 0


class EnvironmentProperties(BaseModel):
	"""Environment coupling parameters for the weak Dirichlet condition"""
	T: float = 273.5
	alpha: float = 1.0


class SourceConfig(BaseModel):
	"""Source term of the heat equation"""
	type: str = "expression"
	expression: Optional[str] = None


class HeatEquationSection(BaseModel):
	"""The heat equation block"""
	anasol: Optional[AnalyticalSolutionConfig] = None
	heatflux: List[BoundaryQuantityConfig] = Field(default_factory=list)
	storedenergy: List[BoundaryQuantityConfig] = Field(default_factory=list)
	environmentproperties: Optional[EnvironmentProperties] = None
	source: Optional[SourceConfig] = None
	initial_temperature: Optional[Union[float, str]] = None


class MaterialSection(BaseModel):
	"""The material block; materials are registered in declaration order"""
	isotropic: List[Material] = Field(default_factory=list)


class TopologySetConfig(BaseModel):
	"""Explicit topology set: mesh entity dimension and the tags that make it up"""
	dim: int = Field(ge=0, le=3)
	tags: List[int] = Field(default_factory=list)


class GeometryConfig(BaseModel):
	"""Model geometry handed to the engine"""
	type: Literal["rectangle", "box", "msh"] = "rectangle"
	origin: List[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0])
	size: List[float] = Field(default_factory=lambda: [1.0, 1.0, 1.0])
	elements: List[int] = Field(default_factory=lambda: [8, 8, 8])
	mesh_file: Optional[str] = None
	degree: int = Field(default=1, ge=1, le=3)
	topology_sets: Dict[str, TopologySetConfig] = Field(default_factory=dict)


class ProblemConfig(BaseModel):
	"""Complete input document"""
	model_config = ConfigDict(extra="allow")

	geometry: GeometryConfig = Field(default_factory=GeometryConfig)
	boundary_conditions: List[BoundaryCondition] = Field(default_factory=list)
	thermoelasticity: Optional[MaterialSection] = None
	heatequation: Optional[HeatEquationSection] = None
	timestepping: TimeParameters = Field(default_factory=TimeParameters)
	output: OutputParameters = Field(default_factory=OutputParameters)

	def heat_section(self, context: str = "heatequation") -> Optional[HeatEquationSection]:
		"""Return the heat equation block for an input context (``heatequation`` or ``heatequation-<n>``)."""
		if context == "heatequation":
			return self.heatequation
		raw: Any = (self.model_extra or {}).get(context)
		if raw is None:
			return None
		return HeatEquationSection.model_validate(raw)
