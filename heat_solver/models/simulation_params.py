"""
Material, time stepping and output parameter models
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Material(BaseModel):
	"""Isotropic thermal material. Immutable once parsed."""
	model_config = ConfigDict(frozen=True, populate_by_name=True)

	set_name: Optional[str] = Field(default=None, alias="set")
	kappa: float = Field(default=1.0, gt=0.0)  # thermal conductivity
	rho: float = Field(default=1.0, gt=0.0)  # density
	C: float = Field(default=1.0, gt=0.0)  # specific heat

	@property
	def heat_capacity(self) -> float:
		return self.rho * self.C


class TimeParameters(BaseModel):
	"""Time stepping window"""
	start: float = 0.0
	end: float = 1.0
	dt: float = Field(default=0.1, gt=0.0)


class OutputParameters(BaseModel):
	"""Result persistence settings"""
	save_interval: int = Field(default=1, ge=1)
	points: List[List[float]] = Field(default_factory=list)
	points_file: str = ""
	field_file: str = ""
	restart_interval: int = Field(default=0, ge=0)
