"""
Governing integrands of the heat equation.

An integrand knows the physics of a region (material, flux, source, time
discretization) and hands its element terms to an engine supplied
FormBuilder. The property resolver only ever deals with the Integrand
interface.
"""

import logging
from abc import ABC
from typing import TYPE_CHECKING, Optional

from .functions import ConstantFunction, ScalarFunction
from .models import Material
from .time_integration import BDF

if TYPE_CHECKING:
	from .engine import FormBuilder
	from .properties import Property
	from .time_step import TimeStep

logger = logging.getLogger(__name__)


class Integrand(ABC):
	"""Capability interface: material binding, flux binding and assembly contributions"""

	def __init__(self, dimension: int = 3):
		self.dimension = dimension
		self.material: Optional[Material] = None
		self.flux: Optional[ScalarFunction] = None

	def set_material(self, material: Material) -> None:
		self.material = material

	def set_flux(self, func: Optional[ScalarFunction]) -> None:
		self.flux = func

	def assemble_interior(self, builder: "FormBuilder", region: "Property", time_step: "TimeStep") -> None:
		"""Contribute interior terms for a material region."""

	def assemble_boundary(self, builder: "FormBuilder", region: "Property", time_step: "TimeStep") -> None:
		"""Contribute boundary terms for a Neumann type region."""


class HeatEquationIntegrand(Integrand):
	"""Primary operator: rho*C*du/dt - div(kappa grad u) = f with BDF time discretization"""

	def __init__(self, dimension: int = 3, order: int = 2):
		super().__init__(dimension)
		self.bdf = BDF(order)
		self.source: Optional[ScalarFunction] = None
		self.initial_temperature: Optional[ScalarFunction] = None

	@property
	def order(self) -> int:
		return self.bdf.order

	def set_source(self, func: Optional[ScalarFunction]) -> None:
		self.source = func

	def set_initial_temperature(self, func: Optional[ScalarFunction]) -> None:
		self.initial_temperature = func

	def advance_step(self) -> None:
		self.bdf.advance_step()

	def _require_material(self) -> Material:
		if self.material is None:
			raise RuntimeError("No material bound to the heat equation integrand")
		return self.material

	def assemble_interior(self, builder, region, time_step) -> None:
		mat = self._require_material()
		coeffs = self.bdf.coefficients()
		rho_c = mat.heat_capacity
		builder.add_mass(region, rho_c * coeffs[0] / time_step.dt)
		builder.add_diffusion(region, mat.kappa)
		# level 1 holds u^n, level 2 holds u^{n-1}
		for level, coeff in enumerate(coeffs[1:], start=1):
			builder.add_history_load(region, -rho_c * coeff / time_step.dt, level)
		if self.source is not None:
			builder.add_source(region, self.source, time_step.time)

	def assemble_boundary(self, builder, region, time_step) -> None:
		if self.flux is None:
			logger.debug(f"No flux bound for region {region.pindx}, skipping boundary terms")
			return
		builder.add_boundary_load(region, self.flux, time_step.time)


class WeakDirichletIntegrand(Integrand):
	"""
	Weak Dirichlet (Robin) coupling to the environment:
	kappa dT/dn = alpha * (T_env - T) on the boundary region.

	A bound flux function replaces the environment temperature as target value.
	"""

	def __init__(self, dimension: int = 3):
		super().__init__(dimension)
		self.env_temperature = 273.5
		self.env_conductivity = 1.0

	def set_env_temperature(self, value: float) -> None:
		self.env_temperature = float(value)

	def set_env_conductivity(self, value: float) -> None:
		self.env_conductivity = float(value)

	def target(self) -> ScalarFunction:
		if self.flux is not None:
			return self.flux
		return ConstantFunction(self.env_temperature)

	def assemble_boundary(self, builder, region, time_step) -> None:
		alpha = self.env_conductivity
		builder.add_boundary_mass(region, alpha)
		builder.add_boundary_load(region, self.target(), time_step.time, scale=alpha)
