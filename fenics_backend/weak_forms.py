"""
UFL weak form assembly from integrand contributions
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from dolfinx import fem
from petsc4py import PETSc
import basix.ufl
import ufl

from heat_solver.engine import FormBuilder
from heat_solver.functions import ScalarFunction

logger = logging.getLogger(__name__)
ScalarType = PETSc.ScalarType


class UflFormBuilder(FormBuilder):
	"""
	Collects bilinear and linear form terms for one time level.

	region_tags maps a region to the tuple of mesh tags it covers (None for
	the whole domain / boundary). history maps a level to the Function that
	holds it.
	"""

	def __init__(self, V, cell_tags, facet_tags, region_tags: Callable, history: Dict[int, fem.Function],
			metadata: Optional[Dict] = None):
		self.V = V
		self.mesh = V.mesh
		self.cell_tags = cell_tags
		self.facet_tags = facet_tags
		self.region_tags = region_tags
		self.history = history
		self.metadata = metadata or {}
		self.u = ufl.TrialFunction(V)
		self.v = ufl.TestFunction(V)
		self.n = ufl.FacetNormal(self.mesh)
		self.a = None
		self.L = None
		self.sources: List[Tuple[fem.Function, object]] = []
		self._vector_space = None

	# -------------------- Helpers --------------------

	def _measure(self, region, boundary: bool):
		tags = self.region_tags(region, boundary)
		name = "ds" if boundary else "dx"
		return self._tagged_measure(name, tags)

	def _tagged_measure(self, name: str, tags):
		subdomain_data = self.facet_tags if name == "ds" else self.cell_tags
		measure = ufl.Measure(name, domain=self.mesh, subdomain_data=subdomain_data, metadata=self.metadata)
		if tags is None:
			return measure
		return measure(tuple(tags))

	def _constant(self, value: float):
		return fem.Constant(self.mesh, ScalarType(value))

	def _add_a(self, term) -> None:
		self.a = term if self.a is None else self.a + term

	def _add_L(self, term) -> None:
		self.L = term if self.L is None else self.L + term

	def _interpolate(self, func: ScalarFunction, time: float) -> fem.Function:
		if func.is_vector():
			if self._vector_space is None:
				gdim = self.mesh.geometry.dim
				element = basix.ufl.element("Lagrange", self.mesh.basix_cell(), self.V.ufl_element().degree, shape=(gdim,))
				self._vector_space = fem.functionspace(self.mesh, element)
			g = fem.Function(self._vector_space)
		else:
			g = fem.Function(self.V)
		g.interpolate(lambda X: func(X, time))
		return g

	# -------------------- Contributions --------------------

	def add_mass(self, region, coeff: float) -> None:
		self._add_a(self._constant(coeff) * ufl.inner(self.u, self.v) * self._measure(region, False))

	def add_diffusion(self, region, kappa: float) -> None:
		self._add_a(self._constant(kappa) * ufl.inner(ufl.grad(self.u), ufl.grad(self.v)) * self._measure(region, False))

	def add_history_load(self, region, coeff: float, level: int) -> None:
		self._add_L(self._constant(coeff) * ufl.inner(self.history[level], self.v) * self._measure(region, False))

	def add_source(self, region, func: ScalarFunction, time: float) -> None:
		f = self._interpolate(func, time)
		dx = self._measure(region, False)
		self.sources.append((f, dx))
		self._add_L(ufl.inner(f, self.v) * dx)

	def add_boundary_mass(self, region, coeff: float) -> None:
		self._add_a(self._constant(coeff) * ufl.inner(self.u, self.v) * self._measure(region, True))

	def add_boundary_load(self, region, func: ScalarFunction, time: float, scale: float = 1.0) -> None:
		g = self._interpolate(func, time)
		value = ufl.dot(g, self.n) if func.is_vector() else g
		self._add_L(self._constant(scale) * value * self.v * self._measure(region, True))

	def forms(self):
		"""Return (a, L); L is zero if nothing contributed to the right-hand side."""
		L = self.L
		if L is None:
			L = self._constant(0.0) * self.v * ufl.dx(domain=self.mesh)
		return self.a, L
