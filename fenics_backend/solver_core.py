"""
DOLFINx Engine - finite element collaborator of the heat equation driver
"""

import logging
from typing import Dict, Any, List, Optional, Sequence

import numpy as np
from mpi4py import MPI
from petsc4py import PETSc
import basix.ufl
import dolfinx
import ufl
from dolfinx import fem
from dolfinx.fem.petsc import LinearProblem
from dolfinx.io import XDMFFile

from heat_solver.engine import FEEngine
from heat_solver.formatting import format_point_row
from heat_solver.models import OutputParameters
from .boundary_conditions import DirichletConditions, entities_of_set
from .config_helpers import build_scalar_function_space, prepare_petsc_solver_options, quadrature_metadata
from .mesh_management import ModelData, create_model, get_mesh_cells
from .weak_forms import UflFormBuilder

logger = logging.getLogger(__name__)


class DolfinxEngine(FEEngine):
	"""FEEngine on top of DOLFINx / PETSc"""

	def __init__(self, options: Optional[Dict[str, Any]] = None, output: Optional[OutputParameters] = None,
			comm=MPI.COMM_WORLD, dimension: int = 3):
		self.options: Dict[str, Any] = dict(options or {})
		self.output = output or OutputParameters()
		self.comm = comm
		self.dimension = dimension
		self.model: Optional[ModelData] = None
		self.V = None
		self.u_h: Optional[fem.Function] = None
		self.dirichlet: Optional[DirichletConditions] = None
		self.petsc_options: Dict[str, Any] = {}
		self.petsc_prefix = "heat_"
		self._work: Optional[fem.Function] = None
		self._history: Dict[int, fem.Function] = {}
		self._thread_groups: Dict[int, List[List[int]]] = {}
		self._sources = []
		self._xdmf: Optional[XDMFFile] = None
		self._points_started = False
		logger.info(f"DOLFINx engine on {comm.Get_size()} process(es)")

	# -------------------- Parallel layout --------------------

	@property
	def rank(self) -> int:
		return self.comm.Get_rank()

	@property
	def size(self) -> int:
		return self.comm.Get_size()

	@property
	def num_dofs(self) -> int:
		return 0 if self.u_h is None else len(self.u_h.x.array)

	@property
	def topology_sets(self) -> Sequence[str]:
		return self.model.topology_sets.names() if self.model is not None else []

	def reduce(self, values: np.ndarray) -> np.ndarray:
		return np.asarray(self.comm.allreduce(np.asarray(values, dtype=float), op=MPI.SUM), dtype=float)

	# -------------------- Model --------------------

	def read_model(self, geometry) -> bool:
		try:
			self.model = create_model(geometry, self.comm, self.dimension)
		except (RuntimeError, ValueError, OSError) as e:
			logger.error(f"Failed to build the model: {e}")
			return False
		space_options = dict(self.options)
		space_options.setdefault("degree", geometry.degree)
		self.V = build_scalar_function_space(space_options, self.model.mesh)
		self.u_h = fem.Function(self.V, name="temperature")
		self._work = fem.Function(self.V)
		logger.info(f"Model has {self.size_global} temperature dofs and topology sets {self.topology_sets}")
		return True

	@property
	def size_global(self) -> int:
		index_map = self.V.dofmap.index_map
		return index_map.size_global * self.V.dofmap.index_map_bs

	def _region_tags(self, region, boundary: bool):
		"""Mesh tags of a region, None for the whole domain / boundary."""
		if region.set_name is None:
			return None
		tset = self.model.topology_sets.find(region.set_name)
		if tset is None:
			return None
		return tuple(tset.tags)

	def preprocess(self, properties) -> bool:
		known = 0
		for prop in properties:
			if prop.set_name is None:
				continue
			if prop.set_name not in self.model.topology_sets:
				logger.error(f"Property code {prop.pindx} refers to unknown topology set '{prop.set_name}'")
				return False
			known += 1
		logger.debug(f"Bound {known} of {len(properties)} properties to topology sets")
		return True

	def element_connectivity(self, prop) -> List[Sequence[int]]:
		tset = self.model.topology_sets.find(prop.set_name)
		if tset is None:
			return []
		mesh = self.model.mesh
		entities = entities_of_set(tset, self.model.cell_tags, self.model.facet_tags, mesh.topology.dim)
		return get_mesh_cells(mesh, tset.dim, entities)

	def set_thread_groups(self, prop, groups: List[List[int]]) -> None:
		self._thread_groups[prop.pindx] = groups
		logger.debug(f"Property code {prop.pindx}: {len(groups)} independent element groups")

	# -------------------- Linear system --------------------

	def init_system(self, options: Optional[Dict[str, Any]] = None) -> bool:
		self.options.update(options or {})
		self.petsc_options, self.petsc_prefix = prepare_petsc_solver_options(self.options)
		self.dirichlet = DirichletConditions(self.V, self.model.topology_sets, self.model.cell_tags, self.model.facet_tags)
		return True

	def initial_conditions(self, func) -> np.ndarray:
		u0 = fem.Function(self.V)
		if func is not None:
			u0.interpolate(lambda X: func(X, 0.0))
		return u0.x.array.copy()

	def update_dirichlet(self, time: float, conditions) -> bool:
		return self.dirichlet.update(time, conditions)

	def _load_history(self, history) -> None:
		for level in range(len(history)):
			if level not in self._history:
				self._history[level] = fem.Function(self.V, name=f"temperature_{level}")
			self._history[level].x.array[:] = history.history(level)

	def assemble_and_solve(self, time_step, history, resolver) -> Optional[np.ndarray]:
		self._load_history(history)
		builder = UflFormBuilder(self.V, self.model.cell_tags, self.model.facet_tags, self._region_tags,
			self._history, quadrature_metadata(self.options))
		if not resolver.assemble(builder, time_step):
			return None
		a, L = builder.forms()
		if a is None:
			logger.error("No bilinear form contributions; is a material defined?")
			return None
		self._sources = builder.sources

		try:
			problem = LinearProblem(a, L, bcs=self.dirichlet.bcs, u=self.u_h,
				petsc_options=self.petsc_options, petsc_options_prefix=self.petsc_prefix)
			problem.solve()
		except (RuntimeError, PETSc.Error) as e:
			logger.error(f"Linear solve failed at step {time_step.step}: {e}")
			return None

		reason = problem.solver.getConvergedReason()
		if reason < 0:
			logger.error(f"Linear solver diverged at step {time_step.step} (reason {reason})")
			return None
		return self.u_h.x.array.copy()

	# -------------------- Integrals --------------------

	def _set_work(self, solution: np.ndarray) -> fem.Function:
		self._work.x.array[:] = solution
		return self._work

	def _assemble(self, expr) -> float:
		return float(fem.assemble_scalar(fem.form(expr)))

	def boundary_flux(self, solution, set_name, code, time, kappa) -> np.ndarray:
		tset = self.model.topology_sets.find(set_name)
		tdim = self.model.mesh.topology.dim
		if tset is None or tset.dim != tdim - 1:
			return np.empty(0)
		T = self._set_work(solution)
		n = ufl.FacetNormal(self.model.mesh)
		ds = ufl.Measure("ds", domain=self.model.mesh, subdomain_data=self.model.facet_tags)
		return np.array([self._assemble(-kappa * ufl.dot(ufl.grad(T), n) * ds(tuple(tset.tags)))])

	def stored_energy(self, solution, set_name, code, heat_capacity) -> np.ndarray:
		tset = self.model.topology_sets.find(set_name)
		if tset is None or tset.dim != self.model.mesh.topology.dim:
			return np.empty(0)
		T = self._set_work(solution)
		dx = ufl.Measure("dx", domain=self.model.mesh, subdomain_data=self.model.cell_tags)
		return np.array([self._assemble(heat_capacity * T * dx(tuple(tset.tags)))])

	# -------------------- Output --------------------

	def _result_points(self) -> np.ndarray:
		points = self.output.points
		padded = np.zeros((len(points), 3))
		for i, p in enumerate(points):
			padded[i, :len(p)] = p[:3]
		return padded

	def evaluate_points(self, solution: np.ndarray, points: np.ndarray) -> np.ndarray:
		"""Solution values at points, NaN where no local cell contains the point."""
		mesh = self.model.mesh
		u = self._set_work(solution)
		values = np.full(len(points), np.nan)
		if len(points) == 0:
			return values
		tree = dolfinx.geometry.bb_tree(mesh, mesh.topology.dim)
		candidates = dolfinx.geometry.compute_collisions_points(tree, points)
		colliding = dolfinx.geometry.compute_colliding_cells(mesh, candidates, points)
		for i, point in enumerate(points):
			cells = colliding.links(i)
			if len(cells) > 0:
				values[i] = u.eval(point, cells[:1]).ravel()[0]
		return values

	def save_points(self, solution, time, step, zero_tolerance: float = 1e-8) -> bool:
		points = self._result_points()
		if len(points) == 0:
			return True
		local = self.evaluate_points(solution, points)
		gathered = self.comm.gather(local, root=0)
		if self.rank != 0:
			return True
		values = np.full(len(points), np.nan)
		for part in gathered:
			values = np.where(np.isnan(values), part, values)

		lines = [format_point_row(i, points[i], [values[i]], time, zero_tolerance) for i in range(len(points))]
		if not self.output.points_file:
			for line in lines:
				logger.info(line)
			return True
		mode = "a" if self._points_started else "w"
		try:
			with open(self.output.points_file, mode) as f:
				f.write("\n".join(lines) + "\n")
		except OSError as e:
			logger.error(f"Could not write point results to {self.output.points_file}: {e}")
			return False
		self._points_started = True
		return True

	def write_field(self, solution, dump_index, time, name) -> bool:
		if not self.output.field_file:
			return True
		try:
			if self._xdmf is None:
				self._xdmf = XDMFFile(self.comm, self.output.field_file, "w")
				self._xdmf.write_mesh(self.model.mesh)
			self.u_h.x.array[:] = solution
			self.u_h.name = name
			self._xdmf.write_function(self.u_h, time)
		except (RuntimeError, OSError) as e:
			logger.error(f"Could not write field snapshot {dump_index}: {e}")
			return False
		return True

	# -------------------- Norms --------------------

	def vector_norms(self, solution) -> tuple:
		owned = self.V.dofmap.index_map.size_local * self.V.dofmap.index_map_bs
		local = np.asarray(solution[:owned], dtype=float)
		norm = np.sqrt(self.comm.allreduce(float(local @ local), op=MPI.SUM))
		local_max = float(local.max()) if local.size else -np.inf
		return norm, self.comm.allreduce(local_max, op=MPI.MAX)

	def _global(self, expr) -> float:
		return self.comm.allreduce(self._assemble(expr), op=MPI.SUM)

	def solution_norms(self, history, time, kappa, exact=None) -> List[np.ndarray]:
		T = self._set_work(history.current())
		dx = ufl.dx(domain=self.model.mesh)
		k = fem.Constant(self.model.mesh, PETSc.ScalarType(kappa))

		def energy(w):
			return k * ufl.inner(ufl.grad(w), ufl.grad(w)) * dx

		g = np.zeros(7)
		g[0] = np.sqrt(self._global(T * T * dx))
		g[1] = np.sqrt(self._global(energy(T)))
		g[2] = sum(self._global(f * T * measure) for f, measure in self._sources)
		if exact is not None:
			degree = self.V.ufl_element().degree + 2
			V_ex = fem.functionspace(self.model.mesh, basix.ufl.element("Lagrange", self.model.mesh.basix_cell(), degree))
			T_ex = fem.Function(V_ex)
			T_ex.interpolate(lambda X: exact(X, time))
			e = T_ex - T
			g[3] = np.sqrt(self._global(T_ex * T_ex * dx))
			g[4] = np.sqrt(self._global(ufl.inner(e, e) * dx))
			g[5] = np.sqrt(self._global(energy(T_ex)))
			g[6] = np.sqrt(self._global(energy(e)))
		return [g]

	def close(self) -> None:
		if self._xdmf is not None:
			self._xdmf.close()
			self._xdmf = None
