"""
Solution driver for the transient heat equation.

The driver turns the parsed problem description into live solver state and
runs the time stepping loop. Assembly, linear solves and field output are
delegated to an FEEngine; the driver keeps the solution history, the
property coupling and the boundary integral reports consistent.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .boundary_quantities import BoundaryQuantitySet, QuantityKind
from .checkpoint import load_checkpoint, save_checkpoint
from .engine import FEEngine
from .exceptions import ConfigurationError, ModelReadError, OutputError, PreprocessingError, SolveError, HeatSolverError
from .functions import AnalyticalSolution, ExpressionFunction, make_function
from .integrands import HeatEquationIntegrand, WeakDirichletIntegrand
from .materials import MaterialRegistry
from .models import (
	BoundaryCondition,
	HeatEquationSection,
	MaterialSection,
	OutputParameters,
	ProblemConfig,
	PropertyType,
)
from .properties import Property, PropertyCouplingResolver
from .reporter import BoundaryIntegralReporter
from .solution_history import SolutionHistory
from .thread_groups import color_elements
from .time_step import TimeStep

logger = logging.getLogger(__name__)

POINT_ZERO_TOLERANCE = 1e-16


class DriverState(str, Enum):
	CONFIGURING = "configuring"
	READY = "ready"
	STEPPING = "stepping"
	FINISHED = "finished"
	FAILED = "failed"


class HeatEquationDriver:
	"""Time stepping driver for a heat equation simulator"""

	heading = "Heat equation solver"

	def __init__(self, engine: FEEngine, order: int = 2, dimension: int = 3, msg_level: int = 0,
			log: Optional[logging.Logger] = None):
		self.engine = engine
		self.msg_level = msg_level
		self.log = log or logger
		self.state = DriverState.CONFIGURING

		self.materials = MaterialRegistry()
		self.primary = HeatEquationIntegrand(dimension, order)
		self.weak_dirichlet = WeakDirichletIntegrand(dimension)
		self.resolver = PropertyCouplingResolver(self.materials, self.primary, self.weak_dirichlet)
		self.quantities = BoundaryQuantitySet()
		self.reporter = BoundaryIntegralReporter(engine, self.primary, self.log)

		self.history: Optional[SolutionHistory] = None
		self.time_step: Optional[TimeStep] = None
		self.analytical: Optional[AnalyticalSolution] = None
		self.dirichlet_conditions: List[BoundaryCondition] = []
		self.output = OutputParameters()
		self.input_context = "heatequation"

		self.write_fields = False
		self.dump_file: Optional[str] = None

	@property
	def order(self) -> int:
		return self.primary.order

	def set_context(self, ctx: int) -> None:
		"""Read the heat equation block from ``heatequation-<ctx>`` instead of ``heatequation``."""
		self.input_context = f"heatequation-{ctx}"

	# -------------------- Configuration --------------------

	def parse(self, problem: ProblemConfig) -> None:
		"""Read the model and populate materials, conditions and boundary quantity specs."""
		try:
			if not self.engine.read_model(problem.geometry):
				raise ModelReadError(f"Could not build the model from geometry type '{problem.geometry.type}'")
			self.time_step = TimeStep.from_params(problem.timestepping)
			self.output = problem.output
			self.parse_boundary_conditions(problem.boundary_conditions)
			if problem.thermoelasticity is not None:
				self.parse_materials(problem.thermoelasticity)
			section = problem.heat_section(self.input_context)
			if section is not None:
				self.parse_heat_equation(section)
		except HeatSolverError:
			self.state = DriverState.FAILED
			raise
		except (ValidationError, ValueError, LookupError) as e:
			self.state = DriverState.FAILED
			raise ConfigurationError(f"Invalid input: {e}") from e

	def parse_boundary_conditions(self, conditions: List[BoundaryCondition]) -> None:
		known_sets = set(self.engine.topology_sets)
		for bc in conditions:
			if bc.set_name not in known_sets:
				raise ConfigurationError(f"Boundary condition on unknown topology set '{bc.set_name}'")
			self.resolver.set_property_type(bc.code, bc.type, bc.set_name)
			if bc.type == PropertyType.DIRICHLET:
				self.dirichlet_conditions.append(bc)
			else:
				func = make_function(bc.function_spec())
				if func is not None:
					self.resolver.register_flux(bc.code, func)
			self.log.info(f"\tProperty code {bc.code}: {bc.type.value} on set '{bc.set_name}'")

	def parse_materials(self, section: MaterialSection) -> None:
		"""Register materials in declaration order and bind the last one to the integrands."""
		last = None
		for material in section.isotropic:
			index = self.materials.add(material)
			if material.set_name:
				if material.set_name not in set(self.engine.topology_sets):
					raise ConfigurationError(f"Material on unknown topology set '{material.set_name}'")
				self.resolver.set_property_type(index, PropertyType.MATERIAL, material.set_name)
			self.log.info(f"\tMaterial code {index}: kappa={material.kappa} rho={material.rho} C={material.C}")
			last = index
		if last is not None:
			self.resolver.bind_material_to_region(last)

	def parse_heat_equation(self, section: HeatEquationSection) -> None:
		if section.anasol is not None:
			self.log.info("\tAnalytical solution: Expression")
			if self.analytical is None:
				self.analytical = AnalyticalSolution(
					make_function(section.anasol.primary),
					make_function(section.anasol.secondary),
				)
			code = section.anasol.code
			secondary = self.analytical.secondary_field()
			if code > 0 and secondary is not None:
				self.resolver.set_property_type(code, PropertyType.NEUMANN)
				self.resolver.register_flux(code, secondary)

		for cfg in section.heatflux:
			self.quantities.add(QuantityKind.FLUX, cfg, self.resolver, self.engine.topology_sets)
		for cfg in section.storedenergy:
			self.quantities.add(QuantityKind.STORED_ENERGY, cfg, self.resolver, self.engine.topology_sets)

		if section.environmentproperties is not None:
			env = section.environmentproperties
			self.weak_dirichlet.set_env_temperature(env.T)
			self.weak_dirichlet.set_env_conductivity(env.alpha)
			self.log.info(f"\tEnvironment properties: T={env.T} alpha={env.alpha}")

		if section.source is not None:
			if section.source.type == "expression" and section.source.expression:
				self.log.info(f"\tSource function: {section.source.expression}")
				self.primary.set_source(ExpressionFunction(section.source.expression))
			else:
				self.log.warning(f"Ignoring source of type '{section.source.type}' without expression")

		if section.initial_temperature is not None:
			self.primary.set_initial_temperature(make_function(section.initial_temperature))

	# -------------------- Preprocessing --------------------

	def preprocess(self) -> None:
		"""Couple integrands to property codes, let the engine bind them, and set up thread groups."""
		if not self.materials:
			raise PreprocessingError("No material defined")
		self.resolver.couple_weak_dirichlet()
		for prop in self.resolver.properties_of_type(PropertyType.NEUMANN):
			if self.resolver.flux_for(prop.pindx) is None:
				raise PreprocessingError(f"No flux function for Neumann property code {prop.pindx} (set '{prop.set_name}')")
		if not self.engine.preprocess(self.resolver.properties):
			raise PreprocessingError("Model preprocessing failed")
		for prop in self.resolver.properties:
			if self.quantities.has_flux_code(prop.pindx):
				self.generate_thread_groups(prop)

	def generate_thread_groups(self, prop: Property) -> List[List[int]]:
		groups = color_elements(self.engine.element_connectivity(prop))
		self.engine.set_thread_groups(prop, groups)
		if self.msg_level >= 2:
			self.log.info(f"\tThread groups for property code {prop.pindx}: {len(groups)}")
		return groups

	def init_system(self, options: Optional[Dict[str, Any]] = None) -> None:
		if not self.engine.init_system(options or {}):
			raise PreprocessingError("Could not allocate the linear equation system")

	def init_sol(self) -> None:
		"""Allocate the temperature solution levels and apply the initial condition."""
		self.history = SolutionHistory(self.order, self.engine.num_dofs)
		self.history.apply_initial_conditions(self.engine.initial_conditions(self.primary.initial_temperature))

	def setup(self, problem: ProblemConfig, options: Optional[Dict[str, Any]] = None) -> None:
		"""Configuring -> Ready."""
		try:
			self.parse(problem)
			self.preprocess()
			self.init_system(options)
			self.init_sol()
		except HeatSolverError:
			self.state = DriverState.FAILED
			raise
		self.state = DriverState.READY

	def restart(self, path: str) -> None:
		"""Restore solution levels and time level from a checkpoint."""
		if self.history is None or self.time_step is None:
			raise ConfigurationError("Restart requested before the solution is initialized")
		try:
			data = load_checkpoint(path, self.engine.num_dofs)
		except (OSError, KeyError, ValueError) as e:
			raise ConfigurationError(f"Could not restart from {path}: {e}") from e
		self.history.restore(data["levels"])
		self.time_step.step = data["step"]
		self.time_step.time = data["time"]
		self.primary.bdf.set_step(data["step"])

	# -------------------- Time stepping --------------------

	def advance_step(self, time_step: TimeStep) -> None:
		"""Shift the solution levels and advance the time discretization."""
		self.history.advance()
		self.primary.advance_step()

	def solve_step(self, time_step: TimeStep) -> None:
		if self.msg_level >= 0:
			self.log.info(f"  step = {time_step.step}  time = {time_step.time}")

		if not self.engine.update_dirichlet(time_step.time, self.dirichlet_conditions):
			raise SolveError(f"Dirichlet update failed at step {time_step.step}")

		solution = self.engine.assemble_and_solve(time_step, self.history, self.resolver)
		if solution is None:
			raise SolveError(f"Assembly or linear solve failed at step {time_step.step} (t={time_step.time})")
		self.history.update_current(solution)

		if self.msg_level == 1:
			norm_l2, max_value = self.engine.vector_norms(self.history.current())
			self.log.info(f"  Temperature summary: L2-norm         : {norm_l2}")
			self.log.info(f"                       Max temperature : {max_value}")

	def save_step(self, time_step: TimeStep) -> bool:
		"""
		Persist the results of a converged step. Returns False if a boundary
		integral could not be evaluated; that report row is skipped and the
		run goes on.
		"""
		ok = True
		for spec in self.quantities:
			if not self.reporter.save_integral(spec, self.history, time_step):
				ok = False

		if not self.engine.save_points(self.history.current(), time_step.time, time_step.step,
				zero_tolerance=POINT_ZERO_TOLERANCE):
			raise OutputError(f"Could not save point results at step {time_step.step}")

		interval = self.output.save_interval
		if self.write_fields and time_step.step % interval == 0:
			dump = 1 + time_step.step // interval
			if not self.engine.write_field(self.history.current(), dump, time_step.time, "temperature"):
				raise OutputError(f"Could not write temperature field at step {time_step.step}")

		restart_interval = self.output.restart_interval
		if self.dump_file and restart_interval > 0 and time_step.step > 0 and time_step.step % restart_interval == 0:
			try:
				save_checkpoint(self.dump_file, self.history, time_step)
			except OSError as e:
				raise OutputError(f"Could not write restart checkpoint: {e}") from e

		return ok

	def run(self) -> TimeStep:
		"""Ready -> Stepping -> Finished. Raises SolveError / OutputError on fatal failure."""
		if self.state != DriverState.READY:
			raise RuntimeError(f"Driver is not ready to run (state={self.state.value})")
		time_step = self.time_step
		self.state = DriverState.STEPPING
		try:
			if time_step.step == 0:
				self.save_step(time_step)
			while time_step.increment():
				self.advance_step(time_step)
				self.solve_step(time_step)
				if not self.save_step(time_step):
					self.log.warning(f"Some boundary integrals were skipped at step {time_step.step}")
		except HeatSolverError:
			self.state = DriverState.FAILED
			raise
		finally:
			self.engine.close()
		self.state = DriverState.FINISHED
		self.print_final_norms(time_step)
		return time_step

	# -------------------- Post processing --------------------

	def print_final_norms(self, time_step: TimeStep) -> Optional[List[float]]:
		"""Log the global norms of the final solution; with an exact solution also the error norms."""
		material = self.primary.material
		kappa = material.kappa if material is not None else 1.0
		exact = self.analytical.primary if self.analytical is not None else None
		norms = self.engine.solution_norms(self.history, time_step.time, kappa, exact)
		if not norms or len(norms[0]) == 0:
			return None

		g = [float(v) for v in norms[0]]
		lines = [
			f"L2 norm |t^h| = (t^h,t^h)^0.5      : {g[0]:g}",
			f"H1 norm |t^h| = a(t^h,t^h)^0.5      : {g[1]:g}",
		]
		if exact is not None and len(g) >= 7:
			lines += [
				f"L2 norm |t|   = (t,t)^0.5           : {g[3]:g}",
				f"H1 norm |t|   = a(t,t)^0.5          : {g[5]:g}",
				f"L2 norm |e|   = (e,e)^0.5, e=t-t^h  : {g[4]:g}",
				f"H1 norm |e|   = a(e,e)^0.5, e=t-t^h : {g[6]:g}",
			]
			if g[5] != 0.0:
				lines.append(f"Exact relative error (%)            : {g[6] / g[5] * 100.0:g}")
		for line in lines:
			self.log.info(line)
		return g
