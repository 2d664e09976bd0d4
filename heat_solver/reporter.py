"""
Evaluation and persistence of boundary heat flux and stored energy integrals
"""

import logging
from typing import List, Optional

import numpy as np

from .boundary_quantities import BoundaryQuantitySpec, QuantityKind
from .engine import FEEngine
from .integrands import HeatEquationIntegrand
from .solution_history import SolutionHistory
from .time_step import TimeStep

logger = logging.getLogger(__name__)


def format_header(spec: BoundaryQuantitySpec) -> List[str]:
	return [
		f"# {spec.kind.heading} with code {spec.code}",
		"#%9s %11s" % ("time", spec.kind.column_name),
	]


def format_row(time: float, value: float) -> str:
	return "%10.6f %11.6g" % (time, value)


class BoundaryIntegralReporter:
	"""
	Computes one scalar integral per spec and appends it to the spec's
	report file (or the log when no file is given).

	Only the coordinating process (rank 0) writes; the others take part in
	the reduction and drop the result.
	"""

	def __init__(self, engine: FEEngine, integrand: HeatEquationIntegrand, log: Optional[logging.Logger] = None):
		self.engine = engine
		self.integrand = integrand
		self.log = log or logger

	def evaluate(self, spec: BoundaryQuantitySpec, solution: np.ndarray, time_step: TimeStep) -> np.ndarray:
		"""Return the reduced integral for a spec (empty if the engine produced no contribution)."""
		material = self.integrand.material
		if spec.kind is QuantityKind.FLUX:
			kappa = material.kappa if material is not None else 1.0
			local = self.engine.boundary_flux(solution, spec.set_name, spec.code, time_step.time, kappa)
		else:
			heat_capacity = material.heat_capacity if material is not None else 1.0
			local = self.engine.stored_energy(solution, spec.set_name, spec.code, heat_capacity)
		return np.atleast_1d(self.engine.reduce(np.asarray(local, dtype=float)))

	def save_integral(self, spec: BoundaryQuantitySpec, history: SolutionHistory, time_step: TimeStep) -> bool:
		"""
		Evaluate and persist a spec for a completed step.

		Disabled specs and steps off the stride are skipped with success.
		Returns False if the engine returned an empty integral.
		"""
		if not spec.fires_on(time_step.step):
			return True

		integral = self.evaluate(spec, history.current(), time_step)
		if integral.size == 0:
			self.log.warning(f"Empty {spec.kind.column_name.lower()} integral for code {spec.code} (set '{spec.set_name}') at step {time_step.step}")
			return False

		if self.engine.rank != 0:
			return True

		lines = []
		if time_step.step == 1:
			lines.extend(format_header(spec))
		lines.append(format_row(time_step.time, float(integral[0])))

		if not spec.file:
			for line in lines:
				self.log.info(line)
			return True

		# step 1 truncates any existing report, restarts included
		mode = "w" if time_step.step == 1 else "a"
		with open(spec.file, mode) as f:
			f.write("\n".join(lines) + "\n")
		return True
