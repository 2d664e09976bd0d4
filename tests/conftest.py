"""Shared fixtures: an in-memory engine and problem documents."""
import copy

import numpy as np
import pytest

from heat_solver.driver import HeatEquationDriver
from heat_solver.engine import FEEngine, FormBuilder
from heat_solver.models import ProblemConfig


class RecordingBuilder(FormBuilder):
	"""Records every contribution as (term, region, args)."""

	def __init__(self):
		self.calls = []

	def add_mass(self, region, coeff):
		self.calls.append(("mass", region, coeff))

	def add_diffusion(self, region, kappa):
		self.calls.append(("diffusion", region, kappa))

	def add_history_load(self, region, coeff, level):
		self.calls.append(("history", region, (coeff, level)))

	def add_source(self, region, func, time):
		self.calls.append(("source", region, (func, time)))

	def add_boundary_mass(self, region, coeff):
		self.calls.append(("boundary_mass", region, coeff))

	def add_boundary_load(self, region, func, time, scale=1.0):
		self.calls.append(("boundary_load", region, (func, time, scale)))

	def terms(self, name):
		return [call for call in self.calls if call[0] == name]


class FakeEngine(FEEngine):
	"""
	Engine on plain numpy vectors. Every solve adds 1 to the current
	solution; flux is kappa * sum(T), stored energy rho*C * sum(T).
	"""

	def __init__(self, dofs=4, sets=("Left", "Right", "Bottom", "Top", "Domain"), rank=0):
		self._dofs = dofs
		self._sets = list(sets)
		self._rank = rank
		self.read_ok = True
		self.preprocess_ok = True
		self.points_ok = True
		self.fail_at_step = None
		self.empty_sets = set()
		self.norms = None
		self.closed = False
		self.preprocessed = []
		self.thread_groups = {}
		self.options = None
		self.dirichlet_updates = []
		self.builders = []
		self.assembled_levels = []
		self.point_saves = []
		self.fields = []

	@property
	def rank(self):
		return self._rank

	@property
	def num_dofs(self):
		return self._dofs

	@property
	def topology_sets(self):
		return self._sets

	def read_model(self, geometry):
		return self.read_ok

	def preprocess(self, properties):
		self.preprocessed = list(properties)
		return self.preprocess_ok

	def element_connectivity(self, prop):
		return [[0, 1], [1, 2], [2, 3]]

	def set_thread_groups(self, prop, groups):
		self.thread_groups[prop.pindx] = groups

	def init_system(self, options=None):
		self.options = options
		return True

	def initial_conditions(self, func):
		if func is None:
			return np.zeros(self._dofs)
		X = np.vstack([np.linspace(0.0, 1.0, self._dofs), np.zeros(self._dofs), np.zeros(self._dofs)])
		return func(X, 0.0)

	def update_dirichlet(self, time, conditions):
		self.dirichlet_updates.append((time, list(conditions)))
		return True

	def assemble_and_solve(self, time_step, history, resolver):
		builder = RecordingBuilder()
		self.builders.append(builder)
		self.assembled_levels.append(history.levels)
		if not resolver.assemble(builder, time_step):
			return None
		if self.fail_at_step == time_step.step:
			return None
		return history.current() + 1.0

	def boundary_flux(self, solution, set_name, code, time, kappa):
		if set_name in self.empty_sets:
			return np.empty(0)
		return np.array([kappa * solution.sum()])

	def stored_energy(self, solution, set_name, code, heat_capacity):
		if set_name in self.empty_sets:
			return np.empty(0)
		return np.array([heat_capacity * solution.sum()])

	def save_points(self, solution, time, step, zero_tolerance=1e-8):
		self.point_saves.append((step, time, zero_tolerance))
		return self.points_ok

	def write_field(self, solution, dump_index, time, name):
		self.fields.append((dump_index, time, name))
		return True

	def vector_norms(self, solution):
		return float(np.linalg.norm(solution)), float(solution.max())

	def solution_norms(self, history, time, kappa, exact=None):
		if self.norms is not None:
			return [np.asarray(self.norms, dtype=float)]
		return []

	def close(self):
		self.closed = True


BASE_DOCUMENT = {
	"geometry": {"type": "rectangle"},
	"boundary_conditions": [
		{"set": "Left", "type": "dirichlet", "code": 1, "value": 0.0},
	],
	"thermoelasticity": {"isotropic": [{"set": "Domain", "kappa": 2.0, "rho": 1.0, "C": 3.0}]},
	"heatequation": {},
	"timestepping": {"start": 0.0, "end": 0.4, "dt": 0.1},
}


@pytest.fixture()
def document():
	"""A fresh copy of the base input document."""
	return copy.deepcopy(BASE_DOCUMENT)


@pytest.fixture()
def engine():
	return FakeEngine()


@pytest.fixture()
def make_driver(engine):
	"""Build a driver around the fake engine and set it up from a document."""
	def _make(document, order=2, setup=True, **kwargs):
		driver = HeatEquationDriver(engine, order=order, dimension=2, **kwargs)
		if setup:
			driver.setup(ProblemConfig.model_validate(document))
		return driver
	return _make
