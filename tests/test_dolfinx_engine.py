"""Tests for the DOLFINx engine; skipped when DOLFINx is not installed."""
import numpy as np
import pytest

dolfinx = pytest.importorskip("dolfinx")

from mpi4py import MPI

from fenics_backend import DolfinxEngine
from heat_solver.driver import HeatEquationDriver
from heat_solver.functions import ConstantFunction, ExpressionFunction
from heat_solver.models import GeometryConfig, ProblemConfig, PropertyType
from heat_solver.properties import Property


def unit_square(elements=4):
	engine = DolfinxEngine({"solver": "dense"}, comm=MPI.COMM_SELF, dimension=2)
	assert engine.read_model(GeometryConfig(type="rectangle", elements=[elements, elements]))
	return engine


LINEAR_DOCUMENT = {
	"geometry": {"type": "rectangle", "elements": [4, 4]},
	"boundary_conditions": [
		{"set": "Left", "type": "dirichlet", "code": 1, "value": 0.0},
		{"set": "Right", "type": "dirichlet", "code": 2, "value": 1.0},
	],
	"thermoelasticity": {"isotropic": [{"set": "Domain", "kappa": 1.0, "rho": 1.0, "C": 1.0}]},
	"heatequation": {
		"anasol": {"primary": "x"},
		"initial_temperature": "x",
		"heatflux": [{"set": "Right"}],
	},
	"timestepping": {"start": 0.0, "end": 0.2, "dt": 0.1},
}


class TestModel:
	def test_builtin_sets(self):
		engine = unit_square()
		assert set(engine.topology_sets) == {"Left", "Right", "Bottom", "Top", "Domain"}
		assert engine.num_dofs == 25

	def test_unknown_set_fails_preprocessing(self):
		engine = unit_square()
		assert not engine.preprocess([Property(PropertyType.NEUMANN, 3, "Nowhere")])

	def test_facet_connectivity(self):
		engine = unit_square()
		facets = engine.element_connectivity(Property(PropertyType.UNDEFINED, 1000, "Top"))
		assert len(facets) == 4
		assert all(len(nodes) == 2 for nodes in facets)


class TestIntegrals:
	def test_stored_energy_of_constant_field(self):
		engine = unit_square()
		solution = engine.initial_conditions(ConstantFunction(2.0))
		energy = engine.stored_energy(solution, "Domain", 1000, 3.0)
		assert energy[0] == pytest.approx(6.0)

	def test_flux_of_linear_field(self):
		engine = unit_square()
		solution = engine.initial_conditions(ExpressionFunction("x"))
		assert engine.boundary_flux(solution, "Right", 1000, 0.0, 2.0)[0] == pytest.approx(-2.0)
		assert engine.boundary_flux(solution, "Left", 1001, 0.0, 2.0)[0] == pytest.approx(2.0)
		assert engine.boundary_flux(solution, "Top", 1002, 0.0, 2.0)[0] == pytest.approx(0.0, abs=1e-12)

	def test_wrong_dimension_gives_empty_integral(self):
		engine = unit_square()
		solution = np.zeros(engine.num_dofs)
		assert engine.boundary_flux(solution, "Domain", 1000, 0.0, 1.0).size == 0
		assert engine.stored_energy(solution, "Top", 1000, 1.0).size == 0
		assert engine.stored_energy(solution, "Nowhere", 1000, 1.0).size == 0

	def test_point_evaluation(self):
		engine = unit_square()
		solution = engine.initial_conditions(ExpressionFunction("x + 2*y"))
		values = engine.evaluate_points(solution, np.array([[0.25, 0.5, 0.0], [2.0, 2.0, 0.0]]))
		assert values[0] == pytest.approx(1.25)
		assert np.isnan(values[1])


class TestDriverRun:
	@pytest.mark.parametrize("order", [1, 2])
	def test_linear_profile_is_stationary(self, tmp_path, order):
		document = dict(LINEAR_DOCUMENT)
		document["output"] = {"points": [[0.5, 0.5]], "points_file": str(tmp_path / "points.dat")}
		problem = ProblemConfig.model_validate(document)
		engine = DolfinxEngine({"solver": "dense"}, output=problem.output, comm=MPI.COMM_SELF, dimension=2)
		driver = HeatEquationDriver(engine, order=order, dimension=2)
		driver.setup(problem, {"solver": "dense"})
		driver.run()

		X = engine.V.tabulate_dof_coordinates().T
		np.testing.assert_allclose(driver.history.current(), X[0], atol=1e-10)
		norms = driver.print_final_norms(driver.time_step)
		assert norms[4] == pytest.approx(0.0, abs=1e-10)
		rows = (tmp_path / "points.dat").read_text().splitlines()
		assert len(rows) == 3
		assert rows[-1].endswith(": 0.5")
