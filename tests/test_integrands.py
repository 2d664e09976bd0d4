"""Tests for the governing integrands."""
import pytest

from heat_solver.functions import ConstantFunction, ExpressionFunction
from heat_solver.integrands import HeatEquationIntegrand, WeakDirichletIntegrand
from heat_solver.models import Material, PropertyType
from heat_solver.properties import Property
from heat_solver.time_step import TimeStep

from conftest import RecordingBuilder

REGION = Property(PropertyType.MATERIAL, 0, "Domain")
BOUNDARY = Property(PropertyType.ROBIN, 2, "Right")


@pytest.fixture()
def time_step():
	return TimeStep(start=0.0, stop=1.0, dt=0.5, step=1, time=0.5)


class TestHeatEquationIntegrand:
	def test_backward_euler_terms(self, time_step):
		integrand = HeatEquationIntegrand(dimension=2, order=1)
		integrand.set_material(Material(kappa=2.0, rho=1.0, C=3.0))
		integrand.advance_step()
		builder = RecordingBuilder()
		integrand.assemble_interior(builder, REGION, time_step)
		assert builder.terms("mass") == [("mass", REGION, pytest.approx(6.0))]
		assert builder.terms("diffusion") == [("diffusion", REGION, 2.0)]
		assert builder.terms("history") == [("history", REGION, (pytest.approx(6.0), 1))]
		assert builder.terms("source") == []

	def test_bdf2_terms(self, time_step):
		integrand = HeatEquationIntegrand(dimension=2, order=2)
		integrand.set_material(Material(kappa=1.0, rho=1.0, C=1.0))
		integrand.advance_step()
		integrand.advance_step()
		builder = RecordingBuilder()
		integrand.assemble_interior(builder, REGION, time_step)
		assert builder.terms("mass")[0][2] == pytest.approx(3.0)
		loads = [args for _, _, args in builder.terms("history")]
		assert loads == [(pytest.approx(4.0), 1), (pytest.approx(-1.0), 2)]

	def test_source_term(self, time_step):
		integrand = HeatEquationIntegrand(dimension=2, order=1)
		integrand.set_material(Material())
		source = ExpressionFunction("sin(x)*t")
		integrand.set_source(source)
		builder = RecordingBuilder()
		integrand.assemble_interior(builder, REGION, time_step)
		assert builder.terms("source") == [("source", REGION, (source, 0.5))]

	def test_requires_material(self, time_step):
		integrand = HeatEquationIntegrand(dimension=2, order=1)
		with pytest.raises(RuntimeError):
			integrand.assemble_interior(RecordingBuilder(), REGION, time_step)

	def test_boundary_without_flux(self, time_step):
		integrand = HeatEquationIntegrand(dimension=2, order=1)
		builder = RecordingBuilder()
		integrand.assemble_boundary(builder, BOUNDARY, time_step)
		assert builder.calls == []


class TestWeakDirichletIntegrand:
	def test_environment_defaults(self):
		integrand = WeakDirichletIntegrand()
		assert integrand.env_temperature == 273.5
		assert integrand.env_conductivity == 1.0
		assert integrand.target()([0.0], 0.0)[0] == pytest.approx(273.5)

	def test_flux_replaces_environment_temperature(self):
		integrand = WeakDirichletIntegrand()
		flux = ConstantFunction(12.0)
		integrand.set_flux(flux)
		assert integrand.target() is flux

	def test_boundary_terms(self, time_step):
		integrand = WeakDirichletIntegrand()
		integrand.set_env_conductivity(4.0)
		builder = RecordingBuilder()
		integrand.assemble_boundary(builder, BOUNDARY, time_step)
		assert builder.terms("boundary_mass") == [("boundary_mass", BOUNDARY, 4.0)]
		(_, _, (_, time, scale)), = builder.terms("boundary_load")
		assert time == 0.5
		assert scale == 4.0

	def test_no_interior_terms(self, time_step):
		integrand = WeakDirichletIntegrand()
		builder = RecordingBuilder()
		integrand.assemble_interior(builder, REGION, time_step)
		assert builder.calls == []
