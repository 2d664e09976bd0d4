"""Tests for heat flux / stored energy specs."""
import pytest

from heat_solver.boundary_quantities import BoundaryQuantitySet, BoundaryQuantitySpec, QuantityKind
from heat_solver.integrands import HeatEquationIntegrand, WeakDirichletIntegrand
from heat_solver.materials import MaterialRegistry
from heat_solver.models import BoundaryQuantityConfig, PropertyType
from heat_solver.properties import PropertyCouplingResolver

SETS = ["Left", "Right", "Top", "Domain"]


@pytest.fixture()
def resolver():
	return PropertyCouplingResolver(MaterialRegistry(), HeatEquationIntegrand(2, 1), WeakDirichletIntegrand(2))


class TestSpec:
	@pytest.mark.parametrize("stride,steps", [
		(1, [1, 2, 3, 4]),
		(2, [1, 3]),
		(3, [1, 4]),
	])
	def test_stride(self, stride, steps):
		spec = BoundaryQuantitySpec(QuantityKind.FLUX, "Top", 1000, "", stride)
		assert [s for s in range(0, 5) if spec.fires_on(s)] == steps

	def test_disabled_without_code(self):
		spec = BoundaryQuantitySpec(QuantityKind.FLUX, "Top", 0)
		assert not spec.enabled
		assert not spec.fires_on(1)

	def test_disabled_without_set(self):
		spec = BoundaryQuantitySpec(QuantityKind.STORED_ENERGY, "", 7)
		assert not spec.enabled

	def test_disabled_with_zero_stride(self):
		spec = BoundaryQuantitySpec(QuantityKind.FLUX, "Top", 1000, stride=0)
		assert not spec.fires_on(1)


class TestQuantitySet:
	def test_codes_per_kind(self, resolver):
		quantities = BoundaryQuantitySet()
		first = quantities.add(QuantityKind.FLUX, BoundaryQuantityConfig(set_name="Top"), resolver, SETS)
		second = quantities.add(QuantityKind.FLUX, BoundaryQuantityConfig(set_name="Right"), resolver, SETS)
		assert (first.code, second.code) == (1000, 2000)

	def test_code_moves_past_used_ones(self, resolver):
		quantities = BoundaryQuantitySet()
		quantities.add(QuantityKind.FLUX, BoundaryQuantityConfig(set_name="Top"), resolver, SETS)
		energy = quantities.add(QuantityKind.STORED_ENERGY, BoundaryQuantityConfig(set_name="Domain"), resolver, SETS)
		assert energy.code == 1001

	def test_registers_property(self, resolver):
		quantities = BoundaryQuantitySet()
		spec = quantities.add(QuantityKind.FLUX, BoundaryQuantityConfig(set_name="Top"), resolver, SETS)
		assert [(p.ptype, p.pindx, p.set_name) for p in resolver.properties] == [(PropertyType.UNDEFINED, spec.code, "Top")]

	def test_unknown_set_disables_spec(self, resolver):
		quantities = BoundaryQuantitySet()
		spec = quantities.add(QuantityKind.FLUX, BoundaryQuantityConfig(set_name="Nowhere"), resolver, SETS)
		assert spec.code == 0
		assert not spec.enabled

	def test_explicit_code_without_set(self, resolver):
		quantities = BoundaryQuantitySet()
		spec = quantities.add(QuantityKind.FLUX, BoundaryQuantityConfig(code=12), resolver, SETS)
		assert spec.code == 12
		assert not spec.enabled
		assert resolver.properties == []

	def test_iteration_order_and_lookup(self, resolver):
		quantities = BoundaryQuantitySet()
		energy = quantities.add("storedenergy", BoundaryQuantityConfig(set_name="Domain"), resolver, SETS)
		flux = quantities.add("heatflux", BoundaryQuantityConfig(set_name="Top", file="flux.dat", stride=2), resolver, SETS)
		assert list(quantities) == [flux, energy]
		assert len(quantities) == 2
		assert quantities.fluxes == [flux]
		assert quantities.energies == [energy]
		assert quantities.has_flux_code(flux.code)
		assert not quantities.has_flux_code(energy.code)
		assert flux.stride == 2
		assert flux.file == "flux.dat"
