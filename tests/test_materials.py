"""Tests for the material registry and material model."""
import pydantic
import pytest

from heat_solver.materials import MaterialRegistry
from heat_solver.models import Material


@pytest.fixture()
def registry():
	registry = MaterialRegistry()
	registry.add(Material(kappa=1.0, rho=2.0, C=3.0))
	registry.add(Material(kappa=4.0, rho=5.0, C=6.0))
	return registry


class TestRegistry:
	def test_indices_follow_parse_order(self):
		registry = MaterialRegistry()
		assert registry.add(Material(kappa=1.0)) == 0
		assert registry.add(Material(kappa=2.0)) == 1
		assert len(registry) == 2

	def test_resolve(self, registry):
		assert registry.resolve(0).kappa == 1.0
		assert registry.resolve(1).kappa == 4.0

	def test_index_past_end_clamps_to_last(self, registry):
		assert registry.resolve(7).kappa == 4.0

	def test_negative_index_clamps_to_first(self, registry):
		assert registry.resolve(-3).kappa == 1.0

	def test_empty_registry(self):
		registry = MaterialRegistry()
		assert not registry
		with pytest.raises(LookupError):
			registry.resolve(0)

	def test_last(self, registry):
		assert registry.last().C == 6.0


class TestMaterial:
	def test_heat_capacity(self):
		assert Material(rho=2.0, C=3.0).heat_capacity == pytest.approx(6.0)

	def test_set_alias(self):
		material = Material.model_validate({"set": "Domain", "kappa": 2.0})
		assert material.set_name == "Domain"

	def test_immutable(self):
		material = Material(kappa=1.0)
		with pytest.raises(pydantic.ValidationError):
			material.kappa = 2.0

	def test_positive_properties(self):
		with pytest.raises(pydantic.ValidationError):
			Material(kappa=0.0)
