"""
Property codes and the coupling between mesh regions and governing integrands
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional

from .functions import ScalarFunction
from .integrands import HeatEquationIntegrand, Integrand, WeakDirichletIntegrand
from .materials import MaterialRegistry
from .models import Material, PropertyType

if TYPE_CHECKING:
	from .engine import FormBuilder
	from .time_step import TimeStep

logger = logging.getLogger(__name__)

WEAK_DIRICHLET_TYPES = (PropertyType.NEUMANN_GENERIC, PropertyType.ROBIN)


@dataclass(frozen=True)
class Property:
	"""A classified region: property type, region index and the topology set it lives on"""
	ptype: PropertyType
	pindx: int
	set_name: Optional[str] = None


class PropertyCouplingResolver:
	"""
	Decides which integrand governs each region index.

	Material regions resolve through the MaterialRegistry, Neumann regions
	through the registered flux functions, and generic Neumann / Robin
	regions are bound to the single shared weak Dirichlet integrand.
	"""

	def __init__(self, materials: MaterialRegistry, primary: HeatEquationIntegrand, weak_dirichlet: WeakDirichletIntegrand):
		self.materials = materials
		self.primary = primary
		self.weak_dirichlet = weak_dirichlet
		self._properties: List[Property] = []
		self._fluxes: Dict[int, ScalarFunction] = {}
		self._integrands: Dict[int, Integrand] = {}

	# -------------------- Property registration --------------------

	@property
	def properties(self) -> List[Property]:
		return list(self._properties)

	def set_property_type(self, code: int, ptype: PropertyType, set_name: Optional[str] = None) -> List[Property]:
		"""
		Classify a region index.

		With a set name the (code, set) pair is (re)classified. Without one,
		every boundary property already carrying the code is reclassified,
		or a set-less property is added if there is none. Material entries
		are never reclassified.
		"""
		ptype = PropertyType(ptype)
		code = int(code)
		changed = []
		if ptype != PropertyType.MATERIAL:
			for i, prop in enumerate(self._properties):
				if prop.pindx != code or prop.ptype == PropertyType.MATERIAL:
					continue
				if set_name is None or prop.set_name == set_name:
					self._properties[i] = Property(ptype, code, prop.set_name)
					changed.append(self._properties[i])
		if not changed:
			changed.append(Property(ptype, code, set_name))
			self._properties.append(changed[0])
		logger.debug(f"Property code {code} classified as {ptype.value} (set={set_name}, entries={len(changed)})")
		return changed

	def properties_of_type(self, *ptypes: PropertyType) -> List[Property]:
		return [p for p in self._properties if p.ptype in ptypes]

	def codes_in_use(self) -> set:
		return {abs(p.pindx) for p in self._properties if p.ptype != PropertyType.MATERIAL}

	def unique_property_code(self, set_name: str, base: int, topology_sets: Iterable[str]) -> int:
		"""
		Derive a property code for a topology set.

		Starts at base and moves past codes already in use. Returns 0 if the
		set is unknown to the model, which disables whatever requested it.
		"""
		if set_name not in set(topology_sets):
			logger.warning(f"Topology set '{set_name}' not found in the model")
			return 0
		code = max(int(base), 1)
		used = self.codes_in_use()
		while code in used:
			code += 1
		self.set_property_type(code, PropertyType.UNDEFINED, set_name)
		return code

	def register_flux(self, code: int, func: ScalarFunction) -> None:
		self._fluxes[int(code)] = func

	def flux_for(self, code: int) -> Optional[ScalarFunction]:
		return self._fluxes.get(int(code))

	# -------------------- Governing operator binding --------------------

	def bind_material_to_region(self, index: int) -> Material:
		"""Bind the material of a region index into both the primary and the weak Dirichlet integrand."""
		material = self.materials.resolve(index)
		self.primary.set_material(material)
		self.weak_dirichlet.set_material(material)
		return material

	def init_material(self, index: int) -> bool:
		try:
			self.bind_material_to_region(index)
		except LookupError as e:
			logger.error(f"Cannot initialize material for region {index}: {e}")
			return False
		return True

	def init_neumann(self, index: int) -> bool:
		"""Bind the flux function registered under a region index; False if there is none."""
		func = self._fluxes.get(int(index))
		if func is None:
			logger.error(f"No flux function registered for Neumann property {index}")
			return False
		self.primary.set_flux(func)
		self.weak_dirichlet.set_flux(func)
		return True

	def couple_weak_dirichlet(self) -> int:
		"""
		Bind every generic Neumann / Robin region index without an explicit
		integrand to the shared weak Dirichlet integrand. Returns the number
		of new bindings; calling it again adds nothing.
		"""
		self._integrands.setdefault(0, self.primary)
		added = 0
		for prop in self.properties_of_type(*WEAK_DIRICHLET_TYPES):
			if prop.pindx not in self._integrands:
				self._integrands[prop.pindx] = self.weak_dirichlet
				added += 1
				logger.debug(f"Coupled weak Dirichlet integrand to property code {prop.pindx}")
		return added

	def bind_integrand(self, index: int, integrand: Integrand) -> None:
		self._integrands[int(index)] = integrand

	def integrand_for(self, index: int) -> Integrand:
		return self._integrands.get(int(index), self.primary)

	@property
	def governing_map(self) -> Mapping[int, Integrand]:
		return MappingProxyType(self._integrands)

	# -------------------- Assembly --------------------

	def assemble(self, builder: "FormBuilder", time_step: "TimeStep") -> bool:
		"""Let the governing integrand of every region contribute to the builder."""
		material_props = self.properties_of_type(PropertyType.MATERIAL)
		if not material_props:
			if not self.init_material(len(self.materials) - 1):
				return False
			self.primary.assemble_interior(builder, Property(PropertyType.MATERIAL, 0), time_step)

		for prop in self._properties:
			if prop.ptype == PropertyType.MATERIAL:
				if not self.init_material(prop.pindx):
					return False
				self.primary.assemble_interior(builder, prop, time_step)
				continue
			integrand = self.integrand_for(prop.pindx)
			if prop.ptype == PropertyType.NEUMANN:
				if not self.init_neumann(prop.pindx):
					return False
				integrand.assemble_boundary(builder, prop, time_step)
			elif prop.ptype in WEAK_DIRICHLET_TYPES:
				if integrand is self.weak_dirichlet:
					self.weak_dirichlet.set_flux(self._fluxes.get(prop.pindx))
				integrand.assemble_boundary(builder, prop, time_step)
		return True
