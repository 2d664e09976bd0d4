"""
Declarative boundary / volume integral requests (heat flux, stored energy)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List

from .models import BoundaryQuantityConfig
from .properties import PropertyCouplingResolver

logger = logging.getLogger(__name__)

CODE_BASE_OFFSET = 1000


class QuantityKind(str, Enum):
	FLUX = "heatflux"
	STORED_ENERGY = "storedenergy"

	@property
	def heading(self) -> str:
		return "Heat flux over surface" if self is QuantityKind.FLUX else "Stored energy in volume"

	@property
	def column_name(self) -> str:
		return "Flux" if self is QuantityKind.FLUX else "Energy"


@dataclass(frozen=True)
class BoundaryQuantitySpec:
	"""One integral to evaluate and persist on a step cadence"""
	kind: QuantityKind
	set_name: str = ""
	code: int = 0
	file: str = ""
	stride: int = 1

	@property
	def enabled(self) -> bool:
		return self.code != 0 and self.stride >= 1 and bool(self.set_name)

	def fires_on(self, step: int) -> bool:
		"""True on step 1 and every `stride` steps after it."""
		if not self.enabled or step < 1:
			return False
		return (step - 1) % self.stride == 0


class BoundaryQuantitySet:
	"""The configured specs, one list per kind"""

	def __init__(self):
		self._specs: Dict[QuantityKind, List[BoundaryQuantitySpec]] = {kind: [] for kind in QuantityKind}

	def add(self, kind: QuantityKind, config: BoundaryQuantityConfig, resolver: PropertyCouplingResolver,
			topology_sets: Iterable[str]) -> BoundaryQuantitySpec:
		"""
		Create a spec from its input block. A named set gets a fresh property
		code of CODE_BASE_OFFSET * (number of specs of this kind + 1), moved
		past codes already in use; without a set the explicit code is kept.
		"""
		kind = QuantityKind(kind)
		code = config.code
		if config.set_name:
			base = CODE_BASE_OFFSET * (len(self._specs[kind]) + 1)
			code = resolver.unique_property_code(config.set_name, base, topology_sets)
		spec = BoundaryQuantitySpec(kind=kind, set_name=config.set_name, code=code, file=config.file, stride=config.stride)
		self._specs[kind].append(spec)
		logger.info(f"\t{kind.heading} on set '{spec.set_name}' with code {spec.code}, stride {spec.stride}"
					+ (f", file {spec.file}" if spec.file else ""))
		return spec

	def of_kind(self, kind: QuantityKind) -> List[BoundaryQuantitySpec]:
		return list(self._specs[QuantityKind(kind)])

	@property
	def fluxes(self) -> List[BoundaryQuantitySpec]:
		return self.of_kind(QuantityKind.FLUX)

	@property
	def energies(self) -> List[BoundaryQuantitySpec]:
		return self.of_kind(QuantityKind.STORED_ENERGY)

	def has_flux_code(self, code: int) -> bool:
		return any(abs(spec.code) == abs(code) for spec in self._specs[QuantityKind.FLUX])

	def __iter__(self):
		for kind in QuantityKind:
			yield from self._specs[kind]

	def __len__(self) -> int:
		return sum(len(specs) for specs in self._specs.values())
