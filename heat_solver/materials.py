"""
Material registry.

Materials are stored in parse order and referenced everywhere else by
their integer index.
"""

import logging
from typing import Iterator, List

from .models import Material

logger = logging.getLogger(__name__)


class MaterialRegistry:
	"""Ordered arena of immutable materials"""

	def __init__(self):
		self._materials: List[Material] = []

	def add(self, material: Material) -> int:
		"""Append a material and return its index."""
		self._materials.append(material)
		index = len(self._materials) - 1
		logger.debug(f"Registered material {index}: kappa={material.kappa}, rho={material.rho}, C={material.C}")
		return index

	def resolve(self, index: int) -> Material:
		"""
		Return the material for a region index.

		Indices past the end resolve to the last registered material.
		Raises LookupError if no material has been registered.
		"""
		if not self._materials:
			raise LookupError("No materials registered")
		index = max(int(index), 0)
		return self._materials[min(index, len(self._materials) - 1)]

	def last(self) -> Material:
		return self.resolve(len(self._materials) - 1)

	def __len__(self) -> int:
		return len(self._materials)

	def __iter__(self) -> Iterator[Material]:
		return iter(self._materials)

	def __bool__(self) -> bool:
		return bool(self._materials)
