"""
Topology set registry: named groups of tagged mesh entities
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class TopologySet:
	"""Entities of one dimension carrying any of the given tags"""
	name: str
	dim: int
	tags: List[int] = field(default_factory=list)


class TopologySets:
	"""Case-insensitive lookup of topology sets by name"""

	def __init__(self):
		self._sets: Dict[str, TopologySet] = {}

	def add(self, name: str, dim: int, tags: List[int]) -> TopologySet:
		tset = TopologySet(name=name, dim=int(dim), tags=[int(t) for t in tags])
		self._sets[name] = tset
		logger.debug(f"Topology set '{name}': dim={tset.dim} tags={tset.tags}")
		return tset

	def find(self, name: Optional[str]) -> Optional[TopologySet]:
		"""Exact match first, then a case-insensitive one."""
		if not name:
			return None
		if name in self._sets:
			return self._sets[name]
		name_lower = name.lower().strip()
		for key, tset in self._sets.items():
			if key.lower().strip() == name_lower:
				return tset
		return None

	def names(self) -> List[str]:
		return list(self._sets.keys())

	def __contains__(self, name: str) -> bool:
		return self.find(name) is not None

	def __len__(self) -> int:
		return len(self._sets)


def from_gmsh_physical_groups(physical_groups: Dict[str, Tuple[int, int]]) -> TopologySets:
	"""Turn gmsh physical groups ``{name: (dim, tag)}`` into topology sets."""
	sets = TopologySets()
	for name, group in (physical_groups or {}).items():
		dim, tag = group
		sets.add(name, dim, [tag])
	return sets
