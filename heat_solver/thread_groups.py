"""
Partitioning of region elements into independent thread groups.

Two elements sharing a node never end up in the same group, so the elements
of one group can be assembled concurrently without write conflicts on the
shared output buffers.
"""

import logging
from typing import List, Sequence

logger = logging.getLogger(__name__)


def color_elements(element_nodes: Sequence[Sequence[int]]) -> List[List[int]]:
	"""Greedy colouring of elements by shared nodes; returns element indices per group."""
	groups: List[List[int]] = []
	group_nodes: List[set] = []
	for element, nodes in enumerate(element_nodes):
		nodes = set(int(n) for n in nodes)
		for g, used in enumerate(group_nodes):
			if used.isdisjoint(nodes):
				groups[g].append(element)
				used.update(nodes)
				break
		else:
			groups.append([element])
			group_nodes.append(set(nodes))
	return groups


def is_independent(groups: Sequence[Sequence[int]], element_nodes: Sequence[Sequence[int]]) -> bool:
	"""Check that no two elements within a group share a node."""
	for group in groups:
		seen = set()
		for element in group:
			nodes = set(int(n) for n in element_nodes[element])
			if not seen.isdisjoint(nodes):
				return False
			seen.update(nodes)
	return True
