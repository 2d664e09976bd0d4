"""
Dirichlet boundary condition application
"""

import logging
from typing import Dict, List, Optional

import numpy as np
from dolfinx import fem

from heat_solver.functions import make_function
from heat_solver.models import BoundaryCondition
from .physical_groups import TopologySets

logger = logging.getLogger(__name__)


def entities_of_set(tset, cell_tags, facet_tags, tdim: int) -> np.ndarray:
	"""Local entity indices carrying any tag of a topology set."""
	tags = facet_tags if tset.dim == tdim - 1 else cell_tags
	if tags is None:
		return np.empty(0, dtype=np.int32)
	found = [tags.find(tag) for tag in tset.tags]
	if not found:
		return np.empty(0, dtype=np.int32)
	return np.unique(np.concatenate(found)).astype(np.int32)


class DirichletConditions:
	"""
	Holds one dolfinx DirichletBC per condition. The boundary dofs are
	located once; the values are re-interpolated on every update.
	"""

	def __init__(self, V, topology_sets: TopologySets, cell_tags, facet_tags):
		self.V = V
		self.topology_sets = topology_sets
		self.cell_tags = cell_tags
		self.facet_tags = facet_tags
		self._dofs: Dict[str, np.ndarray] = {}
		self._values: Dict[int, fem.Function] = {}
		self.bcs: List[fem.DirichletBC] = []

	def _locate(self, set_name: str) -> Optional[np.ndarray]:
		if set_name in self._dofs:
			return self._dofs[set_name]
		tset = self.topology_sets.find(set_name)
		if tset is None:
			return None
		mesh = self.V.mesh
		tdim = mesh.topology.dim
		entities = entities_of_set(tset, self.cell_tags, self.facet_tags, tdim)
		mesh.topology.create_connectivity(tset.dim, tdim)
		dofs = fem.locate_dofs_topological(self.V, tset.dim, entities)
		self._dofs[set_name] = dofs
		logger.debug(f"Dirichlet set '{set_name}': {dofs.size} dofs")
		return dofs

	def update(self, time: float, conditions: List[BoundaryCondition]) -> bool:
		"""(Re)build the DirichletBCs with the values at a time level."""
		bcs = []
		for i, bc in enumerate(conditions):
			dofs = self._locate(bc.set_name)
			if dofs is None:
				logger.error(f"Dirichlet condition on unknown topology set '{bc.set_name}'")
				return False
			func = make_function(bc.function_spec())
			g = self._values.get(i)
			if g is None:
				g = fem.Function(self.V)
				self._values[i] = g
			if func is None:
				g.x.array[:] = 0.0
			else:
				g.interpolate(lambda X: func(X, time))
			bcs.append(fem.dirichletbc(g, dofs))
		self.bcs = bcs
		return True
