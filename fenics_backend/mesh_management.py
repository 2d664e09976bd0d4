"""
Mesh construction and topology set tagging
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
from mpi4py import MPI
import dolfinx
from dolfinx.io import gmsh as gmshio

from heat_solver.models import GeometryConfig
from .physical_groups import TopologySets, from_gmsh_physical_groups

logger = logging.getLogger(__name__)

DOMAIN_TAG = 1

# (set name, axis, side) per boundary tag of the built-in meshes; tag = position + 1
BOUNDARY_FACES = [
	("Left", 0, 0),
	("Right", 0, 1),
	("Bottom", 1, 0),
	("Top", 1, 1),
	("Front", 2, 0),
	("Back", 2, 1),
]


@dataclass
class ModelData:
	mesh: Any
	cell_tags: Any
	facet_tags: Any
	topology_sets: TopologySets


def _tag_cells(mesh, tag: int = DOMAIN_TAG):
	tdim = mesh.topology.dim
	index_map = mesh.topology.index_map(tdim)
	num_cells = index_map.size_local + index_map.num_ghosts
	cells = np.arange(num_cells, dtype=np.int32)
	return dolfinx.mesh.meshtags(mesh, tdim, cells, np.full(num_cells, tag, dtype=np.int32))


def _tag_box_faces(mesh, lower: np.ndarray, upper: np.ndarray, gdim: int):
	fdim = mesh.topology.dim - 1
	facets, values = [], []
	for position, (name, axis, side) in enumerate(BOUNDARY_FACES):
		if axis >= gdim:
			continue
		coord = lower[axis] if side == 0 else upper[axis]
		found = dolfinx.mesh.locate_entities_boundary(
			mesh, fdim, lambda X, a=axis, c=coord: np.isclose(X[a], c)
		)
		facets.append(found)
		values.append(np.full(found.size, position + 1, dtype=np.int32))
	facets = np.concatenate(facets).astype(np.int32)
	values = np.concatenate(values)
	# a facet on an edge of the box belongs to one face only
	facets, first = np.unique(facets, return_index=True)
	return dolfinx.mesh.meshtags(mesh, fdim, facets, values[first])


def create_builtin_mesh(geometry: GeometryConfig, comm=MPI.COMM_WORLD, dimension: int = 3) -> ModelData:
	"""Create a rectangle or box mesh with the Left/Right/Bottom/Top(/Front/Back) and Domain sets."""
	gdim = 2 if geometry.type == "rectangle" or dimension == 2 else 3
	origin = np.zeros(3)
	size = np.ones(3)
	origin[:len(geometry.origin)] = geometry.origin[:3]
	size[:len(geometry.size)] = geometry.size[:3]
	elements = list(geometry.elements) + [geometry.elements[-1]] * (3 - len(geometry.elements))
	lower, upper = origin, origin + size

	if gdim == 2:
		mesh = dolfinx.mesh.create_rectangle(comm, [lower[:2], upper[:2]], elements[:2])
	else:
		mesh = dolfinx.mesh.create_box(comm, [lower, upper], elements[:3])
	mesh.topology.create_connectivity(mesh.topology.dim - 1, mesh.topology.dim)

	sets = TopologySets()
	for position, (name, axis, side) in enumerate(BOUNDARY_FACES):
		if axis < gdim:
			sets.add(name, gdim - 1, [position + 1])
	sets.add("Domain", gdim, [DOMAIN_TAG])

	logger.info(f"Created {geometry.type} mesh with {elements[:gdim]} elements")
	return ModelData(mesh, _tag_cells(mesh), _tag_box_faces(mesh, lower, upper, gdim), sets)


def create_dolfinx_mesh(msh_file: Optional[str], comm=MPI.COMM_WORLD, gdim: int = 3) -> ModelData:
	"""
	Create DOLFINx mesh from a gmsh .msh file.

	Physical groups become topology sets.
	"""
	if not msh_file:
		raise ValueError("msh_file path is required")

	logger.debug(f"Loading mesh from {msh_file}")
	mesh_data = gmshio.read_from_msh(msh_file, comm, 0, gdim=gdim)
	mesh = mesh_data.mesh
	mesh.topology.create_connectivity(mesh.topology.dim - 1, mesh.topology.dim)
	sets = from_gmsh_physical_groups(getattr(mesh_data, "physical_groups", None) or {})
	logger.debug(f"Successfully loaded mesh: {len(mesh.geometry.x)} vertices, {len(sets)} physical groups")
	return ModelData(mesh, mesh_data.cell_tags, mesh_data.facet_tags, sets)


def create_model(geometry: GeometryConfig, comm=MPI.COMM_WORLD, dimension: int = 3) -> ModelData:
	"""Build the model for a geometry block; explicit topology sets are added last and win."""
	if geometry.type == "msh":
		model = create_dolfinx_mesh(geometry.mesh_file, comm, gdim=2 if dimension == 2 else 3)
	else:
		model = create_builtin_mesh(geometry, comm, dimension)
	for name, tset in geometry.topology_sets.items():
		model.topology_sets.add(name, tset.dim, tset.tags)
	return model


def get_mesh_cells(mesh, dim: Optional[int] = None, entities=None):
	"""Vertex indices of each entity of a dimension (all local entities if none given)."""
	dim = mesh.topology.dim if dim is None else dim
	mesh.topology.create_connectivity(dim, 0)
	conn = mesh.topology.connectivity(dim, 0)
	if entities is None:
		entities = range(mesh.topology.index_map(dim).size_local)
	return [conn.links(int(e)).tolist() for e in entities]
