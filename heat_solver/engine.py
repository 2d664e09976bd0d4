"""
Interface to the external finite element engine.

The driver never assembles or solves anything itself. Everything that
touches the mesh, the degrees of freedom, the linear system or inter-process
communication goes through an FEEngine implementation (see fenics_backend
for the DOLFINx one).
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

import numpy as np

if TYPE_CHECKING:
	from .functions import ScalarFunction
	from .models import BoundaryCondition, GeometryConfig
	from .properties import Property, PropertyCouplingResolver
	from .solution_history import SolutionHistory
	from .time_step import TimeStep


class FormBuilder(ABC):
	"""
	Receives the contributions of the governing integrands for one assembly.

	Regions are given as Property objects; a property with no topology set
	means the whole domain (interior terms) or the whole boundary.
	"""

	@abstractmethod
	def add_mass(self, region: "Property", coeff: float) -> None:
		"""Add coeff * (u, v) over the region."""

	@abstractmethod
	def add_diffusion(self, region: "Property", kappa: float) -> None:
		"""Add kappa * (grad u, grad v) over the region."""

	@abstractmethod
	def add_history_load(self, region: "Property", coeff: float, level: int) -> None:
		"""Add coeff * (u_level, v) to the right-hand side, u_level taken from the solution history."""

	@abstractmethod
	def add_source(self, region: "Property", func: "ScalarFunction", time: float) -> None:
		"""Add (f(t), v) to the right-hand side."""

	@abstractmethod
	def add_boundary_mass(self, region: "Property", coeff: float) -> None:
		"""Add coeff * <u, v> over the boundary region."""

	@abstractmethod
	def add_boundary_load(self, region: "Property", func: "ScalarFunction", time: float, scale: float = 1.0) -> None:
		"""Add scale * <g(t), v> over the boundary region; vector valued g is dotted with the normal."""


class FEEngine(ABC):
	"""External assembly / solve / output collaborator"""

	@property
	def rank(self) -> int:
		"""Rank of this process; rank 0 is the coordinating participant."""
		return 0

	@property
	def size(self) -> int:
		return 1

	@property
	@abstractmethod
	def num_dofs(self) -> int:
		"""Length of a solution vector on this process."""

	@property
	@abstractmethod
	def topology_sets(self) -> Sequence[str]:
		"""Names of the topology sets known to the model."""

	@abstractmethod
	def read_model(self, geometry: "GeometryConfig") -> bool:
		"""Build the mesh and topology sets."""

	@abstractmethod
	def preprocess(self, properties: List["Property"]) -> bool:
		"""Bind properties to mesh entities."""

	def element_connectivity(self, prop: "Property") -> List[Sequence[int]]:
		"""Node indices of each element (or facet) of the region of a property."""
		return []

	def set_thread_groups(self, prop: "Property", groups: List[List[int]]) -> None:
		"""Receive independent element groups for a region."""

	@abstractmethod
	def init_system(self, options: Optional[Dict[str, Any]] = None) -> bool:
		"""Allocate the linear system."""

	@abstractmethod
	def initial_conditions(self, func: Optional["ScalarFunction"]) -> np.ndarray:
		"""Return the initial solution vector (zero if func is None)."""

	@abstractmethod
	def update_dirichlet(self, time: float, conditions: List["BoundaryCondition"]) -> bool:
		"""Evaluate Dirichlet values for the new time level."""

	@abstractmethod
	def assemble_and_solve(self, time_step: "TimeStep", history: "SolutionHistory", resolver: "PropertyCouplingResolver") -> Optional[np.ndarray]:
		"""
		Assemble the system for the new time level from the governing
		integrands of the resolver and solve it.

		Returns the new solution vector, or None if assembly or solve failed.
		"""

	@abstractmethod
	def boundary_flux(self, solution: np.ndarray, set_name: str, code: int, time: float, kappa: float) -> np.ndarray:
		"""Partition-local normal heat flux through a boundary region; empty if the region is unknown."""

	@abstractmethod
	def stored_energy(self, solution: np.ndarray, set_name: str, code: int, heat_capacity: float) -> np.ndarray:
		"""Partition-local stored energy in a volume region; empty if the region is unknown."""

	def reduce(self, values: np.ndarray) -> np.ndarray:
		"""Sum partition-local contributions over all processes."""
		return np.asarray(values, dtype=float)

	def save_points(self, solution: np.ndarray, time: float, step: int, zero_tolerance: float = 1e-8) -> bool:
		"""Write solution samples at the configured result points."""
		return True

	def write_field(self, solution: np.ndarray, dump_index: int, time: float, name: str) -> bool:
		"""Write a field snapshot for visualization."""
		return True

	@abstractmethod
	def vector_norms(self, solution: np.ndarray) -> tuple:
		"""Return (discrete L2 norm, max value) of a solution vector."""

	def solution_norms(self, history: "SolutionHistory", time: float, kappa: float, exact: Optional["ScalarFunction"] = None) -> List[np.ndarray]:
		"""
		Return global norms of the solution.

		Slot layout of the first array: L2 and H1 (energy) norm of the
		solution, external energy, then with an exact solution the L2 norm of
		the exact solution, L2 norm of the error, H1 norm of the exact
		solution and H1 norm of the error.
		"""
		return []

	def close(self) -> None:
		"""Release output files."""
