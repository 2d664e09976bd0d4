"""
Bounded history of solution vectors for multi-step time integration
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


class SolutionHistory:
	"""
	Level 0 is the current solution, higher levels are older. Besides the
	current level the history retains the `order` previous levels a
	backward difference formula of that order needs, so during assembly
	level k (k >= 1) holds u^{n+1-k}.

	Only the driver mutates it: advance() on a new step, update_current()
	after a converged solve.
	"""

	def __init__(self, order: int, dof_count: int):
		if order < 1:
			raise ValueError(f"History order must be at least 1, got {order}")
		if dof_count < 0:
			raise ValueError(f"Negative number of degrees of freedom: {dof_count}")
		self.order = int(order)
		self.dof_count = int(dof_count)
		self._levels: List[np.ndarray] = [np.zeros(self.dof_count) for _ in range(self.order + 1)]

	def apply_initial_conditions(self, initial: Optional[np.ndarray]) -> None:
		"""Set level 0 from an initial solution vector (zero if None)."""
		if initial is None:
			self._levels[0][:] = 0.0
			return
		self._levels[0][:] = self._checked(initial)

	def advance(self) -> None:
		"""Shift every level one position older; the oldest level is discarded."""
		for n in range(len(self._levels) - 1, 0, -1):
			self._levels[n][:] = self._levels[n - 1]

	def current(self) -> np.ndarray:
		return self._levels[0]

	def history(self, k: int) -> np.ndarray:
		if not 0 <= k < len(self._levels):
			raise IndexError(f"History level {k} out of range for order {self.order}")
		return self._levels[k]

	def update_current(self, solution: np.ndarray) -> None:
		self._levels[0][:] = self._checked(solution)

	@property
	def levels(self) -> List[np.ndarray]:
		return [level.copy() for level in self._levels]

	def restore(self, levels: Sequence[np.ndarray]) -> None:
		"""Restore levels from a checkpoint; missing older levels are copied from the oldest one given."""
		if not levels:
			raise ValueError("No solution levels to restore")
		for n in range(len(self._levels)):
			self._levels[n][:] = self._checked(levels[min(n, len(levels) - 1)])
		logger.debug(f"Restored {min(len(levels), len(self._levels))} of {len(self._levels)} solution levels")

	def _checked(self, vector) -> np.ndarray:
		vector = np.asarray(vector, dtype=float)
		if vector.shape != (self.dof_count,):
			raise ValueError(f"Solution vector has shape {vector.shape}, expected ({self.dof_count},)")
		return vector

	def __len__(self) -> int:
		return len(self._levels)
