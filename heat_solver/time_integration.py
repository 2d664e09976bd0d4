"""
Time integration methods and backward difference coefficients
"""

import logging
from enum import Enum
from typing import List

logger = logging.getLogger(__name__)


class Method(str, Enum):
	"""Supported time integration methods"""
	BE = "be"
	BDF2 = "bdf2"


def order(method: Method) -> int:
	"""Order of the backward difference formula used by a method."""
	return 2 if Method(method) == Method.BDF2 else 1


# Coefficients of u^{n+1}, u^n, u^{n-1}, ... scaled by 1/dt
_BDF_COEFFICIENTS = {
	1: [1.0, -1.0],
	2: [1.5, -2.0, 0.5],
}


class BDF:
	"""
	Backward difference formula of order 1 or 2.

	The second order formula starts with one backward Euler step since only
	one previous level is available on the first step.
	"""

	def __init__(self, order: int):
		if order not in _BDF_COEFFICIENTS:
			raise ValueError(f"Unsupported BDF order {order}")
		self.order = order
		self.step = 0

	def advance_step(self) -> None:
		self.step += 1

	def set_step(self, step: int) -> None:
		self.step = max(int(step), 0)

	@property
	def actual_order(self) -> int:
		return max(1, min(self.order, self.step))

	def coefficients(self) -> List[float]:
		return list(_BDF_COEFFICIENTS[self.actual_order])
