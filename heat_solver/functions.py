"""
Space-time functions used for sources, fluxes, boundary values and
analytical reference solutions.

Expressions are parsed with sympy in the variables x, y, z and t and
evaluated vectorised over point arrays of shape (3, N).
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Union

import numpy as np
import sympy

logger = logging.getLogger(__name__)

_SYMBOLS = sympy.symbols("x y z t")


def _as_points(X) -> np.ndarray:
	points = np.asarray(X, dtype=float)
	if points.ndim == 1:
		points = points.reshape(-1, 1)
	if points.shape[0] < 3:
		pad = np.zeros((3 - points.shape[0], points.shape[1]))
		points = np.vstack([points, pad])
	return points


class ScalarFunction(ABC):
	"""Base class for scalar functions f(X, t)"""

	def __call__(self, X, t: float = 0.0) -> np.ndarray:
		return self.evaluate(X, t)

	@abstractmethod
	def evaluate(self, X, t: float = 0.0) -> np.ndarray:
		"""Values at the points X of shape (3, N) and time t."""

	def is_vector(self) -> bool:
		return False


class ConstantFunction(ScalarFunction):
	"""Spatially and temporally constant value"""

	def __init__(self, value: float):
		self.value = float(value)

	def evaluate(self, X, t: float = 0.0) -> np.ndarray:
		points = _as_points(X)
		return np.full(points.shape[1], self.value)

	def __repr__(self) -> str:
		return f"ConstantFunction({self.value})"


class ExpressionFunction(ScalarFunction):
	"""Scalar function given as an expression string, e.g. ``"sin(pi*x)*exp(-t)"``"""

	def __init__(self, expression: str):
		self.expression = str(expression).strip()
		if not self.expression:
			raise ValueError("Empty function expression")
		try:
			self._expr = sympy.sympify(self.expression, locals={s.name: s for s in _SYMBOLS})
		except (sympy.SympifyError, SyntaxError, TypeError) as e:
			raise ValueError(f"Could not parse expression '{self.expression}': {e}") from e
		unknown = {s.name for s in self._expr.free_symbols} - {s.name for s in _SYMBOLS}
		if unknown:
			raise ValueError(f"Expression '{self.expression}' uses unknown symbols: {sorted(unknown)}")
		self._func = sympy.lambdify(_SYMBOLS, self._expr, modules="numpy")
		logger.debug(f"Parsed expression function: {self.expression}")

	def is_time_dependent(self) -> bool:
		return _SYMBOLS[3] in self._expr.free_symbols

	def evaluate(self, X, t: float = 0.0) -> np.ndarray:
		points = _as_points(X)
		values = self._func(points[0], points[1], points[2], float(t))
		return np.broadcast_to(np.asarray(values, dtype=float), points.shape[1:]).copy()

	def __repr__(self) -> str:
		return f"ExpressionFunction({self.expression!r})"


class VectorExpressionFunction(ScalarFunction):
	"""Vector valued function built from one expression per component"""

	def __init__(self, expressions: Sequence[str]):
		if not expressions:
			raise ValueError("Vector function needs at least one component")
		self.components = [ExpressionFunction(e) for e in expressions]

	def is_vector(self) -> bool:
		return True

	@property
	def dim(self) -> int:
		return len(self.components)

	def evaluate(self, X, t: float = 0.0) -> np.ndarray:
		return np.vstack([c.evaluate(X, t) for c in self.components])

	def __repr__(self) -> str:
		return f"VectorExpressionFunction({[c.expression for c in self.components]!r})"


def make_function(value: Union[None, float, str, Sequence[str]]) -> Optional[ScalarFunction]:
	"""Build a function from a number, an expression or a list of component expressions."""
	if value is None:
		return None
	if isinstance(value, (int, float)):
		return ConstantFunction(value)
	if isinstance(value, str):
		return ExpressionFunction(value)
	return VectorExpressionFunction([str(v) for v in value])


class AnalyticalSolution:
	"""Analytical reference solution: primary temperature field and optional secondary (flux) field"""

	def __init__(self, primary: Optional[ScalarFunction], secondary: Optional[ScalarFunction] = None):
		self.primary = primary
		self.secondary = secondary

	def secondary_field(self) -> Optional[ScalarFunction]:
		"""Return the secondary field, or None when the solution has none."""
		return self.secondary

	def has_primary(self) -> bool:
		return self.primary is not None
