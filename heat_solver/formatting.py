"""
Number formatting for point sample output
"""

from typing import Iterable


def format_value(value: float, zero_tolerance: float = 1e-8, precision: int = 6) -> str:
	"""Format a value, printing magnitudes below zero_tolerance as 0."""
	value = float(value)
	if abs(value) < zero_tolerance:
		value = 0.0
	return f"{value:.{precision}g}"


def format_point_row(point_index: int, coords: Iterable[float], values: Iterable[float], time: float,
		zero_tolerance: float = 1e-8) -> str:
	coord_str = " ".join(f"{c:g}" for c in coords)
	value_str = " ".join(format_value(v, zero_tolerance) for v in values)
	return f"{time:10.6f} point {point_index + 1} ({coord_str}): {value_str}"
