"""
Time level bookkeeping for the stepping loop
"""

from dataclasses import dataclass, field
from typing import Optional

from .models import TimeParameters


@dataclass
class TimeStep:
	"""Current step counter and time level"""
	start: float = 0.0
	stop: float = 1.0
	dt: float = 0.1
	step: int = 0
	time: Optional[float] = None
	epsilon: float = field(default=1.0e-6, repr=False)

	def __post_init__(self):
		if self.dt <= 0.0:
			raise ValueError(f"Time step size must be positive, got {self.dt}")
		if self.time is None:
			self.time = self.start

	@classmethod
	def from_params(cls, params: TimeParameters) -> "TimeStep":
		return cls(start=params.start, stop=params.end, dt=params.dt)

	def finished(self) -> bool:
		return self.time + self.epsilon * self.dt >= self.stop

	def increment(self) -> bool:
		"""Advance to the next time level; returns False once the stop time is reached."""
		if self.finished():
			return False
		self.step += 1
		self.time += self.dt
		return True
