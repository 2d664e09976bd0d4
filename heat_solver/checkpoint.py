"""
Restart checkpoints: solution levels and time step data stored with numpy
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional, Union

import numpy as np

from .solution_history import SolutionHistory
from .time_step import TimeStep

logger = logging.getLogger(__name__)

CHECKPOINT_VERSION = 1


def checkpoint_path(path: Union[str, Path]) -> Path:
	path = Path(path)
	return path if path.suffix == ".npz" else path.with_name(path.name + ".npz")


def save_checkpoint(path: Union[str, Path], history: SolutionHistory, time_step: TimeStep) -> Path:
	"""Write all solution levels plus step counter and time to `<path>.npz`."""
	out_path = checkpoint_path(path)
	np.savez(
		out_path,
		levels=np.stack(history.levels),
		step=np.array(time_step.step, dtype=np.int64),
		time=np.array(time_step.time, dtype=float),
		dt=np.array(time_step.dt, dtype=float),
		version=np.array(CHECKPOINT_VERSION, dtype=np.int32),
	)
	logger.debug(f"Wrote restart checkpoint for step {time_step.step} to {out_path}")
	return out_path


def load_checkpoint(path: Union[str, Path], expected_dofs: Optional[int] = None) -> Dict[str, Any]:
	"""
	Load a checkpoint written by save_checkpoint().

	Returns a dict with `levels` (list of vectors, newest first), `step`,
	`time` and `dt`. Raises ValueError if the vector length does not match.
	"""
	in_path = checkpoint_path(path)
	with np.load(in_path, allow_pickle=False) as data:
		levels = data["levels"]
		if levels.ndim != 2:
			raise ValueError(f"Checkpoint {in_path} has malformed solution levels of shape {levels.shape}")
		if expected_dofs is not None and levels.shape[1] != int(expected_dofs):
			raise ValueError(
				f"Checkpoint DOF count mismatch: file has {levels.shape[1]}, model has {expected_dofs}"
			)
		result = {
			"levels": [levels[n].copy() for n in range(levels.shape[0])],
			"step": int(data["step"]),
			"time": float(data["time"]),
			"dt": float(data["dt"]),
		}
	logger.info(f"Loaded restart checkpoint {in_path}: step {result['step']}, time {result['time']}")
	return result
