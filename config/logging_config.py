import logging
import os
from typing import Optional


def configure_logging(level: Optional[str] = None, msg_level: Optional[int] = None) -> None:
	"""Configure root logging with a consistent, concise format.

	Level precedence: function arg > ENV LOG_LEVEL > message level > INFO.
	A negative message level silences progress output (WARNING), message
	level 2 and above turns on DEBUG.
	"""
	default = "INFO"
	if msg_level is not None:
		if msg_level < 0:
			default = "WARNING"
		elif msg_level >= 2:
			default = "DEBUG"
	level_name = (level or os.getenv("LOG_LEVEL") or default).upper()
	log_level = getattr(logging, level_name, None)
	if not isinstance(log_level, int):
		log_level = logging.INFO

	logging.basicConfig(
		level=log_level,
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
	)


def get_logger(name: str) -> logging.Logger:
	"""Get a module logger."""
	return logging.getLogger(name)
