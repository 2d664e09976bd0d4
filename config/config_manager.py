"""
Input File Manager
Loads the JSON problem description and validates it into the data models
"""

import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional, Union

from pydantic import ValidationError

from heat_solver.exceptions import ConfigurationError
from heat_solver.models import ProblemConfig

logger = logging.getLogger(__name__)


class ConfigManager:
	"""Reads one simulation input file"""

	def __init__(self, config_file: Union[str, Path]):
		self.config_file = Path(config_file)
		self._config = self._load_config()
		self._problem: Optional[ProblemConfig] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "ConfigManager":
		"""Build a manager around an in-memory document."""
		manager = cls.__new__(cls)
		manager.config_file = None
		manager._config = json.loads(json.dumps(data))
		manager._problem = None
		return manager

	# -------------------- IO --------------------

	def _load_config(self) -> Dict[str, Any]:
		"""Load configuration from JSON file"""
		if not self.config_file.exists():
			logger.error(f"Input file {self.config_file} not found")
			raise ConfigurationError(f"Input file {self.config_file} not found")
		try:
			with open(self.config_file, 'r') as f:
				config = json.load(f)
		except json.JSONDecodeError as e:
			raise ConfigurationError(f"Input file {self.config_file} is not valid JSON: {e}") from e
		if not isinstance(config, dict):
			raise ConfigurationError(f"Input file {self.config_file} must contain a JSON object")
		logger.info(f"Loaded input from {self.config_file}")
		return config

	def resolve_path(self, path: str) -> str:
		"""Resolve a file name relative to the directory of the input file."""
		if not path or self.config_file is None or Path(path).is_absolute():
			return path
		return str(self.config_file.parent / path)

	# -------------------- Safe getters --------------------

	def get(self, key: str, default: Any = None) -> Any:
		"""Get configuration value by key (supports dot notation)"""
		value = self._config
		for k in key.split('.'):
			if not isinstance(value, dict) or k not in value:
				return default
			value = value[k]
		return value

	def get_all(self) -> Dict[str, Any]:
		"""Get entire configuration"""
		return json.loads(json.dumps(self._config))  # deep copy

	# -------------------- Validation --------------------

	def problem(self) -> ProblemConfig:
		"""Validate the document into a ProblemConfig (cached)."""
		if self._problem is None:
			data = self.get_all()
			geometry = data.get("geometry")
			if isinstance(geometry, dict) and geometry.get("mesh_file"):
				geometry["mesh_file"] = self.resolve_path(geometry["mesh_file"])
			try:
				self._problem = ProblemConfig.model_validate(data)
			except ValidationError as e:
				logger.error(f"Invalid input document: {e}")
				raise ConfigurationError(f"Invalid input document: {e}") from e
		return self._problem
