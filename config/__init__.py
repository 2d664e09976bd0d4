"""
Input file and logging configuration
"""

from .config_manager import ConfigManager
from .logging_config import configure_logging, get_logger

__all__ = ["ConfigManager", "configure_logging", "get_logger"]
