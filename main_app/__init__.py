"""
Command line application for the heat equation simulator
"""

from .main import main, run_simulator, build_parser

__all__ = ["main", "run_simulator", "build_parser"]
