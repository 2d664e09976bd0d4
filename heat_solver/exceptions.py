"""
Exception hierarchy for the heat equation driver.

Each fatal phase has its own exception type so that the command line entry
point can translate it into a distinct process exit code.
"""


class HeatSolverError(RuntimeError):
	"""Base class for all fatal driver errors"""
	exit_code = 1


class ConfigurationError(HeatSolverError, ValueError):
	"""Malformed or missing input data; raised before any stepping begins"""
	exit_code = 1


class ModelReadError(HeatSolverError):
	"""The engine could not build the model (mesh, topology sets)"""
	exit_code = 2


class PreprocessingError(HeatSolverError):
	"""Property setup, thread groups or linear system allocation failed"""
	exit_code = 3


class SolveError(HeatSolverError):
	"""Assembly or linear solve failed for a time step"""
	exit_code = 4


class OutputError(HeatSolverError):
	"""Field output or restart checkpoint could not be written"""
	exit_code = 5
