"""
Main application entry point for the heat equation simulator
Parses the command line, reads the input file and runs the time stepping driver
"""

import argparse
import sys
from typing import Any, Callable, Dict, List, Optional

from config.config_manager import ConfigManager
from config.logging_config import configure_logging, get_logger
from heat_solver import HeatEquationDriver, FEEngine, HeatSolverError, Method, ModelReadError
from heat_solver.models import ProblemConfig
from heat_solver.time_integration import order

logger = get_logger(__name__)

EngineFactory = Callable[[ProblemConfig, Dict[str, Any], int], FEEngine]

SOLVER_FLAGS = ("dense", "spr", "superlu", "samg", "petsc")
DISCRETIZATION_FLAGS = ("lag", "spec", "LR")


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="heat-solver",
		description="Transient heat equation solver",
		allow_abbrev=False,
	)
	parser.add_argument("input", nargs="?", help="JSON input file")

	solvers = parser.add_mutually_exclusive_group()
	for flag in SOLVER_FLAGS:
		solvers.add_argument(f"-{flag}", dest="solver", action="store_const", const=flag,
			help=f"use the {flag} linear equation solver")

	discretizations = parser.add_mutually_exclusive_group()
	for flag in DISCRETIZATION_FLAGS:
		discretizations.add_argument(f"-{flag}", dest="discretization", action="store_const", const=flag)

	parser.add_argument("-2D", dest="two_d", action="store_true", help="two-dimensional simulation")
	parser.add_argument("-nGauss", dest="n_gauss", type=int, default=0, metavar="n",
		help="number of Gauss points per direction")
	parser.add_argument("-vtf", dest="vtf", type=int, default=None, metavar="format",
		help="write the temperature field for visualization")
	parser.add_argument("-nviz", dest="nviz", type=int, default=1, metavar="n",
		help="visualization points per element direction")
	parser.add_argument("-msg", dest="msg_level", type=int, default=0, metavar="n", help="message level")
	parser.add_argument("-dump", dest="dump_file", default=None, metavar="file",
		help="write restart checkpoints to this file")
	parser.add_argument("-restart", dest="restart", default=None, metavar="file",
		help="restart from a checkpoint")

	methods = parser.add_mutually_exclusive_group()
	methods.add_argument("-be", dest="method", action="store_const", const=Method.BE, help="backward Euler")
	methods.add_argument("-bdf2", dest="method", action="store_const", const=Method.BDF2, help="second order BDF")
	parser.set_defaults(method=Method.BDF2, solver="dense", discretization="lag")
	return parser


def engine_options(args: argparse.Namespace) -> Dict[str, Any]:
	"""Options handed to the engine when the linear system is set up."""
	return {
		"solver": args.solver,
		"discretization": args.discretization,
		"n_gauss": args.n_gauss,
		"nviz": args.nviz,
	}


def default_engine_factory(problem: ProblemConfig, options: Dict[str, Any], dimension: int) -> FEEngine:
	from fenics_backend import DolfinxEngine, FENICS_AVAILABLE
	if not FENICS_AVAILABLE:
		raise ModelReadError("DOLFINx backend is not available")
	return DolfinxEngine(options, output=problem.output, dimension=dimension)


def run_simulator(infile: str, args: argparse.Namespace, engine_factory: Optional[EngineFactory] = None) -> int:
	"""Run one simulation; returns the process exit code."""
	options = engine_options(args)
	dimension = 2 if args.two_d else 3
	try:
		problem = ConfigManager(infile).problem()
		engine = (engine_factory or default_engine_factory)(problem, options, dimension)

		driver = HeatEquationDriver(engine, order=order(args.method), dimension=dimension, msg_level=args.msg_level)
		driver.write_fields = args.vtf is not None
		driver.dump_file = args.dump_file

		if args.msg_level >= 0:
			logger.info(f"{driver.heading}: input file {infile}")
			logger.info(f"\tTime integration: {Method(args.method).value}, linear solver: {args.solver}")

		driver.setup(problem, options)
		if args.restart:
			driver.restart(args.restart)
		driver.run()
	except HeatSolverError as e:
		logger.error(f"{type(e).__name__}: {e}")
		return e.exit_code
	return 0


def main(argv: Optional[List[str]] = None, engine_factory: Optional[EngineFactory] = None) -> int:
	parser = build_parser()
	args = parser.parse_args(argv)
	if not args.input:
		parser.print_usage(sys.stdout)
		return 0
	configure_logging(msg_level=args.msg_level)
	return run_simulator(args.input, args, engine_factory)


if __name__ == "__main__":
	sys.exit(main())
