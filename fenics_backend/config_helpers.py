"""
Solver and discretization option helpers
"""

import logging
from typing import Dict, Any, Optional, Tuple
import basix
import basix.ufl
import dolfinx

logger = logging.getLogger(__name__)

# Linear solver flag -> PETSc options
SOLVER_OPTIONS = {
	"dense": {"ksp_type": "preonly", "pc_type": "lu"},
	"spr": {"ksp_type": "preonly", "pc_type": "cholesky"},
	"superlu": {"ksp_type": "preonly", "pc_type": "lu", "pc_factor_mat_solver_type": "superlu"},
	"samg": {"ksp_type": "cg", "pc_type": "gamg", "ksp_rtol": "1e-10"},
	"petsc": {"ksp_type": "gmres", "pc_type": "bjacobi", "ksp_rtol": "1e-10"},
}

DEFAULT_SOLVER = "dense"

# Discretization flag -> basix Lagrange variant
DISCRETIZATIONS = ("lag", "spec", "LR")


def extract_fe_metadata(options: Dict[str, Any], default_family: str = "Lagrange", default_degree: int = 1) -> Tuple[str, int]:
	"""Return (family, degree) for FE spaces with sane fallbacks."""
	family = (options.get("family", default_family) or default_family).strip()
	try:
		degree = int(options.get("degree", default_degree))
	except (TypeError, ValueError):
		degree = default_degree
	return family, degree


def prepare_petsc_solver_options(options: Dict[str, Any], default_prefix: str = "heat_") -> Tuple[Dict[str, Any], str]:
	"""Build PETSc option dict + prefix from the linear solver flag."""
	solver = options.get("solver") or DEFAULT_SOLVER
	if solver not in SOLVER_OPTIONS:
		logger.warning(f"Unknown linear solver '{solver}', using '{DEFAULT_SOLVER}'")
		solver = DEFAULT_SOLVER
	petsc_opts = dict(SOLVER_OPTIONS[solver])
	petsc_opts.update(options.get("petsc_options") or {})
	prefix = str(options.get("petsc_options_prefix", default_prefix))
	logger.debug(f"PETSc options for solver '{solver}': {petsc_opts}")
	return petsc_opts, prefix


def lagrange_variant(discretization: Optional[str]):
	"""Map the discretization flag to a basix Lagrange variant."""
	if discretization == "spec":
		return basix.LagrangeVariant.gll_warped
	if discretization == "LR":
		logger.warning("LR spline discretization is not available, using Lagrange elements")
	return basix.LagrangeVariant.equispaced


def build_scalar_function_space(options: Dict[str, Any], mesh):
	"""Build scalar function space from the discretization options."""
	family, degree = extract_fe_metadata(options)
	variant = lagrange_variant(options.get("discretization"))
	element = basix.ufl.element(family, mesh.basix_cell(), degree, lagrange_variant=variant)
	return dolfinx.fem.functionspace(mesh, element)


def quadrature_metadata(options: Dict[str, Any]) -> Dict[str, Any]:
	"""Integration metadata from the number of Gauss points per direction (0 = automatic)."""
	n_gauss = int(options.get("n_gauss") or 0)
	if n_gauss <= 0:
		return {}
	return {"quadrature_degree": 2 * n_gauss - 1}
