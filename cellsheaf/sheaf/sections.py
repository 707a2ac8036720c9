"""Projection onto global sections by conjugate gradient.

For a coboundary δ the nearest point to x in the affine space {v : δv = b}
is x - δᵀy, where y solves the normal equations

    δδᵀ y = δx - b.

δδᵀ (the edge Laplacian) is symmetric positive semi-definite, so conjugate
gradient applies. It is never materialized: the solver sees a
LinearOperator whose matvec is y ↦ δ(δᵀy). With b = 0 the right-hand side
lies in range(δ) = range(δδᵀ), the singular system is consistent, and CG
converges to a solution. A b outside range(δ) makes the constraint
infeasible; CG then exhausts its budget and ConvergenceError is raised.
"""

from typing import Optional

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.linalg import LinearOperator, cg

from ..utils.config import Config, SolverConfig
from ..utils.exceptions import ComputationError, ConvergenceError
from ..utils.profiling import profile_memory, profile_time

# Simple logging setup for this module
import logging
logger = logging.getLogger(__name__)


def edge_laplacian_operator(coboundary: csr_matrix) -> LinearOperator:
    """δδᵀ as a matrix-free symmetric operator on the edge space."""
    d = coboundary
    dt = d.T.tocsr()
    m = d.shape[0]

    def matvec(y):
        return d @ (dt @ np.ravel(y))

    return LinearOperator((m, m), matvec=matvec, rmatvec=matvec, dtype=np.float64)


@profile_time()
@profile_memory()
def project_onto_sections(
    coboundary: csr_matrix,
    x: np.ndarray,
    b: Optional[np.ndarray] = None,
    config: Optional[SolverConfig] = None
) -> np.ndarray:
    """Project ``x`` onto {v : δv = b}, or onto ker δ when ``b`` is None.

    Args:
        coboundary: δ, shape (total_edge_dim, total_vertex_dim)
        x: Flat vertex assignment
        b: Optional flat edge target
        config: Solver tolerances and iteration cap

    Returns:
        The projected assignment as a new array

    Raises:
        ConvergenceError: If CG hits its iteration cap
        ComputationError: If CG reports illegal input or breakdown
    """
    config = config or Config.solver
    d = coboundary
    rhs = d @ x
    if b is not None:
        rhs = rhs - b

    if d.shape[0] == 0 or not np.any(rhs):
        logger.debug("Right-hand side is zero; x already satisfies the constraint")
        return np.array(x, dtype=np.float64, copy=True)

    iterations = [0]

    def count(_):
        iterations[0] += 1

    y, info = cg(
        edge_laplacian_operator(d),
        rhs,
        rtol=config.rtol,
        atol=config.atol,
        maxiter=config.max_iterations,
        callback=count,
    )

    if info > 0:
        residual = float(np.linalg.norm(edge_laplacian_operator(d) @ y - rhs))
        raise ConvergenceError(
            "Conjugate gradient did not converge while projecting onto sections",
            algorithm="cg",
            iterations=info,
            tolerance=config.rtol,
            context={'residual_norm': residual, 'constrained': b is not None},
        )
    if info < 0:
        raise ComputationError(
            "Conjugate gradient failed: illegal input or breakdown",
            operation="nearest_section",
            values={'info': info},
        )

    logger.debug(f"CG converged in {iterations[0]} iterations on a {d.shape[0]}-dim edge space")
    return x - d.T @ y
