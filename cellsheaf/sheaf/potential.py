"""Potential sheaves: nonlinear energies on coboundary coordinates.

A potential sheaf replaces the quadratic form xᵀLx = ‖δx‖² with a sum of
per-edge potentials

    U(x) = Σ_e φ_e((δx)|_e)

and its "Laplacian" with the gradient δᵀ∇Φ(δx), Φ(y) = Σ_e φ_e(y|_e).
Gradients and Hessians come from torch autograd, so potentials are written
as functions of a 1-D torch tensor returning a scalar tensor:

    >>> s = PotentialSheaf([2, 2], [2], [lambda y: 0.5 * (y ** 2).sum()])
"""

from typing import Callable, List, Optional, Sequence, Union

import numpy as np
import torch
from scipy.sparse import coo_matrix, csr_matrix

from ..utils.exceptions import ComputationError, ValidationError
from ..utils.validation import as_vector
from .data_structures import AbstractCellularSheaf

# Simple logging setup for this module
import logging
logger = logging.getLogger(__name__)

Potential = Callable[[torch.Tensor], torch.Tensor]


class PotentialSheaf(AbstractCellularSheaf):
    """Cellular sheaf with one differentiable potential per edge.

    Attributes:
        potentials: Edge potentials, ``potentials[e]`` acts on (δx)|_e
    """

    def __init__(self, vertex_stalks: Sequence[int], edge_stalks: Sequence[int],
                 potentials: Sequence[Potential], vertex_names: Optional[Sequence[str]] = None):
        super().__init__(vertex_stalks, edge_stalks, vertex_names=vertex_names)
        potentials = list(potentials)
        if len(potentials) != self.num_edges:
            raise ValidationError(
                "one potential per edge is required",
                parameter="potentials",
                expected=self.num_edges,
                actual=len(potentials),
            )
        for e, potential in enumerate(potentials):
            if not callable(potential):
                raise ValidationError(f"potentials[{e}] is not callable", parameter="potentials")
        self.potentials: List[Potential] = potentials

    def _torch_coboundary(self) -> torch.Tensor:
        coo = self._csr().tocoo()
        indices = torch.from_numpy(np.vstack((coo.row, coo.col)).astype(np.int64))
        values = torch.from_numpy(coo.data.astype(np.float64))
        return torch.sparse_coo_tensor(indices, values, self.shape, dtype=torch.float64).coalesce()

    def total_potential(self, y: torch.Tensor) -> torch.Tensor:
        """Φ(y) = Σ_e φ_e(y|_e) for a 1-cochain ``y``."""
        total = torch.zeros((), dtype=y.dtype)
        for e, potential in enumerate(self.potentials):
            value = potential(y[self.edge_slice(e)])
            if not isinstance(value, torch.Tensor) or value.numel() != 1:
                raise ComputationError(
                    f"potential for edge {e} must return a scalar tensor",
                    operation="total_potential",
                    values={'edge': e, 'returned': type(value).__name__},
                )
            total = total + value.reshape(())
        return total

    def potential_objective(self) -> Callable[[Union[np.ndarray, torch.Tensor]], Union[float, torch.Tensor]]:
        """Return x ↦ Σ_e φ_e((δx)|_e) for external optimizers.

        Given a torch tensor the returned callable stays on the autograd tape
        (δ is applied as a sparse torch matrix), so ``.backward()`` yields
        ∇U(x). Given anything else it returns a Python float.
        """
        d_torch = self._torch_coboundary()

        def objective(x):
            if isinstance(x, torch.Tensor):
                if x.numel() != self.total_vertex_dim:
                    raise ValidationError("x has wrong length", parameter="x",
                                          expected=self.total_vertex_dim, actual=x.numel())
                x_col = x.reshape(-1, 1).to(torch.float64)
                y = torch.sparse.mm(d_torch, x_col).reshape(-1)
                return self.total_potential(y)
            y = torch.from_numpy(self.apply_coboundary_map(x))
            with torch.no_grad():
                return float(self.total_potential(y))

        return objective

    def apply_laplacian(self, x) -> np.ndarray:
        """Return δᵀ∇Φ(δx), the gradient of the total potential at ``x``."""
        d = self._csr()
        y = torch.from_numpy(d @ as_vector(x, self.total_vertex_dim, "x")).requires_grad_(True)
        total = self.total_potential(y)
        if total.requires_grad:
            (grad,) = torch.autograd.grad(total, y, allow_unused=True)
        else:
            grad = None
        if grad is None:
            grad = torch.zeros_like(y)
        return d.T @ grad.detach().numpy()

    def laplacian(self, x=None) -> csr_matrix:
        """Linearized Laplacian δᵀ H δ at ``x`` (the origin when omitted).

        H is the block-diagonal Hessian of the edge potentials evaluated at
        δx, so for φ_e(y) = ½‖y‖² this reduces to δᵀδ.
        """
        if x is None:
            y = np.zeros(self.total_edge_dim)
        else:
            y = self.apply_coboundary_map(x)

        rows, cols, data = [], [], []
        for e, potential in enumerate(self.potentials):
            span = self.edge_slice(e)
            size = span.stop - span.start
            if size == 0:
                continue
            y_e = torch.from_numpy(np.ascontiguousarray(y[span]))
            hessian = torch.autograd.functional.hessian(lambda t, phi=potential: phi(t).reshape(()), y_e)
            block = hessian.detach().numpy().reshape(size, size)
            r, c = np.meshgrid(np.arange(size), np.arange(size), indexing="ij")
            rows.append(r.ravel() + span.start)
            cols.append(c.ravel() + span.start)
            data.append(block.ravel())

        m = self.total_edge_dim
        if rows:
            H = coo_matrix((np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))),
                           shape=(m, m)).tocsr()
        else:
            H = csr_matrix((m, m))
        H.eliminate_zeros()

        d = self._csr()
        logger.debug(f"Linearized potential Laplacian at ‖δx‖={np.linalg.norm(y):.3e}")
        return (d.T @ H @ d).tocsr()
