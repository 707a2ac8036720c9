"""Core data structures for cellular sheaves.

A cellular sheaf over a graph attaches a vector space (stalk) to every
vertex and edge, and a restriction map from each vertex stalk to each
incident edge stalk. All of it is encoded in the coboundary operator

    δ : ⊕_v F(v) → ⊕_e F(e),    (δx)_e = F_{v1→e} x_{v1} - F_{v2→e} x_{v2}

stored here as a block-sparse matrix: a scipy sparse matrix plus two
cumulative offset tables (edges partition the rows, vertices the columns).
Block (e, v) occupies rows ``edge_offsets[e]:edge_offsets[e+1]`` and columns
``vertex_offsets[v]:vertex_offsets[v+1]``.

Mathematical Structure:
- Sheaf Laplacian: L = δᵀδ, symmetric positive semi-definite
- Global sections: ker δ, the assignments on which all incident restriction
  maps agree
"""

from typing import Dict, List, Optional, Sequence, Tuple

import networkx as nx
import numpy as np
from scipy.sparse import csr_matrix, lil_matrix

from ..utils.config import Config
from ..utils.exceptions import ShapeError
from ..utils.validation import as_matrix, as_vector, validate_dimensions
from .laplacian import SheafLaplacianBuilder
from .sections import project_onto_sections

# Simple logging setup for this module
import logging
logger = logging.getLogger(__name__)


def _offsets(dims: Sequence[int]) -> np.ndarray:
    return np.concatenate(([0], np.cumsum(dims, dtype=np.int64))).astype(np.int64)


class AbstractCellularSheaf:
    """Block-partitioned coboundary shared by all sheaf flavours.

    The coboundary starts as an all-zero matrix and is filled one edge at a
    time through :meth:`set_edge_maps`. Construction assumes a single writer;
    once every edge is set the sheaf is treated as read-only.

    Attributes:
        vertex_stalks: Vertex stalk dimensions, in vertex order
        edge_stalks: Edge stalk dimensions, in edge order
        vertex_offsets: Cumulative column offsets, length num_vertices + 1
        edge_offsets: Cumulative row offsets, length num_edges + 1
        incidence: Edge index -> (v1, v2) for every edge set so far
        vertex_names: Optional vertex labels (filled in by the DSL compiler)
    """

    def __init__(self, vertex_stalks: Sequence[int], edge_stalks: Sequence[int],
                 vertex_names: Optional[Sequence[str]] = None):
        self.vertex_stalks: List[int] = validate_dimensions(vertex_stalks, "vertex_stalks")
        self.edge_stalks: List[int] = validate_dimensions(edge_stalks, "edge_stalks")
        self.vertex_offsets = _offsets(self.vertex_stalks)
        self.edge_offsets = _offsets(self.edge_stalks)
        self.incidence: Dict[int, Tuple[int, int]] = {}
        self.vertex_names: Optional[List[str]] = list(vertex_names) if vertex_names is not None else None

        self._coboundary = lil_matrix(self.shape, dtype=np.float64)
        self._csr_cache: Optional[csr_matrix] = None

        logger.debug(f"Allocated coboundary {self.shape} for {self.num_vertices} vertices, "
                     f"{self.num_edges} edges")

    # Shape information

    @property
    def num_vertices(self) -> int:
        return len(self.vertex_stalks)

    @property
    def num_edges(self) -> int:
        return len(self.edge_stalks)

    @property
    def total_vertex_dim(self) -> int:
        return int(self.vertex_offsets[-1])

    @property
    def total_edge_dim(self) -> int:
        return int(self.edge_offsets[-1])

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.total_edge_dim, self.total_vertex_dim)

    # Block access

    def vertex_slice(self, v: int) -> slice:
        """Column range of vertex ``v`` in the coboundary."""
        self._check_index(v, self.num_vertices, "vertex")
        return slice(int(self.vertex_offsets[v]), int(self.vertex_offsets[v + 1]))

    def edge_slice(self, e: int) -> slice:
        """Row range of edge ``e`` in the coboundary."""
        self._check_index(e, self.num_edges, "edge")
        return slice(int(self.edge_offsets[e]), int(self.edge_offsets[e + 1]))

    def block(self, e: int, v: int) -> np.ndarray:
        """Dense copy of coboundary block (e, v)."""
        return self._coboundary[self.edge_slice(e), self.vertex_slice(v)].toarray()

    def vertex_blocks(self, x) -> List[np.ndarray]:
        """Split a 0-cochain into per-vertex views."""
        x = as_vector(x, self.total_vertex_dim, "x")
        return [x[self.vertex_slice(v)] for v in range(self.num_vertices)]

    def edge_blocks(self, y) -> List[np.ndarray]:
        """Split a 1-cochain into per-edge views."""
        y = as_vector(y, self.total_edge_dim, "y")
        return [y[self.edge_slice(e)] for e in range(self.num_edges)]

    def _check_index(self, index: int, size: int, kind: str) -> None:
        if not isinstance(index, (int, np.integer)) or not 0 <= index < size:
            raise ShapeError(
                f"{kind} index out of range",
                parameter=kind,
                expected=f"0 <= index < {size}",
                actual=index,
            )

    # Construction

    def set_edge_maps(self, v1: int, v2: int, e: int, map1, map2) -> None:
        """Attach edge ``e`` between vertices ``v1`` and ``v2``.

        Writes block (e, v1) = map1 and block (e, v2) = -map2. When
        ``v1 == v2`` the single block receives map1 - map2. Reassigning an
        edge first clears the blocks of its previous vertex pair.

        Args:
            v1: Index of the left vertex
            v2: Index of the right vertex
            e: Index of the edge
            map1: Restriction map F(v1) -> F(e), shape (edge_stalks[e], vertex_stalks[v1])
            map2: Restriction map F(v2) -> F(e), shape (edge_stalks[e], vertex_stalks[v2])

        Raises:
            ShapeError: If an index is out of range or a map has the wrong shape
        """
        self._check_index(v1, self.num_vertices, "vertex")
        self._check_index(v2, self.num_vertices, "vertex")
        self._check_index(e, self.num_edges, "edge")

        map1 = as_matrix(map1, "map1")
        map2 = as_matrix(map2, "map2")
        for name, matrix, v in (("map1", map1, v1), ("map2", map2, v2)):
            expected = (self.edge_stalks[e], self.vertex_stalks[v])
            if matrix.shape != expected:
                raise ShapeError(
                    f"{name} has wrong shape for edge {e} at vertex {v}",
                    parameter=name,
                    expected=expected,
                    actual=matrix.shape,
                )

        rows = self.edge_slice(e)
        previous = self.incidence.get(e)
        if previous is not None:
            for v in set(previous):
                self._clear_block(rows, self.vertex_slice(v))

        if v1 == v2:
            self._write_block(rows, self.vertex_slice(v1), map1 - map2)
        else:
            self._write_block(rows, self.vertex_slice(v1), map1)
            self._write_block(rows, self.vertex_slice(v2), -map2)

        self.incidence[e] = (int(v1), int(v2))
        self._csr_cache = None
        logger.debug(f"Set edge {e}: vertex {v1} -> {v2}, edge stalk dim {self.edge_stalks[e]}")

    def _write_block(self, rows: slice, cols: slice, values: np.ndarray) -> None:
        if values.size == 0:
            return
        self._coboundary[rows, cols] = values

    def _clear_block(self, rows: slice, cols: slice) -> None:
        if rows.stop > rows.start and cols.stop > cols.start:
            self._coboundary[rows, cols] = 0.0

    # Coboundary

    def _csr(self) -> csr_matrix:
        if self._csr_cache is None:
            self._csr_cache = self._coboundary.tocsr()
            self._csr_cache.eliminate_zeros()
        return self._csr_cache

    def coboundary_map(self) -> csr_matrix:
        """Return δ as a CSR matrix of shape (total_edge_dim, total_vertex_dim)."""
        return self._csr().copy()

    def apply_coboundary_map(self, x) -> np.ndarray:
        """Return δx."""
        x = as_vector(x, self.total_vertex_dim, "x")
        return self._csr() @ x

    # Bookkeeping

    def unspecified_edges(self) -> List[int]:
        """Edges that have not been assigned restriction maps yet."""
        return [e for e in range(self.num_edges) if e not in self.incidence]

    def is_fully_specified(self) -> bool:
        return len(self.incidence) == self.num_edges

    def to_networkx(self) -> nx.MultiGraph:
        """Underlying graph: vertex nodes with ``dim``, one edge per sheaf edge set."""
        graph = nx.MultiGraph()
        for v, dim in enumerate(self.vertex_stalks):
            attrs = {'dim': dim}
            if self.vertex_names is not None:
                attrs['name'] = self.vertex_names[v]
            graph.add_node(v, **attrs)
        for e in sorted(self.incidence):
            v1, v2 = self.incidence[e]
            graph.add_edge(v1, v2, key=e, edge=e, dim=self.edge_stalks[e])
        return graph

    def summary(self) -> str:
        """Get a summary string of the sheaf structure."""
        nnz = self._csr().nnz
        total = self.shape[0] * self.shape[1]
        sparsity = 1.0 - nnz / total if total else 0.0
        status = "✓" if self.is_fully_specified() else f"✗ ({len(self.unspecified_edges())} unset)"
        return (f"{type(self).__name__} Summary:\n"
                f"  Vertices: {self.num_vertices} (stalks {self.vertex_stalks})\n"
                f"  Edges: {self.num_edges} (stalks {self.edge_stalks})\n"
                f"  Coboundary: {self.shape[0]}x{self.shape[1]}, {nnz} nnz\n"
                f"  Sparsity: {sparsity * 100:.1f}%\n"
                f"  Edges specified: {status}")

    def __eq__(self, other) -> bool:
        if not isinstance(other, AbstractCellularSheaf) or type(self) is not type(other):
            return NotImplemented
        if self.vertex_stalks != other.vertex_stalks or self.edge_stalks != other.edge_stalks:
            return False
        diff = self._csr() - other._csr()
        return diff.count_nonzero() == 0

    __hash__ = None

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(vertex_stalks={self.vertex_stalks}, "
                f"edge_stalks={self.edge_stalks})")


class CellularSheaf(AbstractCellularSheaf):
    """Cellular sheaf with the quadratic Laplacian L = δᵀδ.

    Example:
        >>> c = CellularSheaf([4, 4, 4], [1, 1, 1])
        >>> A = [[1, 0, 0, 0]]
        >>> c.set_edge_maps(0, 1, 0, A, A)
        >>> c.set_edge_maps(0, 2, 1, A, A)
        >>> c.set_edge_maps(1, 2, 2, A, A)
        >>> x = c.nearest_section(np.random.randn(12))
    """

    def laplacian(self) -> csr_matrix:
        """Return the sheaf Laplacian δᵀδ as a CSR matrix."""
        laplacian, _ = SheafLaplacianBuilder(validate_properties=False).build(self)
        return laplacian

    def apply_laplacian(self, x) -> np.ndarray:
        """Return δᵀδx without forming the Laplacian."""
        d = self._csr()
        return d.T @ (d @ as_vector(x, self.total_vertex_dim, "x"))

    def nearest_section(self, x, b=None, config=None, **solver_overrides) -> np.ndarray:
        """Project ``x`` onto {v : δv = b} (onto ker δ when ``b`` is None).

        Solves δδᵀy = δx - b by conjugate gradient on the composed operator
        and returns x - δᵀy.

        Args:
            x: Vertex assignment, length total_vertex_dim
            b: Optional edge target, length total_edge_dim
            config: SolverConfig; defaults to ``Config.solver``
            **solver_overrides: rtol, atol or max_iterations for this call

        Raises:
            ConvergenceError: If conjugate gradient does not converge
        """
        if not self.is_fully_specified():
            logger.warning(f"nearest_section called with unset edges {self.unspecified_edges()}; "
                           f"their coboundary blocks are zero")

        x = as_vector(x, self.total_vertex_dim, "x")
        if b is not None:
            b = as_vector(b, self.total_edge_dim, "b")
        config = (config or Config.solver).with_overrides(**solver_overrides)
        return project_onto_sections(self._csr(), x, b, config)

    def is_global_section(self, x, tolerance: float = Config.numerical.SECTION_TOLERANCE) -> bool:
        """Whether ‖δx‖ is within ``tolerance``."""
        return bool(np.linalg.norm(self.apply_coboundary_map(x)) <= tolerance)
