"""Cellular sheaf data model and algebra engine.

Key Features:
- Block-sparse coboundary with per-edge restriction map assignment
- Sparse sheaf Laplacian assembly
- Matrix-free conjugate-gradient projection onto global sections
- Potential sheaves with autograd gradients
- Constant sheaves over networkx graphs
"""

from .data_structures import AbstractCellularSheaf, CellularSheaf
from .laplacian import SheafLaplacianBuilder, LaplacianMetadata, build_sheaf_laplacian
from .sections import project_onto_sections, edge_laplacian_operator
from .potential import PotentialSheaf
from .constant import constant_sheaf

__all__ = [
    "AbstractCellularSheaf",
    "CellularSheaf",
    "PotentialSheaf",
    "SheafLaplacianBuilder",
    "LaplacianMetadata",
    "build_sheaf_laplacian",
    "project_onto_sections",
    "edge_laplacian_operator",
    "constant_sheaf",
]
