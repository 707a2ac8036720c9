"""Cellsheaf: Cellular Sheaves on Graphs with a Small Description Language

A cellular sheaf attaches vector spaces to the vertices and edges of a graph
and linear restriction maps along each incidence. This package provides:

- A DSL for declaring sheaves as equations between restriction maps
- A block-sparse coboundary with sparse Laplacian assembly
- Conjugate-gradient projection onto global sections
- Potential sheaves with torch autograd gradients
"""

__version__ = "0.1.0"

from .api import cellular_sheaf, cellular_sheaf_from_bindings, potential_sheaf
from .dsl import parse_sheaf_expression, construct, analyze
from .sheaf import AbstractCellularSheaf, CellularSheaf, PotentialSheaf, constant_sheaf
from .utils.logging import setup_logger
from .utils.config import Config, SolverConfig
from .utils.exceptions import (
    CellSheafError,
    ValidationError,
    ShapeError,
    ComputationError,
    ConvergenceError,
    SheafDSLError,
    SheafSyntaxError,
    SemanticError,
)

__all__ = [
    "__version__",
    # One-call API
    "cellular_sheaf",
    "cellular_sheaf_from_bindings",
    "potential_sheaf",
    # DSL
    "parse_sheaf_expression",
    "analyze",
    "construct",
    # Sheaves
    "AbstractCellularSheaf",
    "CellularSheaf",
    "PotentialSheaf",
    "constant_sheaf",
    # Utilities
    "setup_logger",
    "Config",
    "SolverConfig",
    "CellSheafError",
    "ValidationError",
    "ShapeError",
    "ComputationError",
    "ConvergenceError",
    "SheafDSLError",
    "SheafSyntaxError",
    "SemanticError",
]
