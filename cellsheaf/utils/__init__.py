"""Utilities for the cellsheaf package.

This module contains common utilities used throughout cellsheaf:
- Logging infrastructure
- Custom exception hierarchy
- Configuration constants
- Input validation helpers
- Performance profiling tools
"""

from .logging import setup_logger, get_logger, shutdown_logging
from .exceptions import (
    CellSheafError,
    ValidationError,
    ShapeError,
    ComputationError,
    ConfigurationError,
    ConvergenceError,
    SheafDSLError,
    SheafSyntaxError,
    MalformedStatementError,
    InvalidProductError,
    SemanticError,
    DuplicateDeclarationError,
    UnsupportedTypeError,
    UndefinedReferenceError,
    UnboundValueError,
    ReferenceKindError,
    DimensionMismatchError,
    InconsistentEdgeError,
)
from .config import Config, SolverConfig
from .profiling import profile_time, profile_memory, MemoryMonitor

__all__ = [
    "setup_logger",
    "get_logger",
    "shutdown_logging",
    "CellSheafError",
    "ValidationError",
    "ShapeError",
    "ComputationError",
    "ConfigurationError",
    "ConvergenceError",
    "SheafDSLError",
    "SheafSyntaxError",
    "MalformedStatementError",
    "InvalidProductError",
    "SemanticError",
    "DuplicateDeclarationError",
    "UnsupportedTypeError",
    "UndefinedReferenceError",
    "UnboundValueError",
    "ReferenceKindError",
    "DimensionMismatchError",
    "InconsistentEdgeError",
    "Config",
    "SolverConfig",
    "profile_time",
    "profile_memory",
    "MemoryMonitor",
]
