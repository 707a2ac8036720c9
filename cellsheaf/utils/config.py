"""Configuration constants for cellsheaf.

This module centralizes the numerical tolerances, solver settings and DSL
vocabulary used throughout the package.
"""

from dataclasses import dataclass, replace
from typing import Dict, Any, Optional, Tuple

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class NumericalConstants:
    """Numerical stability and tolerance constants."""

    # Laplacian symmetry check
    SYMMETRY_TOLERANCE: float = 1e-10

    # Kernel membership checks for global sections
    SECTION_TOLERANCE: float = 1e-8


@dataclass(frozen=True)
class SolverConfig:
    """Conjugate-gradient settings for the nearest-section projection.

    Attributes:
        rtol: Relative residual tolerance
        atol: Absolute residual tolerance
        max_iterations: Iteration cap; None uses 10 * system size
    """

    rtol: float = 1e-10
    atol: float = 1e-12
    max_iterations: Optional[int] = None

    def __post_init__(self):
        if self.rtol < 0:
            raise ConfigurationError("rtol must be non-negative", config_key="rtol", config_value=self.rtol)
        if self.atol < 0:
            raise ConfigurationError("atol must be non-negative", config_key="atol", config_value=self.atol)
        if self.max_iterations is not None and self.max_iterations < 1:
            raise ConfigurationError(
                "max_iterations must be positive",
                config_key="max_iterations",
                config_value=self.max_iterations,
            )

    def with_overrides(self, **overrides) -> "SolverConfig":
        """Return a copy with the given fields replaced; None values are ignored."""
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **overrides) if overrides else self


@dataclass(frozen=True)
class DSLConstants:
    """Sheaf DSL vocabulary."""

    SUPPORTED_TYPES: Tuple[str, ...] = ("Stalk",)
    COMMENT_PREFIX: str = "#"
    STATEMENT_SEPARATOR: str = ";"


@dataclass(frozen=True)
class PerformanceConstants:
    """Profiling thresholds."""

    DEFAULT_TIME_THRESHOLD: float = 60.0
    DEFAULT_MEMORY_THRESHOLD_MB: float = 1000.0


class Config:
    """Global configuration object containing all constants."""

    numerical = NumericalConstants()
    solver = SolverConfig()
    dsl = DSLConstants()
    performance = PerformanceConstants()

    @classmethod
    def get_all_constants(cls) -> Dict[str, Any]:
        """Get all constants as a flat dictionary keyed ``category.FIELD``."""
        constants = {}
        for category in ("numerical", "solver", "dsl", "performance"):
            attr = getattr(cls, category)
            for field_name in attr.__dataclass_fields__:
                constants[f"{category}.{field_name}"] = getattr(attr, field_name)
        return constants
