"""Validation utilities for matrices and vectors handed to the sheaf.

Restriction maps and vertex assignments arrive as numpy arrays, nested
lists or torch tensors; these helpers coerce them to float64 numpy arrays
and reject shapes the algebra engine cannot use.
"""

from typing import Any, Optional

import numpy as np
import torch

from .exceptions import ValidationError


def _to_numpy(value: Any, name: str) -> np.ndarray:
    if isinstance(value, torch.Tensor):
        value = value.detach().cpu().numpy()
    try:
        return np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"{name} cannot be converted to a float array: {e}",
            parameter=name,
            actual=type(value).__name__,
        )


def as_matrix(value: Any, name: str = "matrix") -> np.ndarray:
    """Coerce a restriction-map value to a 2-D float64 array.

    A 1-D input is read as a single row, so ``[1, 0, 0, 0]`` is a 1x4 map.

    Raises:
        ValidationError: If the value has more than two dimensions or
            contains NaN/Inf entries
    """
    if hasattr(value, "toarray"):
        value = value.toarray()
    matrix = _to_numpy(value, name)

    if matrix.ndim > 2:
        raise ValidationError(
            f"{name} must be at most 2D, got {matrix.ndim}D",
            parameter=name,
            expected="2D matrix",
            actual=f"{matrix.ndim}D",
        )
    matrix = np.atleast_2d(matrix)

    if not np.all(np.isfinite(matrix)):
        raise ValidationError(f"{name} contains NaN or Inf values", parameter=name)

    return matrix


def as_vector(value: Any, size: int, name: str = "x") -> np.ndarray:
    """Coerce a cochain to a flat float64 vector of the given length.

    Raises:
        ValidationError: If the flattened length differs from ``size``
    """
    vector = _to_numpy(value, name).reshape(-1)

    if vector.shape[0] != size:
        raise ValidationError(
            f"{name} has wrong length",
            parameter=name,
            expected=size,
            actual=vector.shape[0],
        )
    if not np.all(np.isfinite(vector)):
        raise ValidationError(f"{name} contains NaN or Inf values", parameter=name)

    return vector


def validate_dimensions(dims: Any, name: str, allow_empty: bool = True) -> list:
    """Validate a list of stalk dimensions.

    Returns:
        The dimensions as a list of Python ints

    Raises:
        ValidationError: If any dimension is not a non-negative integer
    """
    dims_list = [int(d) for d in dims]
    for i, (d, raw) in enumerate(zip(dims_list, dims)):
        if d < 0 or d != raw:
            raise ValidationError(
                f"{name}[{i}] must be a non-negative integer",
                parameter=name,
                expected="non-negative integer",
                actual=raw,
            )
    if not allow_empty and not dims_list:
        raise ValidationError(f"{name} must not be empty", parameter=name)
    return dims_list


def check_symmetric(matrix, tolerance: float, name: str = "matrix") -> Optional[float]:
    """Return the max asymmetry of a sparse or dense square matrix.

    Raises:
        ValidationError: If the asymmetry exceeds ``tolerance``
    """
    diff = matrix - matrix.T
    if hasattr(diff, "toarray"):
        error = float(abs(diff).max()) if diff.nnz else 0.0
    else:
        error = float(np.max(np.abs(diff))) if diff.size else 0.0
    if error > tolerance:
        raise ValidationError(
            f"{name} is not symmetric",
            parameter=name,
            expected=f"asymmetry <= {tolerance}",
            actual=error,
        )
    return error
