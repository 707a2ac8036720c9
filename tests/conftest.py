"""Shared test fixtures for the cellsheaf test suite.

This module provides common fixtures and utilities used across all tests.
"""

import os
import shutil
import tempfile
from pathlib import Path

import numpy as np
import pytest

from cellsheaf.sheaf import CellularSheaf
from cellsheaf.utils.logging import setup_logger, shutdown_logging


TRIANGLE_SOURCE = """
x::Stalk{4}, y::Stalk{4}, z::Stalk{4}
A(x) == B(y)
A(x) == C(z)
B(y) == C(z)
"""


@pytest.fixture(scope="session", autouse=True)
def test_environment():
    """Set up test environment."""
    os.environ["CELLSHEAF_TEST_MODE"] = "true"
    os.environ["CUDA_VISIBLE_DEVICES"] = ""

    yield

    if "CELLSHEAF_TEST_MODE" in os.environ:
        del os.environ["CELLSHEAF_TEST_MODE"]


@pytest.fixture(scope="function", autouse=True)
def cleanup_logging():
    """Clean up logging after each test."""
    yield
    shutdown_logging()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def logger():
    """Create a test logger."""
    logger = setup_logger("test", level="DEBUG")
    yield logger
    shutdown_logging()


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def triangle_source():
    return TRIANGLE_SOURCE


@pytest.fixture
def triangle_maps():
    """Restriction maps picking the first coordinate of R^4."""
    A = np.array([[1.0, 0.0, 0.0, 0.0]])
    return {"A": A, "B": A.copy(), "C": A.copy()}


@pytest.fixture
def triangle_sheaf(triangle_maps):
    """Triangle sheaf: three R^4 vertices, three R^1 edges."""
    A, B, C = triangle_maps["A"], triangle_maps["B"], triangle_maps["C"]
    sheaf = CellularSheaf([4, 4, 4], [1, 1, 1])
    sheaf.set_edge_maps(0, 1, 0, A, B)
    sheaf.set_edge_maps(0, 2, 1, A, C)
    sheaf.set_edge_maps(1, 2, 2, B, C)
    return sheaf


@pytest.fixture
def random_sheaf(rng):
    """Path-plus-chord sheaf with random restriction maps and mixed stalks."""
    vertex_dims = [3, 2, 4, 3]
    edge_dims = [2, 2, 1, 3]
    edges = [(0, 1), (1, 2), (2, 3), (0, 3)]
    sheaf = CellularSheaf(vertex_dims, edge_dims)
    for e, (u, v) in enumerate(edges):
        sheaf.set_edge_maps(u, v, e,
                            rng.standard_normal((edge_dims[e], vertex_dims[u])),
                            rng.standard_normal((edge_dims[e], vertex_dims[v])))
    return sheaf


def assert_matrix_shape(matrix, expected_shape):
    """Assert matrix has expected shape."""
    actual_shape = getattr(matrix, 'shape', None)
    assert actual_shape == expected_shape, f"Expected shape {expected_shape}, got {actual_shape}"


pytest.assert_matrix_shape = assert_matrix_shape
