"""Tests for nearest-section projection by conjugate gradient."""

import numpy as np
import pytest

from cellsheaf.sheaf import CellularSheaf, edge_laplacian_operator, project_onto_sections
from cellsheaf.utils.config import SolverConfig
from cellsheaf.utils.exceptions import ConvergenceError, ValidationError


def _reference_projection(sheaf, x, b=None):
    d = sheaf.coboundary_map().toarray()
    rhs = d @ x if b is None else d @ x - b
    return x - np.linalg.pinv(d) @ rhs


class TestNearestSection:

    def test_triangle_averages_first_coordinates(self, triangle_sheaf, rng):
        x = rng.standard_normal(12)

        section = triangle_sheaf.nearest_section(x)

        mean = np.mean(x[[0, 4, 8]])
        np.testing.assert_allclose(section[[0, 4, 8]], mean, atol=1e-8)
        untouched = np.setdiff1d(np.arange(12), [0, 4, 8])
        np.testing.assert_allclose(section[untouched], x[untouched])

    def test_result_is_global_section(self, random_sheaf, rng):
        x = rng.standard_normal(random_sheaf.total_vertex_dim)

        section = random_sheaf.nearest_section(x)

        assert random_sheaf.is_global_section(section)
        np.testing.assert_allclose(section, _reference_projection(random_sheaf, x), atol=1e-7)

    def test_idempotent(self, triangle_sheaf, rng):
        x = rng.standard_normal(12)

        once = triangle_sheaf.nearest_section(x)
        twice = triangle_sheaf.nearest_section(once)

        np.testing.assert_allclose(twice, once, atol=1e-10)

    def test_input_not_modified(self, triangle_sheaf, rng):
        x = rng.standard_normal(12)
        original = x.copy()

        triangle_sheaf.nearest_section(x)

        np.testing.assert_array_equal(x, original)

    def test_zero_target_matches_kernel_projection(self, triangle_sheaf, rng):
        x = rng.standard_normal(12)

        np.testing.assert_allclose(triangle_sheaf.nearest_section(x, np.zeros(3)),
                                   triangle_sheaf.nearest_section(x), atol=1e-10)

    def test_feasible_constraint(self, triangle_sheaf, rng):
        x = rng.standard_normal(12)
        b = np.array([1.0, 1.0, 0.0])

        v = triangle_sheaf.nearest_section(x, b)

        np.testing.assert_allclose(triangle_sheaf.apply_coboundary_map(v), b, atol=1e-8)
        np.testing.assert_allclose(v, _reference_projection(triangle_sheaf, x, b), atol=1e-8)

    def test_infeasible_constraint_raises(self, triangle_sheaf):
        with pytest.raises(ConvergenceError) as exc_info:
            triangle_sheaf.nearest_section(np.zeros(12), np.array([1.0, 0.0, 0.0]), max_iterations=20)

        assert exc_info.value.context["algorithm"] == "cg"
        assert exc_info.value.context["constrained"] is True

    def test_wrong_lengths(self, triangle_sheaf):
        with pytest.raises(ValidationError):
            triangle_sheaf.nearest_section(np.zeros(11))
        with pytest.raises(ValidationError):
            triangle_sheaf.nearest_section(np.zeros(12), np.zeros(2))

    def test_section_input_returned_unchanged(self, triangle_sheaf):
        x = np.ones(12)

        np.testing.assert_array_equal(triangle_sheaf.nearest_section(x), x)

    def test_no_edges(self):
        sheaf = CellularSheaf([2, 3], [])

        np.testing.assert_array_equal(sheaf.nearest_section(np.arange(5.0)), np.arange(5.0))

    def test_solver_config(self, random_sheaf, rng):
        x = rng.standard_normal(random_sheaf.total_vertex_dim)
        loose = SolverConfig(rtol=1e-4, atol=0.0)

        section = random_sheaf.nearest_section(x, config=loose)

        assert np.linalg.norm(random_sheaf.apply_coboundary_map(section)) < 1e-2


class TestEdgeOperator:

    def test_matches_dense_product(self, random_sheaf, rng):
        d = random_sheaf.coboundary_map()
        y = rng.standard_normal(d.shape[0])

        op = edge_laplacian_operator(d)

        assert op.shape == (d.shape[0], d.shape[0])
        np.testing.assert_allclose(op @ y, d.toarray() @ d.toarray().T @ y, atol=1e-12)

    def test_project_onto_sections_direct(self, triangle_sheaf):
        x = np.zeros(12)
        x[0] = 3.0

        section = project_onto_sections(triangle_sheaf.coboundary_map(), x)

        np.testing.assert_allclose(section[[0, 4, 8]], 1.0, atol=1e-8)
