"""Tests for potential sheaves and their autograd-based Laplacian."""

import numpy as np
import pytest
import torch

from cellsheaf.sheaf import PotentialSheaf
from cellsheaf.utils.exceptions import ComputationError, ValidationError


def quadratic(y):
    return 0.5 * (y ** 2).sum()


def quartic(y):
    return 0.25 * (y ** 4).sum()


@pytest.fixture
def path_potential_sheaf():
    """Path x - y - z with R^2 stalks and random restriction maps."""
    rng = np.random.default_rng(7)
    sheaf = PotentialSheaf([2, 2, 2], [2, 2], [quadratic, quadratic])
    sheaf.set_edge_maps(0, 1, 0, rng.standard_normal((2, 2)), rng.standard_normal((2, 2)))
    sheaf.set_edge_maps(1, 2, 1, rng.standard_normal((2, 2)), rng.standard_normal((2, 2)))
    return sheaf


class TestConstruction:

    def test_potential_count_must_match_edges(self):
        with pytest.raises(ValidationError) as exc_info:
            PotentialSheaf([1, 1], [1, 1], [quadratic])

        assert exc_info.value.context["expected"] == 2

    def test_potentials_must_be_callable(self):
        with pytest.raises(ValidationError):
            PotentialSheaf([1, 1], [1], [1.0])


class TestQuadraticPotential:

    def test_gradient_is_quadratic_laplacian(self, path_potential_sheaf):
        d = path_potential_sheaf.coboundary_map().toarray()
        x = np.linspace(-1.0, 1.0, 6)

        np.testing.assert_allclose(path_potential_sheaf.apply_laplacian(x), d.T @ d @ x, atol=1e-10)

    def test_hessian_laplacian_is_quadratic_laplacian(self, path_potential_sheaf):
        d = path_potential_sheaf.coboundary_map().toarray()

        L = path_potential_sheaf.laplacian()

        np.testing.assert_allclose(L.toarray(), d.T @ d, atol=1e-10)

    def test_objective_numpy(self, path_potential_sheaf):
        x = np.arange(6.0)
        y = path_potential_sheaf.apply_coboundary_map(x)

        objective = path_potential_sheaf.potential_objective()

        assert objective(x) == pytest.approx(0.5 * y @ y)
        assert isinstance(objective(x), float)

    def test_objective_backward(self, path_potential_sheaf):
        x = torch.arange(6.0, dtype=torch.float64, requires_grad=True)

        value = path_potential_sheaf.potential_objective()(x)
        value.backward()

        expected = path_potential_sheaf.apply_laplacian(x.detach().numpy())
        np.testing.assert_allclose(x.grad.numpy(), expected, atol=1e-10)

    def test_objective_wrong_length(self, path_potential_sheaf):
        with pytest.raises(ValidationError):
            path_potential_sheaf.potential_objective()(torch.zeros(5, dtype=torch.float64))


class TestNonlinearPotential:

    def test_quartic_gradient(self):
        sheaf = PotentialSheaf([1, 1], [1], [quartic])
        sheaf.set_edge_maps(0, 1, 0, [[1.0]], [[1.0]])

        np.testing.assert_allclose(sheaf.apply_laplacian([2.0, 0.0]), [8.0, -8.0])

    def test_quartic_linearization(self):
        sheaf = PotentialSheaf([1, 1], [1], [quartic])
        sheaf.set_edge_maps(0, 1, 0, [[1.0]], [[1.0]])

        np.testing.assert_allclose(sheaf.laplacian().toarray(), np.zeros((2, 2)))
        np.testing.assert_allclose(sheaf.laplacian([2.0, 0.0]).toarray(),
                                   12.0 * np.array([[1.0, -1.0], [-1.0, 1.0]]))

    def test_constant_potential_has_zero_gradient(self):
        sheaf = PotentialSheaf([1, 1], [1], [lambda y: torch.tensor(1.0, dtype=torch.float64)])
        sheaf.set_edge_maps(0, 1, 0, [[1.0]], [[1.0]])

        np.testing.assert_array_equal(sheaf.apply_laplacian([3.0, 1.0]), [0.0, 0.0])

    def test_non_scalar_potential_rejected(self):
        sheaf = PotentialSheaf([2, 2], [2], [lambda y: y])
        sheaf.set_edge_maps(0, 1, 0, np.eye(2), np.eye(2))

        with pytest.raises(ComputationError):
            sheaf.apply_laplacian(np.ones(4))
