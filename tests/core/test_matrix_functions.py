"""Tests for the eigendecomposition-based matrix functions."""

import logging
from unittest import mock

import jax
import jax.numpy as jnp
import pytest

from spdax.core import matrix_functions
from spdax.core.matrix_functions import (
    EigenDecomposition,
    floor_eigenvalues,
    reconstruct,
    spd_log,
    spd_sqrt,
    spd_sqrt_and_sqrt_inv,
    spd_sqrt_inv,
    symmetric_eigh,
    symmetric_exp,
    symmetrize,
)


@pytest.fixture
def spd_matrix():
    """A well-conditioned 3x3 SPD matrix."""
    return jnp.array([[4.0, 1.0, 0.5], [1.0, 3.0, 0.2], [0.5, 0.2, 2.0]])


class TestSymmetrize:
    """Test symmetrization."""

    def test_symmetric_part(self):
        """Test that symmetrize returns (X + X^T) / 2."""
        x = jnp.array([[1.0, 2.0], [4.0, 3.0]])
        expected = jnp.array([[1.0, 3.0], [3.0, 3.0]])
        assert jnp.allclose(symmetrize(x), expected)

    def test_result_is_exactly_symmetric(self, key):
        """Test that the result equals its transpose bit for bit."""
        x = jax.random.normal(key, (6, 6))
        s = symmetrize(x)
        assert jnp.array_equal(s, s.T)

    def test_batched(self, key):
        """Test that symmetrize transposes only the trailing axes."""
        x = jax.random.normal(key, (4, 3, 3))
        s = symmetrize(x)
        assert s.shape == (4, 3, 3)
        assert jnp.array_equal(s, jnp.swapaxes(s, -1, -2))


class TestFloorEigenvalues:
    """Test the eigenvalue floor."""

    def test_floor_replaces_non_positive_values(self):
        """Test that zero and negative eigenvalues become the smallest normal float."""
        values = jnp.array([-1.0, 0.0, 2.0], dtype=jnp.float64)
        tiny = jnp.finfo(jnp.float64).tiny
        assert jnp.array_equal(floor_eigenvalues(values), jnp.array([tiny, tiny, 2.0]))

    def test_floor_respects_dtype(self):
        """Test that the floor depends on the dtype."""
        values = jnp.zeros(2, dtype=jnp.float32)
        assert floor_eigenvalues(values)[0] == jnp.finfo(jnp.float32).tiny

    def test_floor_under_jit(self):
        """Test that flooring works on traced values."""
        values = jnp.array([-1.0, 1.0])
        result = jax.jit(floor_eigenvalues)(values)
        assert result[0] > 0
        assert result[1] == 1.0


    def test_floor_skips_reporting_without_debug_logging(self, caplog):
        """Test that the floored count is only evaluated when debug logging is on."""
        values = jnp.array([-1.0, 1.0])
        with caplog.at_level(logging.INFO, logger="spdax.core.matrix_functions"), mock.patch.object(
            matrix_functions.jnp, "any", wraps=jnp.any
        ) as any_mock:
            floor_eigenvalues(values)
        any_mock.assert_not_called()
        assert "Floored" not in caplog.text

    def test_floor_reports_with_debug_logging(self, caplog):
        """Test that floored eigenvalues are logged at debug level."""
        with caplog.at_level(logging.DEBUG, logger="spdax.core.matrix_functions"):
            floor_eigenvalues(jnp.array([-1.0, 0.0, 1.0]))
        assert "Floored 2 eigenvalue(s)" in caplog.text

class TestEigendecomposition:
    """Test eigendecomposition and reconstruction."""

    def test_reconstruct_round_trip(self, spd_matrix):
        """Test that U diag(λ) U^T recovers the matrix."""
        eigen = symmetric_eigh(spd_matrix)
        assert isinstance(eigen, EigenDecomposition)
        assert jnp.allclose(reconstruct(eigen), spd_matrix, atol=1e-12)

    def test_eigenvalues_ascending(self, spd_matrix):
        """Test that the eigenvalues are sorted in ascending order."""
        values = symmetric_eigh(spd_matrix).values
        assert jnp.all(jnp.diff(values) >= 0)

    def test_uses_symmetric_part(self):
        """Test that the decomposition is that of the symmetrized input."""
        x = jnp.array([[2.0, 1.0], [0.0, 2.0]])
        eigen = symmetric_eigh(x)
        assert jnp.allclose(reconstruct(eigen), symmetrize(x), atol=1e-12)


class TestSquareRoots:
    """Test square root and inverse square root."""

    def test_sqrt_squares_to_matrix(self, spd_matrix):
        """Test that (X^{1/2})^2 = X."""
        s = spd_sqrt(spd_matrix)
        assert jnp.allclose(s @ s, spd_matrix, atol=1e-10)

    def test_sqrt_inv_inverts_sqrt(self, spd_matrix):
        """Test that X^{1/2} X^{-1/2} = I."""
        assert jnp.allclose(spd_sqrt(spd_matrix) @ spd_sqrt_inv(spd_matrix), jnp.eye(3), atol=1e-10)

    def test_pair_matches_individual_functions(self, spd_matrix):
        """Test that the combined function agrees with the single ones."""
        s, s_inv = spd_sqrt_and_sqrt_inv(spd_matrix)
        assert jnp.allclose(s, spd_sqrt(spd_matrix), atol=1e-12)
        assert jnp.allclose(s_inv, spd_sqrt_inv(spd_matrix), atol=1e-12)

    def test_pair_decomposes_once(self, spd_matrix):
        """Test that the combined function runs the eigensolver exactly once."""
        with mock.patch.object(matrix_functions, "symmetric_eigh", wraps=symmetric_eigh) as eigh:
            matrix_functions.spd_sqrt_and_sqrt_inv(spd_matrix)
        assert eigh.call_count == 1

    def test_singular_matrix_stays_finite(self):
        """Test that a zero eigenvalue does not produce NaN or inf."""
        singular = jnp.array([[1.0, 0.0], [0.0, 0.0]])
        s, s_inv = spd_sqrt_and_sqrt_inv(singular)
        assert jnp.all(jnp.isfinite(s))
        assert jnp.all(jnp.isfinite(s_inv))

    def test_results_are_symmetric(self, key):
        """Test that the roots of a random SPD matrix are exactly symmetric."""
        a = jax.random.normal(key, (5, 5))
        x = a @ a.T + jnp.eye(5)
        s, s_inv = spd_sqrt_and_sqrt_inv(x)
        assert jnp.array_equal(s, s.T)
        assert jnp.array_equal(s_inv, s_inv.T)


class TestLogExp:
    """Test matrix logarithm and exponential."""

    def test_exp_inverts_log(self, spd_matrix):
        """Test that exp(log(X)) = X."""
        assert jnp.allclose(symmetric_exp(spd_log(spd_matrix)), spd_matrix, atol=1e-10)

    def test_log_identity_is_zero(self):
        """Test that log(I) = 0."""
        assert jnp.allclose(spd_log(jnp.eye(3)), jnp.zeros((3, 3)), atol=1e-14)
