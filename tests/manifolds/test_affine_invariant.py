"""Tests for the affine-invariant inner product, diagonalizing basis and parallel transport.

These are the collaborators behind Gaussian tangent sampling: an orthonormal
basis at the identity is transported to the base point, so the tests check
orthonormality, the curvature values and the isometry of the transport.
"""

import jax
import jax.numpy as jnp
import jax.random as jr
import pytest

from spdax.core.matrix_functions import spd_sqrt
from spdax.manifolds.affine_invariant import DiagonalizingBasis, diagonalizing_basis, inner, parallel_transport_to
from spdax.manifolds.spd import SymmetricPositiveDefinite
from spdax.manifolds.spd_point import as_spd_point


def _gram(p, vectors):
    return jax.vmap(lambda a: jax.vmap(lambda b: inner(p, a, b))(vectors))(vectors)


class TestInner:
    """Test suite for the affine-invariant inner product."""

    def setup_method(self):
        """Setup test fixtures."""
        self.manifold = SymmetricPositiveDefinite(n=3)
        self.key = jr.key(42)

    def test_identity_is_frobenius(self):
        """Test that the metric at the identity is the Frobenius inner product."""
        key1, key2 = jr.split(self.key)
        X = self.manifold.proj(None, jr.normal(key1, (3, 3)))
        Y = self.manifold.proj(None, jr.normal(key2, (3, 3)))
        assert jnp.allclose(inner(jnp.eye(3), X, Y), jnp.sum(X * Y), atol=1e-12)

    def test_closed_form(self):
        """Test that <X, Y>_p = tr(p^{-1} X p^{-1} Y)."""
        key1, key2, key3 = jr.split(self.key, 3)
        p = self.manifold.random_point(key1)
        X = self.manifold.proj(p, jr.normal(key2, (3, 3)))
        Y = self.manifold.proj(p, jr.normal(key3, (3, 3)))
        p_inv = jnp.linalg.inv(p)
        assert jnp.allclose(inner(p, X, Y), jnp.trace(p_inv @ X @ p_inv @ Y), atol=1e-10)

    def test_symmetric_and_positive(self):
        """Test symmetry and positivity."""
        key1, key2, key3 = jr.split(self.key, 3)
        p = self.manifold.random_point(key1)
        X = self.manifold.random_tangent(key2, p)
        Y = self.manifold.random_tangent(key3, p)
        assert jnp.allclose(inner(p, X, Y), inner(p, Y, X), atol=1e-12)
        assert inner(p, X, X) > 0

    def test_cached_point(self):
        """Test that cached points give the same result as plain ones."""
        key1, key2 = jr.split(self.key)
        p = self.manifold.random_point(key1)
        X = self.manifold.random_tangent(key2, p)
        cached = as_spd_point(p, store_sqrt=False)
        assert jnp.allclose(inner(cached, X, X), inner(p, X, X), atol=1e-12)


class TestDiagonalizingBasis:
    """Test suite for the curvature-diagonalizing tangent basis."""

    def setup_method(self):
        """Setup test fixtures."""
        self.manifold = SymmetricPositiveDefinite(n=4)
        self.key = jr.key(7)

    @pytest.mark.parametrize("n", [1, 2, 3, 5])
    def test_basis_size(self, n):
        """Test that the basis has n(n+1)/2 elements."""
        basis = diagonalizing_basis(jnp.eye(n), jnp.eye(n))
        assert isinstance(basis, DiagonalizingBasis)
        assert basis.vectors.shape == (n * (n + 1) // 2, n, n)
        assert basis.curvatures.shape == (n * (n + 1) // 2,)

    def test_orthonormal_at_identity(self):
        """Test orthonormality under the metric at the identity."""
        basis = diagonalizing_basis(jnp.eye(4), jnp.eye(4))
        assert jnp.allclose(_gram(jnp.eye(4), basis.vectors), jnp.eye(10), atol=1e-12)

    def test_orthonormal_at_point(self):
        """Test orthonormality under the metric at an arbitrary point and direction."""
        key1, key2 = jr.split(self.key)
        p = self.manifold.random_point(key1)
        direction = self.manifold.random_tangent(key2, p)
        basis = diagonalizing_basis(p, direction)
        assert jnp.allclose(_gram(p, basis.vectors), jnp.eye(10), atol=1e-10)

    def test_vectors_are_symmetric(self):
        """Test that every basis vector is a tangent vector."""
        basis = diagonalizing_basis(self.manifold.random_point(self.key), jnp.eye(4))
        assert jnp.array_equal(basis.vectors, jnp.swapaxes(basis.vectors, -1, -2))

    def test_identity_direction_is_flat(self):
        """Test that all curvatures vanish along the identity."""
        basis = diagonalizing_basis(jnp.eye(4), jnp.eye(4))
        assert jnp.allclose(basis.curvatures, 0.0)

    def test_curvature_values(self):
        """Test the curvatures -(λ_i - λ_j)^2 / 4 in upper-triangle order."""
        direction = jnp.diag(jnp.array([1.0, 2.0, 4.0]))
        basis = diagonalizing_basis(jnp.eye(3), direction)
        # Pairs (0,0) (0,1) (0,2) (1,1) (1,2) (2,2)
        expected = -0.25 * jnp.array([0.0, 1.0, 9.0, 0.0, 4.0, 0.0])
        assert jnp.allclose(basis.curvatures, expected)

    def test_basis_at_identity_is_canonical(self):
        """Test the explicit basis vectors at the identity."""
        basis = diagonalizing_basis(jnp.eye(2), jnp.eye(2))
        s = 1.0 / jnp.sqrt(2.0)
        expected = jnp.array(
            [
                [[1.0, 0.0], [0.0, 0.0]],
                [[0.0, s], [s, 0.0]],
                [[0.0, 0.0], [0.0, 1.0]],
            ]
        )
        assert jnp.allclose(jnp.abs(basis.vectors), expected, atol=1e-12)


class TestParallelTransport:
    """Test suite for the closed-form affine-invariant parallel transport."""

    def setup_method(self):
        """Setup test fixtures."""
        self.manifold = SymmetricPositiveDefinite(n=3)
        self.key = jr.key(42)

    def test_transport_identity(self):
        """Test that transporting from a point to itself preserves the vector."""
        key1, key2 = jr.split(self.key)
        x = self.manifold.random_point(key1)
        v = self.manifold.random_tangent(key2, x)
        assert jnp.allclose(parallel_transport_to(x, v, x), v, atol=1e-12)

    def test_transport_from_identity(self):
        """Test that transport from I to q is q^{1/2} X q^{1/2}."""
        key1, key2 = jr.split(self.key)
        q = self.manifold.random_point(key1)
        X = self.manifold.proj(None, jr.normal(key2, (3, 3)))
        q_sqrt = spd_sqrt(q)
        assert jnp.allclose(parallel_transport_to(jnp.eye(3), X, q), q_sqrt @ X @ q_sqrt, atol=1e-10)

    def test_transport_is_isometry(self):
        """Test that transport preserves the inner product."""
        key1, key2, key3, key4 = jr.split(self.key, 4)
        x = self.manifold.random_point(key1)
        y = self.manifold.random_point(key2)
        u = self.manifold.random_tangent(key3, x)
        v = self.manifold.random_tangent(key4, x)

        tu = parallel_transport_to(x, u, y)
        tv = parallel_transport_to(x, v, y)
        assert jnp.allclose(inner(y, tu, tv), inner(x, u, v), atol=1e-10)

    def test_transport_is_linear(self):
        """Test linearity: transport(a*u + b*v) = a*transport(u) + b*transport(v)."""
        key1, key2, key3, key4 = jr.split(self.key, 4)
        x = self.manifold.random_point(key1)
        y = self.manifold.random_point(key2)
        u = self.manifold.random_tangent(key3, x)
        v = self.manifold.random_tangent(key4, x)

        combined = parallel_transport_to(x, 2.0 * u - 0.5 * v, y)
        separate = 2.0 * parallel_transport_to(x, u, y) - 0.5 * parallel_transport_to(x, v, y)
        assert jnp.allclose(combined, separate, atol=1e-10)

    def test_transport_round_trip(self):
        """Test that transporting there and back returns the vector."""
        key1, key2, key3 = jr.split(self.key, 3)
        x = self.manifold.random_point(key1)
        y = self.manifold.random_point(key2)
        v = self.manifold.random_tangent(key3, x)
        back = parallel_transport_to(y, parallel_transport_to(x, v, y), x)
        assert jnp.allclose(back, v, atol=1e-10)

    def test_result_is_symmetric(self):
        """Test that the transported vector is a tangent vector."""
        key1, key2, key3 = jr.split(self.key, 3)
        x = self.manifold.random_point(key1)
        y = self.manifold.random_point(key2)
        v = self.manifold.random_tangent(key3, x)
        transported = parallel_transport_to(x, v, y)
        assert transported.shape == v.shape
        assert transported.dtype == v.dtype
        assert jnp.array_equal(transported, transported.T)

    def test_cached_points(self):
        """Test that cached start and end points give the same transport."""
        key1, key2, key3 = jr.split(self.key, 3)
        x = self.manifold.random_point(key1)
        y = self.manifold.random_point(key2)
        v = self.manifold.random_tangent(key3, x)
        expected = parallel_transport_to(x, v, y)
        result = parallel_transport_to(as_spd_point(x), v, as_spd_point(y, store_sqrt=False))
        assert jnp.allclose(result, expected, atol=1e-12)

    def test_transport_under_jit(self):
        """Test that the transport compiles."""
        key1, key2, key3 = jr.split(self.key, 3)
        x = self.manifold.random_point(key1)
        y = self.manifold.random_point(key2)
        v = self.manifold.random_tangent(key3, x)
        assert jnp.allclose(jax.jit(parallel_transport_to)(x, v, y), parallel_transport_to(x, v, y), atol=1e-12)
