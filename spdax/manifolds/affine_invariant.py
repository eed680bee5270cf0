"""Affine-invariant geometry needed for sampling tangent vectors on SPD(n).

Random tangent vectors are drawn in an orthonormal basis of the tangent
space at the identity that is then parallel transported to the base point.
This module provides the three pieces that requires under the
affine-invariant metric ``<X, Y>_p = tr(p^{-1} X p^{-1} Y)``:

* :func:`inner`, the metric itself,
* :func:`diagonalizing_basis`, an orthonormal basis diagonalizing the
  curvature operator in a given direction,
* :func:`parallel_transport_to`, the closed-form parallel transport.

All of them accept plain arrays as well as :class:`SPDPoint` instances, in
which case the cached square roots are reused.
"""

from typing import NamedTuple

import jax
import jax.numpy as jnp
from jaxtyping import Array, Float

from ..core.constants import NumericalConstants
from ..core.matrix_functions import spd_log, symmetric_eigh, symmetric_exp, symmetrize
from ..core.type_system import SymmetricMatrix
from .spd_point import get_p_sqrt, get_p_sqrt_and_sqrt_inv, get_p_sqrt_inv, get_point


class DiagonalizingBasis(NamedTuple):
    """Orthonormal tangent basis diagonalizing the curvature operator.

    Attributes:
        vectors: Basis vectors stacked along the first axis, shape ``(n(n+1)/2, n, n)``.
        curvatures: Eigenvalue of the curvature operator for each basis vector.
    """

    vectors: Float[Array, "d n n"]
    curvatures: Float[Array, " d"]


def inner(p, X: SymmetricMatrix, Y: SymmetricMatrix) -> Array:
    """Affine-invariant inner product ``tr(p^{-1} X p^{-1} Y)`` of tangent vectors at p.

    Args:
        p: Point on SPD(n), plain or cached.
        X: First tangent vector at p.
        Y: Second tangent vector at p.

    Returns:
        The inner product as a scalar array.
    """
    p_sqrt_inv = get_p_sqrt_inv(p)
    a = p_sqrt_inv @ X @ p_sqrt_inv
    b = p_sqrt_inv @ Y @ p_sqrt_inv
    return jnp.sum(a * jnp.swapaxes(b, -1, -2), axis=(-2, -1))


def diagonalizing_basis(p, direction: SymmetricMatrix) -> DiagonalizingBasis:
    """Orthonormal basis of the tangent space at p diagonalizing the curvature in ``direction``.

    With ``direction = V diag(λ) V^T`` the basis vectors are
    ``c_ij p^{1/2} (v_i v_j^T + v_j v_i^T) p^{1/2}`` for ``i <= j`` with
    ``c_ii = 1/2`` and ``c_ij = 1/sqrt(2)``, ordered row by row through the
    upper triangle. The associated curvatures are ``-(λ_i - λ_j)^2 / 4``.

    Args:
        p: Point on SPD(n), plain or cached.
        direction: Symmetric matrix the curvature operator is taken along.

    Returns:
        The basis and the curvature eigenvalues.
    """
    p_sqrt = get_p_sqrt(p)
    eigen = symmetric_eigh(direction)
    n = eigen.vectors.shape[-1]
    rows, cols = jnp.triu_indices(n)

    v_i = eigen.vectors[:, rows].T
    v_j = eigen.vectors[:, cols].T
    outer = v_i[:, :, None] * v_j[:, None, :]
    coefficients = jnp.where(rows == cols, 0.5, 1.0 / jnp.sqrt(2.0)).astype(outer.dtype)
    unit = coefficients[:, None, None] * (outer + jnp.swapaxes(outer, -1, -2))

    vectors = symmetrize(p_sqrt @ unit @ p_sqrt)
    curvatures = -0.25 * (eigen.values[rows] - eigen.values[cols]) ** 2
    return DiagonalizingBasis(vectors=vectors, curvatures=curvatures)


def parallel_transport_to(p, X: SymmetricMatrix, q) -> SymmetricMatrix:
    """Parallel transport X from the tangent space at p to the one at q.

    Uses the closed form of the affine-invariant metric,
    ``p^{1/2} E (p^{-1/2} X p^{-1/2}) E p^{1/2}`` with
    ``E = exp(log(p^{-1/2} q p^{-1/2}) / 2)``. Transport between (numerically)
    identical points returns X.

    Args:
        p: Starting point, plain or cached.
        X: Tangent vector at p.
        q: Target point, plain or cached.

    Returns:
        The transported vector, a symmetric matrix.
    """
    p_sqrt, p_sqrt_inv = get_p_sqrt_and_sqrt_inv(p)
    q_matrix = get_point(q)
    X = jnp.asarray(X)
    dtype = jnp.result_type(p_sqrt, X)

    distance_sq = jnp.sum((get_point(p) - q_matrix) ** 2)
    is_same_point = distance_sq < NumericalConstants.TRANSPORT_IDENTITY_TOLERANCE**2

    def identity_transport():
        return symmetrize(X).astype(dtype)

    def affine_invariant_transport():
        tv = symmetrize(p_sqrt_inv @ X @ p_sqrt_inv)
        ty = symmetrize(p_sqrt_inv @ q_matrix @ p_sqrt_inv)
        half_step = symmetric_exp(0.5 * spd_log(ty))
        return symmetrize(p_sqrt @ half_step @ tv @ half_step @ p_sqrt).astype(dtype)

    return jax.lax.cond(is_same_point, identity_transport, affine_invariant_transport)
