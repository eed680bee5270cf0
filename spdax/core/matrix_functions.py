"""Spectral matrix functions for symmetric positive definite matrices.

All functions work on single matrices of shape ``(n, n)`` as well as on
batches of shape ``(..., n, n)``. Square roots and inverse square roots are
evaluated through the eigendecomposition ``X = U diag(λ) U^T`` with every
eigenvalue floored to the smallest positive normal number of its dtype, so
that eigenvalues that rounding pushed to zero or below never produce NaNs.
"""

import logging
from collections.abc import Callable
from typing import NamedTuple

import jax.numpy as jnp
from jax import Array

from .type_system import Eigenvalues, Eigenvectors, SPDMatrix, SymmetricMatrix

logger = logging.getLogger(__name__)


class EigenDecomposition(NamedTuple):
    """Eigendecomposition ``X = vectors @ diag(values) @ vectors.T`` of a symmetric matrix.

    Attributes:
        values: Eigenvalues in ascending order, shape ``(..., n)``.
        vectors: Orthonormal eigenvectors stored as columns, shape ``(..., n, n)``.
    """

    values: Eigenvalues
    vectors: Eigenvectors


def _transpose(x: Array) -> Array:
    return jnp.swapaxes(x, -1, -2)


def symmetrize(x: Array) -> SymmetricMatrix:
    """Return the symmetric part ``(X + X^T) / 2`` of a (batch of) square matrices."""
    return 0.5 * (x + _transpose(x))


def floor_eigenvalues(values: Eigenvalues) -> Eigenvalues:
    """Clamp eigenvalues from below to the smallest positive normal float of their dtype."""
    tiny = jnp.finfo(values.dtype).tiny
    floored = jnp.maximum(values, tiny)
    if not logger.isEnabledFor(logging.DEBUG):
        return floored
    try:
        if bool(jnp.any(values < tiny)):
            logger.debug(f"Floored {int(jnp.sum(values < tiny))} eigenvalue(s) to {tiny}")
    except TypeError:
        # Traced inside jit, nothing to report
        pass
    return floored


def symmetric_eigh(x: Array) -> EigenDecomposition:
    """Compute the eigendecomposition of the symmetrized input.

    Args:
        x: Square matrix or batch of square matrices.

    Returns:
        The eigendecomposition with ascending eigenvalues.
    """
    values, vectors = jnp.linalg.eigh(symmetrize(jnp.asarray(x)))
    return EigenDecomposition(values=values, vectors=vectors)


def from_eigen(values: Eigenvalues, vectors: Eigenvectors) -> Array:
    """Assemble ``U diag(values) U^T`` without materializing the diagonal matrix."""
    return (vectors * values[..., None, :]) @ _transpose(vectors)


def reconstruct(eigen: EigenDecomposition) -> SPDMatrix:
    """Rebuild the original matrix from its eigendecomposition (no eigenvalue floor)."""
    return from_eigen(eigen.values, eigen.vectors)


def eigen_function(eigen: EigenDecomposition, fn: Callable[[Array], Array]) -> SymmetricMatrix:
    """Evaluate the spectral function ``U diag(fn(λ)) U^T`` on floored eigenvalues.

    Args:
        eigen: Eigendecomposition of an SPD matrix.
        fn: Elementwise function applied to the floored eigenvalues.

    Returns:
        The symmetrized matrix function value.
    """
    return symmetrize(from_eigen(fn(floor_eigenvalues(eigen.values)), eigen.vectors))


def sqrt_from_eigen(eigen: EigenDecomposition) -> SymmetricMatrix:
    """Compute ``X^{1/2}`` from the eigendecomposition of ``X``."""
    return eigen_function(eigen, jnp.sqrt)


def sqrt_inv_from_eigen(eigen: EigenDecomposition) -> SymmetricMatrix:
    """Compute ``X^{-1/2}`` from the eigendecomposition of ``X``."""
    return eigen_function(eigen, lambda s: 1.0 / jnp.sqrt(s))


def sqrt_and_sqrt_inv_from_eigen(eigen: EigenDecomposition) -> tuple[SymmetricMatrix, SymmetricMatrix]:
    """Compute ``X^{1/2}`` and ``X^{-1/2}`` sharing a single floor of the eigenvalues."""
    s = jnp.sqrt(floor_eigenvalues(eigen.values))
    return (
        symmetrize(from_eigen(s, eigen.vectors)),
        symmetrize(from_eigen(1.0 / s, eigen.vectors)),
    )


def spd_sqrt(x: SPDMatrix) -> SymmetricMatrix:
    """Matrix square root of an SPD matrix via eigendecomposition."""
    return sqrt_from_eigen(symmetric_eigh(x))


def spd_sqrt_inv(x: SPDMatrix) -> SymmetricMatrix:
    """Inverse matrix square root of an SPD matrix via eigendecomposition."""
    return sqrt_inv_from_eigen(symmetric_eigh(x))


def spd_sqrt_and_sqrt_inv(x: SPDMatrix) -> tuple[SymmetricMatrix, SymmetricMatrix]:
    """Return ``(X^{1/2}, X^{-1/2})`` computing the eigendecomposition of ``X`` once."""
    return sqrt_and_sqrt_inv_from_eigen(symmetric_eigh(x))


def spd_log(x: SPDMatrix) -> SymmetricMatrix:
    """Matrix logarithm of an SPD matrix via eigendecomposition."""
    return eigen_function(symmetric_eigh(x), jnp.log)


def symmetric_exp(x: SymmetricMatrix) -> SPDMatrix:
    """Matrix exponential of a symmetric matrix via eigendecomposition."""
    eigen = symmetric_eigh(x)
    return symmetrize(from_eigen(jnp.exp(eigen.values), eigen.vectors))
