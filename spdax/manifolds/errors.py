"""Manifold error hierarchy.

Validity checks in spdax *return* instances of these exceptions instead of
raising them, so callers can inspect the offending quantity and decide for
themselves whether a violation is fatal. Numerical failures of the
underlying factorizations are raised.
"""

from typing import Any

import jax.numpy as jnp
from jaxtyping import Array


class ManifoldError(Exception):
    """Base exception for manifold-related errors."""

    pass


class DimensionError(ManifoldError):
    """Exception for shape mismatches between arrays and the manifold size."""

    def __init__(self, message: str, expected: int | tuple | None = None, actual: int | tuple | None = None):
        """Initialize DimensionError with dimension information."""
        super().__init__(message)
        self.expected = expected
        self.actual = actual

    def __str__(self) -> str:
        """Return string representation with dimension information."""
        base_msg = super().__str__()
        if self.expected is not None and self.actual is not None:
            return f"{base_msg} (expected={self.expected}, actual={self.actual})"
        return base_msg


class NumericalStabilityError(ManifoldError):
    """Exception for failed factorizations (eigensolver, Cholesky) in manifold computations."""

    def __init__(
        self,
        message: str,
        condition_number: float | None = None,
        matrix_norm: float | None = None,
        recommended_action: str | None = None,
    ):
        """Initialize NumericalStabilityError with numerical diagnostics."""
        super().__init__(message)
        self.condition_number = condition_number
        self.matrix_norm = matrix_norm
        self.recommended_action = recommended_action


class InvalidPointError(ManifoldError):
    """Exception for points that do not lie on the manifold.

    ``constraint_value`` carries the offending quantity: the asymmetry
    residual ``||p - p^T||`` for ``violated_constraint == "symmetric"`` and the
    eigenvalues of ``p`` for ``violated_constraint == "positive_definite"``.
    """

    def __init__(
        self,
        message: str,
        point: Array | None = None,
        violated_constraint: str | None = None,
        constraint_value: Any = None,
    ):
        """Initialize InvalidPointError with constraint violation information."""
        super().__init__(message)
        self.point = point
        self.violated_constraint = violated_constraint
        self.constraint_value = constraint_value


class InvalidTangentVectorError(ManifoldError):
    """Exception for tangent vectors that do not lie in the tangent space."""

    def __init__(
        self,
        message: str,
        tangent_vector: Array | None = None,
        base_point: Array | None = None,
        symmetry_error: float | None = None,
    ):
        """Initialize InvalidTangentVectorError with tangent space violation information."""
        super().__init__(message)
        self.tangent_vector = tangent_vector
        self.base_point = base_point
        self.symmetry_error = symmetry_error


def validate_dimensions_match(arrays: list[Array], operation: str) -> None:
    """Validate that arrays have identical shapes for an operation.

    Args:
        arrays: List of arrays to check
        operation: Name of operation for error reporting

    Raises:
        DimensionError: If shapes don't match
    """
    if len(arrays) < 2:
        return

    reference_shape = jnp.shape(arrays[0])

    for i, array in enumerate(arrays[1:], 1):
        if jnp.shape(array) != reference_shape:
            raise DimensionError(
                f"Shape mismatch in {operation} at array {i}", expected=reference_shape, actual=jnp.shape(array)
            )


def check_finite(array: Array, operation: str) -> None:
    """Raise if a factorization produced non-finite values.

    JAX linear algebra reports failure (e.g. Cholesky of an indefinite matrix)
    by returning NaNs instead of raising. This helper turns that into a
    :class:`NumericalStabilityError`. Traced values are passed through.

    Args:
        array: Result of the factorization.
        operation: Name of operation for error reporting.

    Raises:
        NumericalStabilityError: If ``array`` contains NaN or infinite entries.
    """
    try:
        finite = bool(jnp.all(jnp.isfinite(array)))
    except TypeError:
        # In JAX traced context the check cannot be performed eagerly
        return
    if not finite:
        raise NumericalStabilityError(
            f"{operation} produced non-finite values",
            recommended_action=f"Check that the input to {operation} is a finite symmetric positive definite matrix",
        )
