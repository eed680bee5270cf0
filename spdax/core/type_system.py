"""Type system for spdax with JAX array validation.

This module provides type aliases and validation utilities for the JAX arrays
that represent SPD matrices, their eigendecompositions and tangent vectors.
"""

from typing import Any

import jax.numpy as jnp
from jaxtyping import Array, Float

# Type aliases for common manifold objects
SPDMatrix = Float[Array, "... n n"]
"""Type alias for (batches of) symmetric positive definite matrices."""

SymmetricMatrix = Float[Array, "... n n"]
"""Type alias for symmetric matrices, i.e. tangent vectors of SPD(n)."""

Eigenvalues = Float[Array, "... n"]
"""Type alias for the eigenvalues of a symmetric matrix."""

Eigenvectors = Float[Array, "... n n"]
"""Type alias for orthonormal eigenvector matrices (eigenvectors as columns)."""


def validate_shape(array: Array, expected_shape: str) -> bool:
    """Validate that an array has the expected shape pattern.

    Args:
        array: JAX array to validate
        expected_shape: Expected shape pattern as string (e.g., "3", "2 2", "... 3")

    Returns:
        True if shape matches the pattern, False otherwise

    Examples:
        >>> arr2d = jnp.eye(2)
        >>> validate_shape(arr2d, "2 2")
        True
        >>> validate_shape(arr2d, "3 3")
        False
        >>> validate_shape(jnp.zeros((4, 2, 2)), "... 2 2")
        True
    """
    actual_shape = jnp.shape(array)
    expected_parts = expected_shape.split()

    if expected_parts and expected_parts[0] == "...":
        if len(expected_parts) == 1:
            return True
        expected_suffix = tuple(int(dim) for dim in expected_parts[1:])
        if len(actual_shape) < len(expected_suffix):
            return False
        return bool(actual_shape[-len(expected_suffix) :] == expected_suffix)

    try:
        expected_dims = tuple(int(dim) for dim in expected_parts)
        return bool(actual_shape == expected_dims)
    except ValueError:
        # Invalid shape specification
        return False


def ensure_array_dtype(array: Array, target_dtype: jnp.dtype[Any] | None) -> Array:
    """Ensure an array has the specified dtype, converting if necessary.

    Args:
        array: JAX array to convert
        target_dtype: Target dtype for the array, ``None`` keeps the current one

    Returns:
        Array with the specified dtype

    Examples:
        >>> arr = jnp.array([1, 2, 3])
        >>> ensure_array_dtype(arr, jnp.float32).dtype
        dtype('float32')
    """
    array = jnp.asarray(array)
    if target_dtype is None or array.dtype == target_dtype:
        return array

    return array.astype(target_dtype)
