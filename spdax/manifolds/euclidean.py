"""Euclidean space of real arrays of a fixed shape.

This is the ambient space into which matrix manifolds are embedded. Every
array of the right shape is a point, tangent spaces are the space itself and
the embedding, projection and parallel transport are identities.
"""

import math

import jax.numpy as jnp
import jax.random as jr
from jaxtyping import Array, PRNGKeyArray

from ..core.constants import NumericalConstants
from ..core.random import resolve_key
from .base import Manifold
from .errors import DimensionError, ManifoldError


class Euclidean(Manifold):
    """Euclidean space R^(n1 x n2 x ...) with the flat Frobenius metric.

    Args:
        *shape: Shape of the arrays representing points.
    """

    def __init__(self, *shape: int) -> None:
        super().__init__()
        if not shape or any(not isinstance(n, int) or n <= 0 for n in shape):
            raise ValueError(f"Euclidean shape must be positive integers, got {shape}")
        self.shape = tuple(shape)

    @property
    def dimension(self) -> int:
        """Intrinsic dimension, the number of entries of a point."""
        return math.prod(self.shape)

    @property
    def representation_size(self) -> tuple[int, ...]:
        return self.shape

    def check_size(self, x, v: Array | None = None) -> ManifoldError | None:
        for name, array in (("point", x), ("vector", v)):
            if array is not None and jnp.shape(array) != self.shape:
                return DimensionError(
                    f"The {name} does not have the shape of {self!r}", expected=self.shape, actual=jnp.shape(array)
                )
        return None

    def check_point(self, x, atol: float | None = None, rtol: float | None = None) -> ManifoldError | None:
        return self.check_size(x)

    def check_vector(self, x, v: Array, atol: float | None = None, rtol: float | None = None) -> ManifoldError | None:
        return self.check_size(x, v)

    def embed(self, x, v: Array | None = None) -> Array:
        return x if v is None else v

    def proj(self, x, v: Array) -> Array:
        return v

    def zero_vector(self, x) -> Array:
        return jnp.zeros(self.shape, dtype=jnp.asarray(x).dtype)

    def is_approx(self, x, y, atol: float | None = None, rtol: float | None = None) -> bool:
        atol = NumericalConstants.ATOL if atol is None else atol
        rtol = NumericalConstants.RTOL if rtol is None else rtol
        return bool(jnp.allclose(x, y, atol=atol, rtol=rtol))

    def injectivity_radius(self, x=None, method=None) -> float:
        return math.inf

    def random_point(self, key: PRNGKeyArray | None = None, *shape: int) -> Array:
        """Sample standard normal point(s)."""
        return jr.normal(resolve_key(key), (*shape, *self.shape))

    def random_tangent(self, key: PRNGKeyArray | None, x, *shape: int) -> Array:
        """Sample standard normal tangent vector(s)."""
        return jr.normal(resolve_key(key), (*shape, *self.shape))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Euclidean) and other.shape == self.shape

    def __hash__(self) -> int:
        return hash((Euclidean, self.shape))

    def __repr__(self) -> str:
        return f"Euclidean({', '.join(str(n) for n in self.shape)})"
