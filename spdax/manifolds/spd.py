"""Implementation of the Symmetric Positive Definite (SPD) manifold.

This module provides the manifold of symmetric positive definite matrices,

    SPD(n) = {X ∈ R^(nxn) : X = X^T, a^T X a > 0 for all a ≠ 0},

embedded in the Euclidean space of nxn real matrices. Its tangent space at
every point is the space of symmetric matrices. Every operation accepts
plain arrays as well as :class:`~spdax.manifolds.spd_point.SPDPoint`
instances, which are unwrapped through their cached accessors.
"""

import logging
import math
from collections.abc import Callable
from functools import partial

import jax
import jax.numpy as jnp
import jax.random as jr
from jaxtyping import Array, PRNGKeyArray

from ..core.constants import NumericalConstants
from ..core.matrix_functions import symmetrize
from ..core.random import resolve_key
from ..core.type_system import SPDMatrix, SymmetricMatrix, validate_shape
from .affine_invariant import diagonalizing_basis, parallel_transport_to
from .base import Manifold
from .errors import (
    DimensionError,
    InvalidPointError,
    InvalidTangentVectorError,
    ManifoldError,
    check_finite,
)
from .euclidean import Euclidean
from .spd_point import SPDPoint, get_point

logger = logging.getLogger(__name__)

TANGENT_DISTRIBUTIONS = ("gaussian", "rician")


def _tolerances(atol: float | None, rtol: float | None) -> tuple[float, float]:
    return (
        NumericalConstants.SYMMETRY_TOLERANCE if atol is None else atol,
        NumericalConstants.RTOL if rtol is None else rtol,
    )


def _asymmetry(x: Array) -> float:
    return float(jnp.linalg.norm(x - x.T))


class SymmetricPositiveDefinite(Manifold):
    """Symmetric Positive Definite manifold SPD(n).

    The manifold itself only stores the matrix size ``n``. Points are nxn SPD
    matrices (plain or cached as :class:`SPDPoint`), tangent vectors are
    symmetric nxn matrices.
    """

    def __init__(self, n: int) -> None:
        """Initialize the SPD manifold.

        Args:
            n: Size of the matrices (nxn).
        """
        super().__init__()
        self.n = n

    # Validity checks

    def check_size(self, x, v: Array | None = None) -> ManifoldError | None:
        """Check that x and, when given, v are nxn arrays.

        Returns:
            ``None`` if the shapes match, otherwise a :class:`DimensionError`.
        """
        expected = f"{self.n} {self.n}"
        x_matrix = get_point(x)
        if not validate_shape(x_matrix, expected):
            return DimensionError(
                f"The point does not have the representation size of {self!r}",
                expected=self.representation_size,
                actual=jnp.shape(x_matrix),
            )
        if v is not None and not validate_shape(v, expected):
            return DimensionError(
                f"The vector does not have the representation size of {self!r}",
                expected=self.representation_size,
                actual=jnp.shape(v),
            )
        return None

    def check_point(self, x, atol: float | None = None, rtol: float | None = None) -> ManifoldError | None:
        """Check whether x is a point on SPD(n).

        The matrix must have size nxn, be symmetric up to
        ``||x - x^T|| <= atol + rtol * ||x||`` and have only positive eigenvalues.

        Args:
            x: Candidate point, plain or cached.
            atol: Absolute tolerance of the symmetry check.
            rtol: Relative tolerance of the symmetry check.

        Returns:
            ``None`` if x is valid. Otherwise a :class:`DimensionError`, or an
            :class:`InvalidPointError` whose ``constraint_value`` is the
            asymmetry residual (``"symmetric"``) or the eigenvalues of x
            (``"positive_definite"``).
        """
        size_error = self.check_size(x)
        if size_error is not None:
            return size_error

        atol, rtol = _tolerances(atol, rtol)
        p = jnp.asarray(get_point(x))
        residual = _asymmetry(p)
        if residual > atol + rtol * float(jnp.linalg.norm(p)):
            return InvalidPointError(
                f"The point {p} does not lie on {self!r} since it is not a symmetric matrix "
                f"(||p - p^T|| = {residual:.6e})",
                point=p,
                violated_constraint="symmetric",
                constraint_value=residual,
            )

        eigenvalues = jnp.linalg.eigvalsh(p)
        if not bool(jnp.all(eigenvalues > 0)):
            return InvalidPointError(
                f"The point {p} does not lie on {self!r} since it is not a positive definite matrix "
                f"(eigenvalues {eigenvalues})",
                point=p,
                violated_constraint="positive_definite",
                constraint_value=eigenvalues,
            )
        return None

    def check_vector(self, x, v: Array, atol: float | None = None, rtol: float | None = None) -> ManifoldError | None:
        """Check whether v is a tangent vector at x, i.e. a symmetric matrix.

        x itself is not checked; use :meth:`check_point` (or :meth:`is_vector`
        with ``check_base_point=True``) for that.

        Args:
            x: Base point, plain or cached.
            v: Candidate tangent vector.
            atol: Absolute tolerance of the symmetry check.
            rtol: Relative tolerance of the symmetry check.

        Returns:
            ``None`` if v is symmetric. Otherwise a :class:`DimensionError` when
            v is not nxn, or an :class:`InvalidTangentVectorError`.
        """
        size_error = self.check_size(x, v)
        if size_error is not None:
            return size_error

        atol, rtol = _tolerances(atol, rtol)
        v = jnp.asarray(v)
        residual = _asymmetry(v)
        if residual > atol + rtol * float(jnp.linalg.norm(v)):
            return InvalidTangentVectorError(
                f"The vector {v} is not a tangent vector to a point on {self!r} "
                f"(represented as an element of the Lie algebra) since it is not symmetric "
                f"(||X - X^T|| = {residual:.6e})",
                tangent_vector=v,
                base_point=x,
                symmetry_error=residual,
            )
        return None

    # Structure

    @property
    def dimension(self) -> int:
        """Intrinsic dimension of the SPD manifold.

        For SPD(n), the dimension is n(n+1)/2 since SPD matrices are symmetric,
        so only the upper triangular part including the diagonal is independent.
        """
        return (self.n * (self.n + 1)) // 2

    @property
    def representation_size(self) -> tuple[int, int]:
        """Shape (n, n) of the arrays representing points and tangent vectors."""
        return (self.n, self.n)

    def get_embedding(self) -> Euclidean:
        """Return the ambient space, the Euclidean space of nxn real matrices."""
        return Euclidean(*self.representation_size)

    def injectivity_radius(self, x=None, method=None) -> float:
        """Return the injectivity radius, which is infinite.

        SPD(n) is a Hadamard manifold under the affine-invariant and the
        log-Cholesky metric, so the radius is infinite for every point and
        every retraction method.
        """
        return math.inf

    # Embedding and tangent spaces

    def embed(self, x, v: Array | None = None) -> Array:
        """Embed a point (or a tangent vector at x) into the nxn real matrices, i.e. the identity."""
        if v is not None:
            return v
        return get_point(x)

    def proj(self, x, v: Array) -> SymmetricMatrix:
        """Project matrix v onto the tangent space of SPD at point x.

        The tangent space at x consists of symmetric matrices, so
        proj_x(v) = sym(v) = (v + v^T) / 2.

        Args:
            x: Point on SPD manifold, plain or cached.
            v: Matrix in the ambient space R^(nxn).

        Returns:
            The projection of v onto the tangent space at x.
        """
        return symmetrize(jnp.asarray(v))

    def zero_vector(self, x) -> SymmetricMatrix:
        """Return the nxn zero matrix, the zero tangent vector at x."""
        dtype = x.dtype if isinstance(x, SPDPoint) else jnp.asarray(x).dtype
        return jnp.zeros(self.representation_size, dtype=dtype)

    def is_approx(self, x, y, atol: float | None = None, rtol: float | None = None) -> bool:
        """Return whether the points x and y (plain or cached) are approximately equal."""
        atol = NumericalConstants.ATOL if atol is None else atol
        rtol = NumericalConstants.RTOL if rtol is None else rtol
        return bool(jnp.allclose(get_point(x), get_point(y), atol=atol, rtol=rtol))

    # Random generation

    def _sample(self, key: PRNGKeyArray, shape: tuple[int, ...], sampler: Callable[[PRNGKeyArray], Array]) -> Array:
        if not shape:
            return sampler(key)
        keys = jr.split(key, math.prod(shape))
        return jax.vmap(sampler)(keys).reshape(*shape, self.n, self.n)

    def _random_point_single(self, key: PRNGKeyArray, sigma: float) -> SPDMatrix:
        diag_key, q_key = jr.split(key)
        d = 1.0 + jr.uniform(diag_key, (self.n,))
        q, _ = jnp.linalg.qr(sigma * jr.normal(q_key, (self.n, self.n)))
        return symmetrize((q * d) @ q.T)

    def random_point(self, key: PRNGKeyArray | None = None, *shape: int, sigma: float = 1.0) -> SPDMatrix:
        """Generate random point(s) on the SPD manifold.

        Draws eigenvalues ``1 + U[0, 1)`` and a random orthogonal matrix Q from
        the QR decomposition of a ``sigma``-scaled Gaussian matrix and returns
        ``Q diag(d) Q^T``. The eigenvalues therefore lie in [1, 2).

        Args:
            key: JAX PRNG key, ``None`` to draw from the process-wide default key.
            *shape: Shape of the output array of points.
            sigma: Scale of the Gaussian matrix used for Q.

        Returns:
            Random SPD matrix/matrices with shape ``(*shape, n, n)``.
        """
        return self._sample(resolve_key(key), shape, partial(self._random_point_single, sigma=sigma))

    def transported_basis(self, x) -> Array:
        """Orthonormal basis of the tangent space at x, transported from the identity.

        The diagonalizing basis of the tangent space at the identity (with the
        identity as direction) is parallel transported to x.

        Args:
            x: Point on SPD manifold, plain or cached.

        Returns:
            Basis vectors stacked along the first axis, shape ``(n(n+1)/2, n, n)``.
        """
        dtype = x.dtype if isinstance(x, SPDPoint) else jnp.asarray(x).dtype
        identity = jnp.eye(self.n, dtype=dtype)
        basis = diagonalizing_basis(identity, identity)
        return jax.vmap(lambda b: parallel_transport_to(identity, b, x))(basis.vectors)

    def random_tangent(
        self,
        key: PRNGKeyArray | None,
        x,
        *shape: int,
        sigma: float | None = None,
        tangent_distr: str = "gaussian",
    ) -> SymmetricMatrix:
        """Generate random tangent vector(s) at point x.

        ``"gaussian"`` returns ``sum_k sigma * xi_k * B_k`` with standard normal
        ``xi_k`` and the basis ``B_k`` of :meth:`transported_basis`.

        ``"rician"`` Cholesky-factors x as ``L L^T``, perturbs the factor to
        ``R = L + sqrt(sigma) * triu(N)`` and returns ``R R^T``. Note that this
        is a random *point* near x rather than a tangent vector at x.

        Args:
            key: JAX PRNG key, ``None`` to draw from the process-wide default key.
            x: Base point on SPD manifold, plain or cached.
            *shape: Shape of the output array of tangent vectors.
            sigma: Scale of the perturbation, defaults to ``1 / ||x||_F``.
            tangent_distr: ``"gaussian"`` or ``"rician"``.

        Returns:
            Random sample(s) with shape ``(*shape, n, n)``.

        Raises:
            ValueError: If ``tangent_distr`` is not a known distribution.
            NumericalStabilityError: If the Cholesky factorization of x fails.
        """
        distr = tangent_distr.lower()
        if distr not in TANGENT_DISTRIBUTIONS:
            raise ValueError(f"Unknown tangent distribution '{tangent_distr}', expected one of {TANGENT_DISTRIBUTIONS}")

        key = resolve_key(key)
        base = jnp.asarray(get_point(x))
        if sigma is None:
            sigma = 1.0 / jnp.linalg.norm(base)

        if distr == "gaussian":
            basis = self.transported_basis(x)

            def sampler(k: PRNGKeyArray) -> Array:
                coefficients = sigma * jr.normal(k, (basis.shape[0],), dtype=basis.dtype)
                return symmetrize(jnp.tensordot(coefficients, basis, axes=1))

        else:
            logger.warning("Rician sampling returns a point near the base point, not a tangent vector")
            lower = jnp.linalg.cholesky(symmetrize(base))
            check_finite(lower, "Cholesky factorization")

            def sampler(k: PRNGKeyArray) -> Array:
                r = lower + jnp.sqrt(sigma) * jnp.triu(jr.normal(k, (self.n, self.n), dtype=lower.dtype))
                return symmetrize(r @ r.T)

        return self._sample(key, shape, sampler)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SymmetricPositiveDefinite) and other.n == self.n

    def __hash__(self) -> int:
        return hash((SymmetricPositiveDefinite, self.n))

    def __repr__(self) -> str:
        """String representation of the manifold."""
        return f"SymmetricPositiveDefinite({self.n})"
