"""Abstract base class for matrix manifold implementations.

This module defines the contract that concrete manifolds satisfy: validity
checks that return (rather than raise) structured errors, structural queries
about dimension and representation, the embedding into the ambient space,
and random generation.
"""

import logging
import math

from jaxtyping import Array, Float, PRNGKeyArray

from ..core.constants import NumericalConstants
from ..core.type_system import SPDMatrix, SymmetricMatrix
from .errors import ManifoldError

logger = logging.getLogger(__name__)


class Manifold:
    """Abstract base class for manifolds embedded in a Euclidean matrix space.

    Subclasses implement the ``check_*`` methods, which return ``None`` for
    valid input and a :class:`ManifoldError` describing the violation
    otherwise. The ``is_*`` and ``validate_*`` helpers are built on top of
    them.
    """

    def __init__(self) -> None:
        """Initialize manifold base class."""
        pass

    # Validity checks

    def check_point(self, x, atol: float | None = None, rtol: float | None = None) -> ManifoldError | None:
        """Check whether x is a point on the manifold.

        Args:
            x: Candidate point.
            atol: Absolute tolerance of the approximate checks.
            rtol: Relative tolerance of the approximate checks.

        Returns:
            ``None`` if x is valid, otherwise the error describing the violation.
        """
        raise NotImplementedError("Subclasses must implement point checks")

    def check_vector(self, x, v: Array, atol: float | None = None, rtol: float | None = None) -> ManifoldError | None:
        """Check whether v is a tangent vector at x.

        The base point itself is not checked, call :meth:`check_point` for that.

        Args:
            x: Point on the manifold.
            v: Candidate tangent vector.
            atol: Absolute tolerance of the approximate checks.
            rtol: Relative tolerance of the approximate checks.

        Returns:
            ``None`` if v is valid, otherwise the error describing the violation.
        """
        raise NotImplementedError("Subclasses must implement tangent vector checks")

    def check_size(self, x, v: Array | None = None) -> ManifoldError | None:
        """Check that x (and v, if given) have the representation size of the manifold.

        Returns:
            ``None`` if the shapes match, otherwise a dimension error.
        """
        raise NotImplementedError("Subclasses must implement size checks")

    def is_point(
        self, x, raise_error: bool = False, atol: float | None = None, rtol: float | None = None
    ) -> bool:
        """Return whether x is a point on the manifold.

        Args:
            x: Candidate point.
            raise_error: Raise the error found by :meth:`check_point` instead of returning False.
            atol: Absolute tolerance of the approximate checks.
            rtol: Relative tolerance of the approximate checks.

        Raises:
            ManifoldError: If ``raise_error`` is set and x is not a valid point.
        """
        error = self.check_point(x, atol=atol, rtol=rtol)
        if error is None:
            return True
        if raise_error:
            raise error
        logger.debug(f"{self!r}: invalid point: {error}")
        return False

    def is_vector(
        self,
        x,
        v: Array,
        raise_error: bool = False,
        check_base_point: bool = True,
        atol: float | None = None,
        rtol: float | None = None,
    ) -> bool:
        """Return whether v is a tangent vector at x.

        Args:
            x: Base point.
            v: Candidate tangent vector.
            raise_error: Raise the error found instead of returning False.
            check_base_point: Also check that x is a point on the manifold.
            atol: Absolute tolerance of the approximate checks.
            rtol: Relative tolerance of the approximate checks.

        Raises:
            ManifoldError: If ``raise_error`` is set and a check fails.
        """
        error = None
        if check_base_point:
            error = self.check_point(x, atol=atol, rtol=rtol)
        if error is None:
            error = self.check_size(x, v)
        if error is None:
            error = self.check_vector(x, v, atol=atol, rtol=rtol)
        if error is None:
            return True
        if raise_error:
            raise error
        logger.debug(f"{self!r}: invalid tangent vector: {error}")
        return False

    def validate_point(self, x, atol: float = NumericalConstants.VALIDATION_TOLERANCE) -> bool:
        """Validate that x is a valid point on the manifold.

        Args:
            x: Point to validate.
            atol: Absolute tolerance for validation.

        Returns:
            True if x is on the manifold, False otherwise.
        """
        return self.is_point(x, atol=atol)

    def validate_tangent(self, x, v: Array, atol: float = NumericalConstants.VALIDATION_TOLERANCE) -> bool:
        """Validate that v is a valid tangent vector at point x.

        Args:
            x: Point on the manifold.
            v: Vector to validate.
            atol: Absolute tolerance for validation.

        Returns:
            True if v is in the tangent space at x, False otherwise.
        """
        return self.is_vector(x, v, check_base_point=False, atol=atol)

    # Embedding and tangent spaces

    def embed(self, x, v: Array | None = None) -> Array:
        """Embed a point (or, when v is given, a tangent vector at x) into the ambient space."""
        raise NotImplementedError("Subclasses must implement the embedding")

    def proj(self, x, v: Float[Array, "..."]) -> SymmetricMatrix:
        """Project a vector from ambient space to the tangent space at point x.

        Args:
            x: Point on the manifold.
            v: Vector in the ambient space to be projected.

        Returns:
            The projection of v onto the tangent space at x.
        """
        raise NotImplementedError("Subclasses must implement projection operation")

    def project(self, x, v: Float[Array, "..."]) -> SymmetricMatrix:
        """Alias of :meth:`proj`."""
        return self.proj(x, v)

    def zero_vector(self, x) -> SymmetricMatrix:
        """Return the zero tangent vector at x."""
        raise NotImplementedError("Subclasses must implement the zero vector")

    def is_approx(self, x, y, atol: float | None = None, rtol: float | None = None) -> bool:
        """Return whether the points x and y are approximately equal."""
        raise NotImplementedError("Subclasses must implement approximate point comparison")

    def injectivity_radius(self, x=None, method=None) -> float:
        """Compute the injectivity radius, globally or at point x.

        Args:
            x: Optional point on the manifold.
            method: Optional retraction method the radius refers to.

        Returns:
            The injectivity radius.
        """
        raise NotImplementedError("Injectivity radius computation not implemented")

    # Random generation

    def random_point(self, key: PRNGKeyArray | None = None, *shape: int) -> SPDMatrix:
        """Generate random point(s) on the manifold.

        Args:
            key: JAX PRNG key, ``None`` to draw from the process-wide default key.
            *shape: Shape of the output array of points.

        Returns:
            Random point(s) on the manifold with specified shape.
        """
        raise NotImplementedError("Subclasses must implement random point generation")

    def random_tangent(self, key: PRNGKeyArray | None, x, *shape: int) -> SymmetricMatrix:
        """Generate random tangent vector(s) at point x.

        Args:
            key: JAX PRNG key, ``None`` to draw from the process-wide default key.
            x: Point on the manifold.
            *shape: Shape of the output array of tangent vectors.

        Returns:
            Random tangent vector(s) at x with specified shape.
        """
        raise NotImplementedError("Subclasses must implement random tangent generation")

    # Structure

    @property
    def dimension(self) -> int:
        """Intrinsic dimension of the manifold."""
        raise NotImplementedError("Subclasses must define manifold dimension")

    def manifold_dimension(self) -> int:
        """Intrinsic dimension of the manifold."""
        return self.dimension

    @property
    def representation_size(self) -> tuple[int, ...]:
        """Shape of the arrays representing points of the manifold."""
        raise NotImplementedError("Subclasses must define the representation size")

    @property
    def ambient_dimension(self) -> int:
        """Dimension of the ambient space."""
        return math.prod(self.representation_size)

    def __repr__(self) -> str:
        """String representation of the manifold."""
        return f"{self.__class__.__name__}()"
