"""SPD manifold, cached SPD points and their supporting geometry."""

from .affine_invariant import DiagonalizingBasis, diagonalizing_basis, inner, parallel_transport_to
from .base import Manifold
from .errors import (
    DimensionError,
    InvalidPointError,
    InvalidTangentVectorError,
    ManifoldError,
    NumericalStabilityError,
)
from .euclidean import Euclidean
from .spd import SymmetricPositiveDefinite
from .spd_point import (
    RawSPDMatrix,
    SPDMatrixView,
    SPDPoint,
    as_spd_point,
    as_view,
    copy_into,
    get_p_sqrt,
    get_p_sqrt_and_sqrt_inv,
    get_p_sqrt_inv,
    get_point,
)


def create_spd(n: int) -> SymmetricPositiveDefinite:
    """Create a Symmetric Positive Definite manifold SPD(n) with dimension validation.

    Factory function for creating SPD manifolds with clear error messages
    and dimension validation.

    Args:
        n: Matrix dimension (must be >= 1)

    Returns:
        SymmetricPositiveDefinite: An SPD(n) manifold instance

    Raises:
        ValueError: If dimension is invalid (< 1)
        TypeError: If n is not an integer

    Examples:
        >>> spd = create_spd(3)   # 3x3 symmetric positive definite matrices
        >>> spd.dimension
        6
    """
    if not isinstance(n, int) or isinstance(n, bool):
        raise TypeError(f"SPD dimension must be an integer, got {type(n)}")
    if n < 1:
        raise ValueError(f"SPD manifold requires n >= 1, got n={n}")
    return SymmetricPositiveDefinite(n=n)


__all__ = [
    "DiagonalizingBasis",
    "DimensionError",
    "Euclidean",
    "InvalidPointError",
    "InvalidTangentVectorError",
    "Manifold",
    "ManifoldError",
    "NumericalStabilityError",
    "RawSPDMatrix",
    "SPDMatrixView",
    "SPDPoint",
    "SymmetricPositiveDefinite",
    "as_spd_point",
    "as_view",
    "copy_into",
    "create_spd",
    "diagonalizing_basis",
    "get_p_sqrt",
    "get_p_sqrt_and_sqrt_inv",
    "get_p_sqrt_inv",
    "get_point",
    "inner",
    "parallel_transport_to",
]
