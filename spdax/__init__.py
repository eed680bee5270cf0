"""spdax: symmetric positive definite matrices as a Riemannian manifold in JAX.

spdax provides the SPD(n) manifold with validity checks, structural queries
and random generation, and :class:`SPDPoint`, a point representation that
caches the eigendecomposition of a matrix together with ``p``, ``p^{1/2}`` and
``p^{-1/2}`` so that operators built on top of it do not repeat O(n^3) work.

Quick start:
    >>> import jax
    >>> import spdax
    >>>
    >>> spd = spdax.create_spd(3)
    >>> key = jax.random.key(0)
    >>> p = spd.random_point(key)
    >>> spd.check_point(p) is None
    True
    >>>
    >>> cached = spdax.as_spd_point(p, store_sqrt_inv=False)
    >>> cached.stored_fields
    ('matrix', 'sqrt_matrix')
    >>> s, s_inv = spdax.get_p_sqrt_and_sqrt_inv(cached)
    >>>
    >>> X = spd.random_tangent(jax.random.fold_in(key, 1), cached)
    >>> spd.is_vector(cached, X)
    True

Double precision requires ``jax.config.update("jax_enable_x64", True)``.
"""

__version__ = "0.1.0"

from .core.constants import NumericalConstants
from .core.matrix_functions import EigenDecomposition, symmetrize
from .core.random import default_key, seed_default_key
from .manifolds import (
    DiagonalizingBasis,
    DimensionError,
    Euclidean,
    InvalidPointError,
    InvalidTangentVectorError,
    Manifold,
    ManifoldError,
    NumericalStabilityError,
    RawSPDMatrix,
    SPDMatrixView,
    SPDPoint,
    SymmetricPositiveDefinite,
    as_spd_point,
    as_view,
    copy_into,
    create_spd,
    diagonalizing_basis,
    get_p_sqrt,
    get_p_sqrt_and_sqrt_inv,
    get_p_sqrt_inv,
    get_point,
    inner,
    parallel_transport_to,
)

__all__ = [
    "DiagonalizingBasis",
    "DimensionError",
    "EigenDecomposition",
    "Euclidean",
    "InvalidPointError",
    "InvalidTangentVectorError",
    "Manifold",
    "ManifoldError",
    "NumericalConstants",
    "NumericalStabilityError",
    "RawSPDMatrix",
    "SPDMatrixView",
    "SPDPoint",
    "SymmetricPositiveDefinite",
    "as_spd_point",
    "as_view",
    "copy_into",
    "create_spd",
    "default_key",
    "diagonalizing_basis",
    "get_p_sqrt",
    "get_p_sqrt_and_sqrt_inv",
    "get_p_sqrt_inv",
    "get_point",
    "inner",
    "parallel_transport_to",
    "seed_default_key",
    "symmetrize",
]
