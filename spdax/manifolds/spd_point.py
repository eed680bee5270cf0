"""Cached representation of points on the SPD manifold.

Most operators on the SPD manifold (exponential and logarithmic maps,
distances, parallel transport, means) need ``p^{1/2}`` and ``p^{-1/2}`` of the
points they act on. Each of those costs an eigendecomposition. An
:class:`SPDPoint` computes the eigendecomposition once, keeps it as the single
source of truth, and optionally materializes ``p``, ``p^{1/2}`` and
``p^{-1/2}``. Fields that are not materialized are ``None`` and are derived
from the eigendecomposition whenever they are requested (without being
stored afterwards).

Operators accept either plain arrays or points through the
:class:`SPDMatrixView` interface::

    >>> p = as_spd_point(jnp.array([[2.0, 0.5], [0.5, 1.0]]), store_sqrt_inv=False)
    >>> p.stored_fields
    ('matrix', 'sqrt_matrix')
    >>> s, s_inv = get_p_sqrt_and_sqrt_inv(p)  # s is stored, s_inv is derived
"""

import abc
import logging
from typing import Any

import jax.numpy as jnp
from jax import tree_util
from jaxtyping import Array

from ..core.matrix_functions import (
    EigenDecomposition,
    reconstruct,
    spd_sqrt,
    spd_sqrt_and_sqrt_inv,
    spd_sqrt_inv,
    sqrt_and_sqrt_inv_from_eigen,
    sqrt_from_eigen,
    sqrt_inv_from_eigen,
    symmetric_eigh,
    symmetrize,
)
from ..core.type_system import SPDMatrix, SymmetricMatrix, ensure_array_dtype
from .errors import check_finite, validate_dimensions_match

logger = logging.getLogger(__name__)

_OPTIONAL_FIELDS = ("matrix", "sqrt_matrix", "sqrt_inv_matrix")


class SPDMatrixView(abc.ABC):
    """Read access to an SPD matrix ``p`` and its square roots."""

    @abc.abstractmethod
    def point(self) -> SPDMatrix:
        """Return ``p``."""

    @abc.abstractmethod
    def sqrt(self) -> SymmetricMatrix:
        """Return ``p^{1/2}``."""

    @abc.abstractmethod
    def sqrt_inv(self) -> SymmetricMatrix:
        """Return ``p^{-1/2}``."""

    @abc.abstractmethod
    def sqrt_and_sqrt_inv(self) -> tuple[SymmetricMatrix, SymmetricMatrix]:
        """Return ``(p^{1/2}, p^{-1/2})``."""


class RawSPDMatrix(SPDMatrixView):
    """View on a plain array. Nothing is cached, every call recomputes."""

    def __init__(self, matrix: Array) -> None:
        self.matrix = jnp.asarray(matrix)

    def point(self) -> SPDMatrix:
        return self.matrix

    def sqrt(self) -> SymmetricMatrix:
        return spd_sqrt(self.matrix)

    def sqrt_inv(self) -> SymmetricMatrix:
        return spd_sqrt_inv(self.matrix)

    def sqrt_and_sqrt_inv(self) -> tuple[SymmetricMatrix, SymmetricMatrix]:
        return spd_sqrt_and_sqrt_inv(self.matrix)

    def __repr__(self) -> str:
        return f"RawSPDMatrix(shape={self.matrix.shape}, dtype={self.matrix.dtype})"


class SPDPoint(SPDMatrixView):
    """An SPD matrix stored through its eigendecomposition plus optional caches.

    The eigendecomposition ``eigen`` is mandatory. ``matrix`` (``p``),
    ``sqrt_matrix`` (``p^{1/2}``) and ``sqrt_inv_matrix`` (``p^{-1/2}``) are
    either arrays consistent with ``eigen`` or ``None``.

    Use :meth:`from_matrix` (or :func:`as_spd_point`) to build a point from a
    matrix; the constructor only assembles already computed fields.

    Attributes:
        eigen: Eigendecomposition of ``p``.
        matrix: ``p`` or ``None``.
        sqrt_matrix: ``p^{1/2}`` or ``None``.
        sqrt_inv_matrix: ``p^{-1/2}`` or ``None``.
    """

    def __init__(
        self,
        eigen: EigenDecomposition | tuple[Array, Array],
        matrix: Array | None = None,
        sqrt_matrix: Array | None = None,
        sqrt_inv_matrix: Array | None = None,
    ) -> None:
        """Assemble a point from its fields.

        Args:
            eigen: Eigendecomposition ``(values, vectors)`` of the point.
            matrix: The point itself, or ``None`` to leave it missing.
            sqrt_matrix: ``p^{1/2}``, or ``None`` to leave it missing.
            sqrt_inv_matrix: ``p^{-1/2}``, or ``None`` to leave it missing.

        Raises:
            TypeError: If ``eigen`` is not a ``(values, vectors)`` pair.
        """
        if not isinstance(eigen, tuple) or len(eigen) != 2:
            raise TypeError(
                "SPDPoint expects an eigendecomposition (values, vectors); "
                "use SPDPoint.from_matrix or as_spd_point to build a point from a matrix"
            )
        self.eigen = EigenDecomposition(*eigen)
        self.matrix = matrix
        self.sqrt_matrix = sqrt_matrix
        self.sqrt_inv_matrix = sqrt_inv_matrix

    @classmethod
    def from_matrix(
        cls,
        p: Array,
        *,
        store_p: bool = True,
        store_sqrt: bool = True,
        store_sqrt_inv: bool = True,
    ) -> "SPDPoint":
        """Create a point from an SPD matrix.

        The eigendecomposition of the symmetrized ``p`` is always computed.
        Each ``store_*`` flag decides whether the corresponding quantity is
        materialized now or left missing.

        Args:
            p: Symmetric positive definite matrix.
            store_p: Keep ``p`` itself.
            store_sqrt: Compute and keep ``p^{1/2}``.
            store_sqrt_inv: Compute and keep ``p^{-1/2}``.

        Returns:
            The new point.

        Raises:
            NumericalStabilityError: If the eigensolver produced non-finite values.
        """
        p = jnp.asarray(p)
        eigen = symmetric_eigh(p)
        check_finite(eigen.values, "Eigendecomposition")

        p_sqrt = p_sqrt_inv = None
        if store_sqrt and store_sqrt_inv:
            p_sqrt, p_sqrt_inv = sqrt_and_sqrt_inv_from_eigen(eigen)
        elif store_sqrt:
            p_sqrt = sqrt_from_eigen(eigen)
        elif store_sqrt_inv:
            p_sqrt_inv = sqrt_inv_from_eigen(eigen)

        return cls(eigen, matrix=p if store_p else None, sqrt_matrix=p_sqrt, sqrt_inv_matrix=p_sqrt_inv)

    # Accessors

    def point(self) -> SPDMatrix:
        """Return ``p``, rebuilding it from the eigendecomposition when it is not stored."""
        if self.matrix is not None:
            return self.matrix
        return reconstruct(self.eigen)

    def sqrt(self) -> SymmetricMatrix:
        """Return ``p^{1/2}``, derived from the eigendecomposition when it is not stored."""
        if self.sqrt_matrix is not None:
            return symmetrize(self.sqrt_matrix)
        return sqrt_from_eigen(self.eigen)

    def sqrt_inv(self) -> SymmetricMatrix:
        """Return ``p^{-1/2}``, derived from the eigendecomposition when it is not stored."""
        if self.sqrt_inv_matrix is not None:
            return symmetrize(self.sqrt_inv_matrix)
        return sqrt_inv_from_eigen(self.eigen)

    def sqrt_and_sqrt_inv(self) -> tuple[SymmetricMatrix, SymmetricMatrix]:
        """Return ``(p^{1/2}, p^{-1/2})``.

        When both are missing they are derived together from a single pass
        over the eigenvalues.
        """
        if self.sqrt_matrix is None and self.sqrt_inv_matrix is None:
            return sqrt_and_sqrt_inv_from_eigen(self.eigen)
        return self.sqrt(), self.sqrt_inv()

    # Structure

    @property
    def shape(self) -> tuple[int, ...]:
        """Shape of the represented matrix."""
        return tuple(self.eigen.vectors.shape)

    @property
    def dtype(self) -> Any:
        """Element type of the represented matrix."""
        if self.matrix is not None:
            return jnp.asarray(self.matrix).dtype
        return self.eigen.vectors.dtype

    @property
    def stored_fields(self) -> tuple[str, ...]:
        """Names of the optional fields that are currently materialized."""
        return tuple(name for name in _OPTIONAL_FIELDS if getattr(self, name) is not None)

    # Copies

    def copy(self) -> "SPDPoint":
        """Return an independent point with the same stored/missing fields.

        Present fields are copied, the eigendecomposition is recomputed from
        the point instead of being shared.
        """
        return SPDPoint(
            symmetric_eigh(self.point()),
            matrix=_copy_or_none(self.matrix),
            sqrt_matrix=_copy_or_none(self.sqrt_matrix),
            sqrt_inv_matrix=_copy_or_none(self.sqrt_inv_matrix),
        )

    def __copy__(self) -> "SPDPoint":
        return self.copy()

    def __deepcopy__(self, memo: dict) -> "SPDPoint":
        return self.copy()

    def allocate(self, dtype: Any = None) -> "SPDPoint":
        """Return a point with fresh storage and the same stored/missing fields.

        Args:
            dtype: Element type of the new point; ``None`` keeps the current one.

        Returns:
            A new point of the same value whose eigendecomposition was
            recomputed (in ``dtype``) from the reconstructed matrix.
        """
        p = ensure_array_dtype(self.point(), dtype)
        return SPDPoint(
            symmetric_eigh(p),
            matrix=_copy_or_none(self.matrix, dtype),
            sqrt_matrix=_copy_or_none(self.sqrt_matrix, dtype),
            sqrt_inv_matrix=_copy_or_none(self.sqrt_inv_matrix, dtype),
        )

    def copy_from(self, source: "SPDPoint | Array") -> "SPDPoint":
        """Overwrite this point with the value of ``source``, keeping its stored/missing fields.

        Every field stored in ``self`` is filled, from the corresponding field
        of ``source`` when ``source`` stores it and otherwise by deriving it
        from ``source``. Fields missing in ``self`` stay missing and are never
        computed. The eigendecomposition is always copied. Values keep the
        dtype of the field they are written into.

        Args:
            source: Point (or plain SPD matrix) to copy from.

        Returns:
            ``self``.

        Raises:
            DimensionError: If ``source`` has a different matrix size.
        """
        if not isinstance(source, SPDPoint):
            source = SPDPoint.from_matrix(source, store_p=True, store_sqrt=False, store_sqrt_inv=False)
        validate_dimensions_match([self.eigen.vectors, source.eigen.vectors], "copy_into")

        if self.matrix is not None:
            value = source.matrix if source.matrix is not None else source.point()
            self.matrix = _copy_like(value, self.matrix)
        self.eigen = EigenDecomposition(
            values=_copy_like(source.eigen.values, self.eigen.values),
            vectors=_copy_like(source.eigen.vectors, self.eigen.vectors),
        )
        if self.sqrt_matrix is not None:
            value = source.sqrt_matrix if source.sqrt_matrix is not None else source.sqrt()
            self.sqrt_matrix = _copy_like(value, self.sqrt_matrix)
        if self.sqrt_inv_matrix is not None:
            value = source.sqrt_inv_matrix if source.sqrt_inv_matrix is not None else source.sqrt_inv()
            self.sqrt_inv_matrix = _copy_like(value, self.sqrt_inv_matrix)
        return self

    # JAX pytree protocol

    def tree_flatten(self):
        """Flatten the SPDPoint for JAX; missing fields flatten to empty subtrees."""
        children = (self.eigen, self.matrix, self.sqrt_matrix, self.sqrt_inv_matrix)
        aux_data: dict[str, Any] = {}
        return children, aux_data

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        """Unflatten the SPDPoint for JAX without re-validating the fields."""
        point = object.__new__(cls)
        point.eigen, point.matrix, point.sqrt_matrix, point.sqrt_inv_matrix = children
        return point

    def __repr__(self) -> str:
        """String representation listing the materialized fields."""
        return f"SPDPoint(shape={self.shape}, dtype={self.dtype}, stored={self.stored_fields})"


tree_util.register_pytree_node_class(SPDPoint)


def _copy_or_none(value: Array | None, dtype: Any = None) -> Array | None:
    if value is None:
        return None
    return jnp.array(value, dtype=dtype, copy=True)


def _copy_like(value: Array, target: Array) -> Array:
    validate_dimensions_match([target, value], "copy_into")
    return jnp.array(value, dtype=jnp.asarray(target).dtype, copy=True)


def as_spd_point(
    p: "SPDPoint | Array",
    *,
    store_p: bool = True,
    store_sqrt: bool = True,
    store_sqrt_inv: bool = True,
) -> SPDPoint:
    """Convert a matrix to an :class:`SPDPoint`; points are returned unchanged.

    Args:
        p: SPD matrix or existing point.
        store_p: Keep ``p`` itself (ignored for existing points).
        store_sqrt: Materialize ``p^{1/2}`` (ignored for existing points).
        store_sqrt_inv: Materialize ``p^{-1/2}`` (ignored for existing points).

    Returns:
        ``p`` if it already is an :class:`SPDPoint`, otherwise a new point.
    """
    if isinstance(p, SPDPoint):
        return p
    return SPDPoint.from_matrix(p, store_p=store_p, store_sqrt=store_sqrt, store_sqrt_inv=store_sqrt_inv)


def as_view(p: "SPDMatrixView | Array") -> SPDMatrixView:
    """Wrap plain arrays in a :class:`RawSPDMatrix`; views are returned unchanged."""
    if isinstance(p, SPDMatrixView):
        return p
    return RawSPDMatrix(p)


def get_point(p: "SPDMatrixView | Array") -> SPDMatrix:
    """Return the matrix ``p`` of a plain array or view."""
    return as_view(p).point()


def get_p_sqrt(p: "SPDMatrixView | Array") -> SymmetricMatrix:
    """Return ``p^{1/2}``, stored or computed."""
    return as_view(p).sqrt()


def get_p_sqrt_inv(p: "SPDMatrixView | Array") -> SymmetricMatrix:
    """Return ``p^{-1/2}``, stored or computed."""
    return as_view(p).sqrt_inv()


def get_p_sqrt_and_sqrt_inv(p: "SPDMatrixView | Array") -> tuple[SymmetricMatrix, SymmetricMatrix]:
    """Return ``(p^{1/2}, p^{-1/2})``.

    Compared to calling :func:`get_p_sqrt` and :func:`get_p_sqrt_inv` separately,
    the eigendecomposition of a plain array is computed only once.
    """
    return as_view(p).sqrt_and_sqrt_inv()


def copy_into(target: SPDPoint, source: "SPDPoint | Array") -> SPDPoint:
    """Lazily copy ``source`` into ``target``; see :meth:`SPDPoint.copy_from`."""
    return target.copy_from(source)
