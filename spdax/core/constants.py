"""Configuration constants for the spdax library.

This module defines the numerical tolerances and defaults used throughout the
library so that validity checks and random generation behave consistently.
"""


class NumericalConstants:
    """Numerical constants for tolerances and defaults in SPD computations.

    Every check that accepts ``atol``/``rtol`` keywords falls back to these
    values, so changing a class attribute changes the library-wide default.
    """

    RTOL: float = 1e-8
    """Relative tolerance for approximate-equality comparisons."""

    ATOL: float = 1e-10
    """Absolute tolerance for approximate-equality comparisons."""

    SYMMETRY_TOLERANCE: float = 1e-8
    """Absolute tolerance on ``||p - p^T||`` when checking symmetry."""

    VALIDATION_TOLERANCE: float = 1e-6
    """Tolerance used by the boolean ``validate_*`` helpers."""

    TRANSPORT_IDENTITY_TOLERANCE: float = 1e-12
    """Below this Frobenius distance parallel transport returns its input."""

    DEFAULT_SEED: int = 42
    """Seed of the process-wide default PRNG key."""
