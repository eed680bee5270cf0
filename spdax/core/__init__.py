"""spdax core module: configuration, typing and spectral matrix functions."""

from .constants import NumericalConstants
from .matrix_functions import (
    EigenDecomposition,
    floor_eigenvalues,
    reconstruct,
    spd_sqrt,
    spd_sqrt_and_sqrt_inv,
    spd_sqrt_inv,
    symmetric_eigh,
    symmetrize,
)
from .random import DefaultKeySource, default_key, seed_default_key

__all__ = [
    "DefaultKeySource",
    "EigenDecomposition",
    "NumericalConstants",
    "default_key",
    "floor_eigenvalues",
    "reconstruct",
    "seed_default_key",
    "spd_sqrt",
    "spd_sqrt_and_sqrt_inv",
    "spd_sqrt_inv",
    "symmetric_eigh",
    "symmetrize",
]
