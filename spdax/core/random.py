"""Process-wide default PRNG key for calls that do not pass an explicit key.

JAX random functions are pure and take their key explicitly. Every random
generator in spdax accepts an optional ``key``; when it is omitted, a fresh
subkey is split off the process-wide :class:`DefaultKeySource`, which is
seeded once from :attr:`NumericalConstants.DEFAULT_SEED`. Passing an explicit
key keeps results reproducible and leaves the default source untouched.
"""

import logging

import jax.random as jr
from jaxtyping import PRNGKeyArray

from .constants import NumericalConstants

logger = logging.getLogger(__name__)


class DefaultKeySource:
    """A stateful holder of a JAX PRNG key that hands out fresh subkeys."""

    def __init__(self, seed: int = NumericalConstants.DEFAULT_SEED) -> None:
        """Initialize the source.

        Args:
            seed: Integer seed of the underlying key.
        """
        self.seed(seed)

    def seed(self, seed: int) -> None:
        """Reset the source to the key derived from ``seed``."""
        self._key = jr.key(seed)
        self.seed_value = seed
        logger.debug(f"Default PRNG key seeded with {seed}")

    def next_key(self) -> PRNGKeyArray:
        """Split the held key and return the fresh subkey."""
        self._key, subkey = jr.split(self._key)
        return subkey


_default_source = DefaultKeySource()


def default_key() -> PRNGKeyArray:
    """Return a fresh subkey from the process-wide default source."""
    return _default_source.next_key()


def seed_default_key(seed: int) -> None:
    """Reseed the process-wide default source."""
    _default_source.seed(seed)


def resolve_key(key: PRNGKeyArray | None) -> PRNGKeyArray:
    """Return ``key`` itself, or a fresh default subkey when ``key`` is ``None``."""
    return default_key() if key is None else key
