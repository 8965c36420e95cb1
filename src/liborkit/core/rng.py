from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Tuple

import jax
import jax.numpy as jnp

try:  # pragma: no cover - compatibility shim for newer JAX releases
    KeyArray = jax.random.KeyArray
except AttributeError:  # JAX >= 0.8 removed the alias from jax.random
    KeyArray = jax.Array

__all__ = ["KeyArray", "KeySeq", "normal"]


def normal(key: KeyArray, shape: Iterable[int], dtype: Any = jnp.float64) -> jnp.ndarray:
    """Standard normal samples for a given key and shape."""
    return jax.random.normal(key, tuple(shape), dtype=dtype)


@dataclass
class KeySeq:
    """Stateful helper that manages a deterministic stream of PRNG keys."""

    seed: int = 0
    _key: KeyArray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._key = jax.random.PRNGKey(self.seed)

    @classmethod
    def from_config(cls, config: Any) -> "KeySeq":
        """Instantiate a ``KeySeq`` from anything carrying a ``seed``."""
        seed = getattr(config, "seed", None)
        if seed is None and isinstance(config, Mapping):
            seed = config.get("seed")
        if seed is None:
            raise ValueError("Configuration does not define a 'seed' entry")
        return cls(seed=int(seed))

    @property
    def key(self) -> KeyArray:
        """Return the current master key (without consuming it)."""
        return self._key

    def next(self) -> KeyArray:
        """Return the next sub-key and update the internal state."""
        self._key, sub = jax.random.split(self._key)
        return sub

    def split(self, n: int) -> Tuple[KeyArray, ...]:
        """Return ``n`` sub-keys and update the internal state."""
        if n < 1:
            return tuple()
        keys = jax.random.split(self._key, n + 1)
        self._key = keys[0]
        return tuple(keys[1:])

    def normal(self, shape: Iterable[int], dtype: Any = jnp.float64) -> jnp.ndarray:
        return normal(self.next(), shape, dtype=dtype)
