"""Named, constrained parameter blocks for the market-model components.

Each volatility or correlation model owns a :class:`ParameterBlock`. A block
validates a complete replacement vector before accepting it and bumps a
version counter on every successful update; derived quantities are cached in
a :class:`VersionedCache` keyed on that counter, so an update can never be
observed half-applied and caches never outlive the parameters they were
built from.

:class:`ParameterLayout` stitches several blocks into one flat vector with
explicit offsets, which is the view an optimiser works with.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, Mapping, Optional, Sequence, Tuple, TypeVar

import jax
import jax.numpy as jnp
import numpy as np

from liborkit.errors import ConfigurationError

Array = jnp.ndarray
T = TypeVar("T")

__all__ = [
    "ParameterTransform",
    "Constraint",
    "unconstrained",
    "non_negative",
    "bounded",
    "ParameterSpec",
    "ParameterBlock",
    "ParameterLayout",
    "VersionedCache",
]


@dataclass(frozen=True)
class ParameterTransform:
    """Bidirectional map between an unconstrained real and the parameter domain."""

    forward: Callable[[Array], Array]
    inverse: Callable[[Array], Array]

    def apply(self, value: Array) -> Array:
        return self.forward(value)

    def invert(self, value: Array) -> Array:
        return self.inverse(value)


@dataclass(frozen=True)
class Constraint:
    """Closed interval ``[low, high]`` plus the transform used by optimisers."""

    low: float
    high: float
    transform: ParameterTransform
    description: str

    def test(self, value: float) -> bool:
        return math.isfinite(value) and self.low <= value <= self.high


def unconstrained() -> Constraint:
    return Constraint(
        -math.inf,
        math.inf,
        ParameterTransform(lambda x: x, lambda y: y),
        "any finite value",
    )


def non_negative() -> Constraint:
    """Values in ``[0, inf)`` via softplus."""

    def forward(x: Array) -> Array:
        return jax.nn.softplus(x)

    def inverse(y: Array) -> Array:
        safe = jnp.maximum(y, 1e-12)
        return jnp.log(jnp.expm1(safe))

    return Constraint(0.0, math.inf, ParameterTransform(forward, inverse), "non-negative")


def bounded(low: float, high: float) -> Constraint:
    """Values in ``[low, high]`` via a scaled sigmoid."""
    if not high > low:
        raise ConfigurationError(f"empty interval [{low}, {high}]")
    width = high - low

    def forward(x: Array) -> Array:
        return low + width * jax.nn.sigmoid(x)

    def inverse(y: Array) -> Array:
        clipped = jnp.clip((y - low) / width, 1e-9, 1 - 1e-9)
        return jnp.log(clipped) - jnp.log1p(-clipped)

    return Constraint(low, high, ParameterTransform(forward, inverse), f"within [{low}, {high}]")


@dataclass(frozen=True)
class ParameterSpec:
    """Name and admissible domain of one model parameter."""

    name: str
    constraint: Constraint


class ParameterBlock:
    """Ordered parameters of a single component.

    Parameters
    ----------
    specs : sequence of ParameterSpec
        Parameter names and constraints, in vector order.
    values : sequence of float
        Initial values; validated like any later update.
    """

    def __init__(self, specs: Sequence[ParameterSpec], values: Sequence[float]):
        self._specs = tuple(specs)
        names = [spec.name for spec in self._specs]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"duplicate parameter names: {names}")
        self._values = self.validate(values)
        self._version = 0

    @property
    def specs(self) -> Tuple[ParameterSpec, ...]:
        return self._specs

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self._specs)

    @property
    def values(self) -> Tuple[float, ...]:
        return self._values

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return len(self._specs)

    def __getitem__(self, name: str) -> float:
        for spec, value in zip(self._specs, self._values):
            if spec.name == name:
                return value
        raise KeyError(name)

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(self.names, self._values))

    def as_array(self) -> Array:
        return jnp.asarray(self._values, dtype=jnp.float64)

    def validate(self, values) -> Tuple[float, ...]:
        """Return ``values`` as a tuple of floats or raise without side effects."""
        if isinstance(values, Mapping):
            missing = set(self.names) - set(values)
            extra = set(values) - set(self.names)
            if missing or extra:
                raise ConfigurationError(
                    f"parameter names mismatch: missing {sorted(missing)}, unexpected {sorted(extra)}"
                )
            values = [values[name] for name in self.names]
        flat = tuple(float(v) for v in np.asarray(values, dtype=np.float64).reshape(-1))
        if len(flat) != len(self._specs):
            raise ConfigurationError(
                f"expected {len(self._specs)} parameters, got {len(flat)}"
            )
        for spec, value in zip(self._specs, flat):
            if not spec.constraint.test(value):
                raise ConfigurationError(
                    f"parameter {spec.name!r} must be {spec.constraint.description}, got {value}"
                )
        return flat

    def update(self, values) -> None:
        """Replace all values at once; the block is unchanged if validation fails."""
        self._assign(self.validate(values))

    def _assign(self, flat: Tuple[float, ...]) -> None:
        self._values = flat
        self._version += 1


class VersionedCache(Generic[T]):
    """Single-slot cache invalidated whenever the owner's version changes."""

    def __init__(self) -> None:
        self._key: Optional[Hashable] = None
        self._value: Optional[T] = None
        self._filled = False

    def get(self, key: Hashable, build: Callable[[], T]) -> T:
        if not self._filled or key != self._key:
            self._value = build()
            self._key = key
            self._filled = True
        return self._value

    def invalidate(self) -> None:
        self._key = None
        self._value = None
        self._filled = False


class ParameterLayout:
    """Flat view over named blocks with explicit offsets.

    The flat vector is the concatenation of the blocks in insertion order.
    """

    def __init__(self, blocks: Mapping[str, ParameterBlock]):
        self._blocks = dict(blocks)
        self._slices: Dict[str, slice] = {}
        offset = 0
        for name, block in self._blocks.items():
            self._slices[name] = slice(offset, offset + len(block))
            offset += len(block)
        self._size = offset

    @property
    def size(self) -> int:
        return self._size

    @property
    def version(self) -> Tuple[int, ...]:
        return tuple(block.version for block in self._blocks.values())

    def block(self, name: str) -> ParameterBlock:
        return self._blocks[name]

    def slice_of(self, name: str) -> slice:
        return self._slices[name]

    def specs(self) -> Tuple[ParameterSpec, ...]:
        return tuple(spec for block in self._blocks.values() for spec in block.specs)

    def names(self) -> Tuple[str, ...]:
        return tuple(
            f"{block_name}.{spec.name}"
            for block_name, block in self._blocks.items()
            for spec in block.specs
        )

    def values(self) -> Array:
        if self._size == 0:
            return jnp.zeros((0,), dtype=jnp.float64)
        return jnp.concatenate([block.as_array() for block in self._blocks.values()])

    def set_values(self, flat) -> None:
        """Distribute ``flat`` over the blocks; nothing changes unless every block accepts its slice."""
        arr = np.asarray(flat, dtype=np.float64).reshape(-1)
        if arr.shape[0] != self._size:
            raise ConfigurationError(
                f"parameter vector has length {arr.shape[0]}, expected {self._size}"
            )
        validated = {
            name: block.validate(arr[self._slices[name]])
            for name, block in self._blocks.items()
        }
        for name, block in self._blocks.items():
            block._assign(validated[name])
