"""Discount curves consumed by the forward-rate process."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, Union

import jax.numpy as jnp
from jax import Array

from liborkit.errors import ConfigurationError

ArrayLike = Union[float, Array]

__all__ = ["DiscountCurve", "FlatCurve", "ZeroCurve"]


class DiscountCurve(Protocol):
    """Anything that maps a time in years to a discount factor."""

    def discount(self, t: ArrayLike) -> ArrayLike:
        ...


@dataclass
class FlatCurve:
    """
    Simple continuously-compounded flat discount curve.

    Attributes:
        r: Continuously-compounded rate (default 0.05 = 5%)
    """

    r: float = 0.05

    def df(self, t: ArrayLike) -> ArrayLike:
        """Compute discount factor: DF(t) = exp(-r*t)."""
        t_arr = jnp.asarray(t)
        return jnp.exp(-self.r * t_arr)

    def discount(self, t: ArrayLike) -> ArrayLike:
        """Alias for df(t) to satisfy the DiscountCurve protocol."""
        return self.df(t)

    def __call__(self, t: ArrayLike) -> ArrayLike:
        return self.df(t)

    def zero_rate(self, t: ArrayLike) -> ArrayLike:
        """Return the constant zero rate."""
        t_arr = jnp.asarray(t)
        return jnp.full_like(t_arr, self.r, dtype=float)


class ZeroCurve:
    """
    Continuously-compounded zero curve with linear interpolation in the rate.

    Rates are extrapolated flat on both sides of the node range.

    Args:
        times: Strictly increasing node times in years
        rates: Continuously-compounded zero rates at the nodes
    """

    def __init__(self, times: Sequence[float], rates: Sequence[float]):
        if len(times) != len(rates):
            raise ConfigurationError("times and rates must have the same length")
        if len(times) == 0:
            raise ConfigurationError("zero curve needs at least one node")
        t = jnp.asarray(times, dtype=jnp.float64)
        if t.size > 1 and not bool(jnp.all(jnp.diff(t) > 0.0)):
            raise ConfigurationError("curve times must be strictly increasing")
        if float(t[0]) < 0.0:
            raise ConfigurationError("curve times must be non-negative")
        self._times = t
        self._rates = jnp.asarray(rates, dtype=jnp.float64)

    @property
    def times(self) -> Array:
        return self._times

    def zero_rate(self, t: ArrayLike) -> ArrayLike:
        t_arr = jnp.asarray(t, dtype=jnp.float64)
        return jnp.interp(t_arr, self._times, self._rates)

    def df(self, t: ArrayLike) -> ArrayLike:
        """Compute discount factor: DF(t) = exp(-z(t)*t)."""
        t_arr = jnp.asarray(t, dtype=jnp.float64)
        return jnp.exp(-self.zero_rate(t_arr) * t_arr)

    def discount(self, t: ArrayLike) -> ArrayLike:
        return self.df(t)

    def __call__(self, t: ArrayLike) -> ArrayLike:
        return self.df(t)

    def forward_rate(self, t0: ArrayLike, t1: ArrayLike) -> ArrayLike:
        """Continuously-compounded forward rate between ``t0`` and ``t1``."""
        t0_arr = jnp.asarray(t0)
        t1_arr = jnp.asarray(t1)
        return -jnp.log(self.df(t1_arr) / self.df(t0_arr)) / (t1_arr - t0_arr)
