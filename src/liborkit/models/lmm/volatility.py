"""Instantaneous volatility models for forward rates.

A forward rate stops diffusing once it has fixed, so every model returns
zero volatility for rate ``i`` at or after its fixing time.
"""
from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Sequence

import jax.numpy as jnp
import numpy as np

from liborkit.core.utils.search import predecessor_index
from liborkit.errors import ConfigurationError, ScheduleMismatchError, UnsupportedOperationError
from liborkit.models.lmm.parameters import ParameterBlock, ParameterSpec, non_negative

Array = jnp.ndarray

logger = logging.getLogger(__name__)

__all__ = [
    "VolatilityModel",
    "FixedVolatilityModel",
    "LinearExponentialVolatilityModel",
]

_SMALL_DECAY = 0.1
_GL_NODES, _GL_WEIGHTS = np.polynomial.legendre.leggauss(64)


class VolatilityModel(ABC):
    """Base class: per-rate instantaneous volatilities ``σ_i(t)``."""

    def __init__(self, size: int, specs: Sequence[ParameterSpec], values: Sequence[float]):
        if size < 1:
            raise ConfigurationError("volatility model needs at least one rate")
        self._size = size
        self.parameters = ParameterBlock(specs, values)

    @property
    def size(self) -> int:
        return self._size

    def set_params(self, values) -> None:
        self.parameters.update(values)

    @abstractmethod
    def volatility(self, t: float, x=None) -> Array:
        """Vector of all ``size`` volatilities at time ``t``."""

    @abstractmethod
    def volatility_at(self, i: int, t: float, x=None) -> float:
        """Volatility of rate ``i`` at time ``t``."""

    def integrated_variance(self, i: int, j: int, u: float, x=None) -> float:
        """``∫_0^u σ_i(s) σ_j(s) ds`` in closed form, where available."""
        raise UnsupportedOperationError(
            f"{type(self).__name__} has no closed-form integrated variance"
        )


class FixedVolatilityModel(VolatilityModel):
    """Piecewise-constant, time-homogeneous volatilities.

    ``volatilities[k]`` is the volatility of a rate that is ``k`` reset
    periods away from its fixing; entry 0 belongs to a rate that has
    already fixed and is never used. ``start_times`` are the fixing times
    of the rates.
    """

    def __init__(self, volatilities: Sequence[float], start_times: Sequence[float]):
        vols = [float(v) for v in volatilities]
        starts = [float(t) for t in start_times]
        if len(starts) < 2:
            raise ConfigurationError("fixed volatility model needs at least two start times")
        if len(vols) != len(starts):
            raise ConfigurationError(
                f"size of volatilities ({len(vols)}) and start times ({len(starts)}) must be equal"
            )
        if any(t1 <= t0 for t0, t1 in zip(starts[:-1], starts[1:])):
            raise ConfigurationError("start times must be strictly increasing")
        if any(v < 0.0 for v in vols):
            raise ConfigurationError("volatilities must be non-negative")
        super().__init__(len(starts), [], [])
        self._vols = jnp.asarray(vols, dtype=jnp.float64)
        self._host_vols = tuple(vols)
        self._starts = tuple(starts)

    @property
    def start_times(self):
        return self._starts

    def _segment(self, t: float) -> int:
        if t < self._starts[0] or t > self._starts[-1]:
            raise ScheduleMismatchError(
                f"time {t} must be within [{self._starts[0]}, {self._starts[-1]}]"
            )
        return predecessor_index(self._starts, t, lower=0, upper=len(self._starts) - 1)

    def volatility(self, t: float, x=None) -> Array:
        s = self._segment(t)
        lag = jnp.arange(self._size) - s
        return jnp.where(lag > 0, self._vols[jnp.clip(lag, 0, self._size - 1)], 0.0)

    def volatility_at(self, i: int, t: float, x=None) -> float:
        s = self._segment(t)
        return self._host_vols[i - s] if i > s else 0.0


class LinearExponentialVolatilityModel(VolatilityModel):
    """Rebonato's abcd form ``σ_i(t) = (a τ + d) e^{-b τ} + c`` with ``τ = T_i - t``.

    Parameters
    ----------
    fixing_times : sequence of float
        Fixing times ``T_i`` of the forward rates.
    a, b, c, d : float
        Non-negative shape parameters.
    """

    def __init__(self, fixing_times: Sequence[float], a: float, b: float, c: float, d: float):
        times = [float(t) for t in fixing_times]
        if any(t1 <= t0 for t0, t1 in zip(times[:-1], times[1:])):
            raise ConfigurationError("fixing times must be strictly increasing")
        super().__init__(
            len(times),
            [ParameterSpec(name, non_negative()) for name in ("a", "b", "c", "d")],
            [a, b, c, d],
        )
        self._fixing_times = tuple(times)
        self._times = jnp.asarray(times, dtype=jnp.float64)

    @property
    def fixing_times(self):
        return self._fixing_times

    def volatility(self, t: float, x=None) -> Array:
        a, b, c, d = self.parameters.values
        tau = self._times - t
        return jnp.where(tau > 0.0, (a * tau + d) * jnp.exp(-b * tau) + c, 0.0)

    def volatility_at(self, i: int, t: float, x=None) -> float:
        tau = self._fixing_times[i] - t
        if tau <= 0.0:
            return 0.0
        a, b, c, d = self.parameters.values
        return (a * tau + d) * math.exp(-b * tau) + c

    def integrated_variance(self, i: int, j: int, u: float, x=None) -> float:
        T = self._fixing_times[i]
        S = self._fixing_times[j]
        u = min(u, T, S)
        if u <= 0.0:
            return 0.0
        a, b, c, d = self.parameters.values

        if b == 0.0:
            p = c + d
            A = a * T + p
            B = a * S + p
            return A * B * u - 0.5 * a * (A + B) * u * u + a * a * u ** 3 / 3.0

        if b * max(T, S) < _SMALL_DECAY:
            # the closed form below cancels catastrophically for tiny b
            nodes = 0.5 * u * (_GL_NODES + 1.0)
            weights = 0.5 * u * _GL_WEIGHTS
            vi = (a * (T - nodes) + d) * np.exp(-b * (T - nodes)) + c
            vj = (a * (S - nodes) + d) * np.exp(-b * (S - nodes)) + c
            return float(np.dot(weights, vi * vj))

        k1 = math.exp(b * u)
        k2 = math.exp(b * S)
        k3 = math.exp(b * T)
        return (
            a * a * (
                -1.0 - 2.0 * b * b * S * T - b * (S + T)
                + k1 * k1 * (1.0 + b * (S + T - 2.0 * u) + 2.0 * b * b * (S - u) * (T - u))
            )
            + 2.0 * b * b * (
                2.0 * c * d * (k2 + k3) * (k1 - 1.0)
                + d * d * (k1 * k1 - 1.0)
                + 2.0 * b * c * c * k2 * k3 * u
            )
            + 2.0 * a * b * (
                d * (-1.0 - b * (S + T) + k1 * k1 * (1.0 + b * (S + T - 2.0 * u)))
                - 2.0 * c * (
                    k3 * (1.0 + b * S) + k2 * (1.0 + b * T)
                    - k1 * k3 * (1.0 + b * (S - u))
                    - k1 * k2 * (1.0 + b * (T - u))
                )
            )
        ) / (4.0 * b * b * b * k2 * k3)
