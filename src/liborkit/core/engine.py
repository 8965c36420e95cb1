"""Monte Carlo driver for multi-factor processes.

- Path generation on an arbitrary time grid for any process exposing
  ``initial_values``, ``factors`` and ``evolve``
- Antithetic sampling
- Sample statistics with standard errors
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Protocol

import jax.numpy as jnp

from liborkit.core.rng import KeyArray, normal
from liborkit.errors import ConfigurationError

Array = jnp.ndarray

logger = logging.getLogger(__name__)

__all__ = [
    "Array",
    "MCConfig",
    "MCPaths",
    "MCResult",
    "MultiFactorProcess",
    "simulate_multipaths",
    "summarize",
]


class MultiFactorProcess(Protocol):
    """Process interface consumed by :func:`simulate_multipaths`."""

    @property
    def factors(self) -> int:
        ...

    def initial_values(self) -> Array:
        ...

    def evolve(self, t0: float, x0: Array, dt: float, dw: Array) -> Array:
        ...


@dataclass
class MCConfig:
    """Configuration for Monte Carlo simulations.

    ``steps`` is the number of grid intervals requested; the grid may add
    nodes so that every mandatory time is hit.
    """

    steps: int
    paths: int
    antithetic: bool = False

    def __post_init__(self) -> None:
        if self.steps <= 0:
            raise ConfigurationError("MCConfig.steps must be > 0.")
        if self.paths <= 0:
            raise ConfigurationError("MCConfig.paths must be > 0.")
        if self.antithetic and self.paths % 2 != 0:
            raise ConfigurationError("Antithetic sampling requires an even number of paths.")

    @property
    def base_paths(self) -> int:
        """Number of independent paths generated before optional antithetic pairing."""
        return self.paths // 2 if self.antithetic else self.paths


@dataclass
class MCPaths:
    """Container for Monte Carlo paths and associated metadata.

    ``values`` has shape ``(paths, len(times), size)``.
    """

    values: Array
    times: Array
    metadata: Dict[str, Any] = field(default_factory=dict)

    def terminal(self) -> Array:
        """Return terminal state for each path."""
        return self.values[:, -1]

    def mean_path(self) -> Array:
        """Return the average path across all simulations."""
        return self.values.mean(axis=0)


@dataclass(frozen=True)
class MCResult:
    """Sample mean with its standard error."""

    mean: Array
    error_estimate: Array
    samples: int


def simulate_multipaths(
    process: MultiFactorProcess,
    grid: Array,
    key: KeyArray,
    cfg: MCConfig,
) -> MCPaths:
    """Evolve ``cfg.paths`` copies of ``process`` along ``grid``.

    All normal draws are taken up front from ``key`` so a given key always
    reproduces the same paths.
    """
    times = [float(t) for t in grid]
    if len(times) < 2:
        raise ConfigurationError("grid must contain at least two times")
    if any(t1 <= t0 for t0, t1 in zip(times[:-1], times[1:])):
        raise ConfigurationError("grid must be strictly increasing")

    steps = len(times) - 1
    factors = process.factors
    normals = normal(key, (steps, cfg.base_paths, factors))
    if cfg.antithetic:
        normals = jnp.concatenate([normals, -normals], axis=1)

    x0 = jnp.asarray(process.initial_values(), dtype=jnp.float64)
    state = jnp.broadcast_to(x0, (cfg.paths, x0.shape[0]))
    history = [state]
    for n in range(steps):
        t0 = times[n]
        state = process.evolve(t0, state, times[n + 1] - t0, normals[n])
        history.append(state)

    logger.info(
        "simulated %d paths over %d steps with %d factors", cfg.paths, steps, factors
    )
    values = jnp.stack(history, axis=1)
    metadata = {"antithetic": cfg.antithetic, "paths": cfg.paths, "steps": steps, "factors": factors}
    return MCPaths(values=values, times=jnp.asarray(times), metadata=metadata)


def summarize(samples: Array, *, antithetic: bool = False) -> MCResult:
    """Mean and standard error over the first axis of ``samples``.

    Antithetic pairs (path ``p`` and ``p + n/2``) are averaged first so the
    error estimate reflects the number of independent draws.
    """
    samples = jnp.asarray(samples)
    n = samples.shape[0]
    if antithetic:
        if n % 2 != 0:
            raise ConfigurationError("antithetic samples must come in pairs")
        half = n // 2
        samples = 0.5 * (samples[:half] + samples[half:])
    count = samples.shape[0]
    mean = samples.mean(axis=0)
    if count > 1:
        std = samples.std(axis=0, ddof=1)
        error = std / math.sqrt(count)
    else:
        error = jnp.zeros_like(mean)
    return MCResult(mean=mean, error_estimate=error, samples=n)
