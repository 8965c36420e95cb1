from __future__ import annotations

from typing import Sequence

import jax.numpy as jnp
import numpy as np

from liborkit.errors import ConfigurationError, ScheduleMismatchError

__all__ = [
    "mandatory_time_grid",
    "grid_index",
]

_GRID_TOLERANCE = 1e-12


def mandatory_time_grid(times: Sequence[float], steps: int) -> jnp.ndarray:
    """Grid from 0 through every mandatory time with roughly ``steps`` intervals.

    The largest step is ``max(times) / steps``; each gap between consecutive
    mandatory times is split into equal intervals no longer than that (at
    least one interval per gap), so every mandatory time is a grid node.
    """
    if steps <= 0:
        raise ConfigurationError("steps must be > 0 for a time grid.")
    mandatory = sorted(set(float(t) for t in times))
    if not mandatory:
        raise ConfigurationError("at least one mandatory time is required")
    if mandatory[0] < 0.0:
        raise ConfigurationError("mandatory times must be non-negative")
    last = mandatory[-1]
    if last == 0.0:
        return jnp.zeros((1,), dtype=jnp.float64)

    dt_max = last / steps
    nodes = [0.0]
    begin = 0.0
    for end in mandatory:
        if end == 0.0:
            continue
        n = max(int((end - begin) / dt_max + 0.5), 1)
        dt = (end - begin) / n
        nodes.extend(begin + k * dt for k in range(1, n))
        nodes.append(end)
        begin = end
    return jnp.asarray(nodes, dtype=jnp.float64)


def grid_index(grid, t: float) -> int:
    """Position of ``t`` on ``grid``; ``t`` must be a node."""
    host = np.asarray(grid)
    i = int(np.argmin(np.abs(host - t)))
    if abs(host[i] - t) > _GRID_TOLERANCE * max(1.0, abs(t)):
        raise ScheduleMismatchError(f"time {t} is not on the simulation grid")
    return i
