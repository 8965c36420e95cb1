"""Binary search helpers for time-ordered lookup tables.

Every lookup against fixing times, volatility start times or accrual
schedules goes through these functions so that boundary behaviour is the
same everywhere.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from liborkit.errors import ConfigurationError

__all__ = ["predecessor_index", "successor_index", "clamp_index"]


def clamp_index(index: int, lower: int, upper: int) -> int:
    """Clamp ``index`` into the closed range ``[lower, upper]``."""
    if upper < lower:
        raise ConfigurationError(f"empty index range [{lower}, {upper}]")
    return max(lower, min(index, upper))


def predecessor_index(
    times: Sequence[float],
    t: float,
    *,
    lower: Optional[int] = None,
    upper: Optional[int] = None,
) -> int:
    """Return the largest ``i`` with ``times[i] <= t``.

    ``-1`` is returned when ``t`` precedes every entry, unless a ``lower``
    bound is supplied. ``lower``/``upper`` clamp the result.

    Examples
    --------
    >>> predecessor_index([0.0, 1.0, 2.0], 1.0)
    1
    >>> predecessor_index([0.0, 1.0, 2.0], 0.999)
    0
    >>> predecessor_index([0.0, 1.0, 2.0], 5.0, upper=1)
    1
    """
    index = int(np.searchsorted(times, t, side="right")) - 1
    if lower is not None:
        index = max(index, lower)
    if upper is not None:
        index = min(index, upper)
    return index


def successor_index(times: Sequence[float], t: float) -> int:
    """Return the smallest ``i`` with ``times[i] >= t`` (``len(times)`` if none)."""
    return int(np.searchsorted(times, t, side="left"))
