"""Core utilities shared by the model layer."""

from __future__ import annotations

from . import dates  # noqa: F401
from .search import clamp_index, predecessor_index, successor_index

__all__ = [
    "dates",
    "clamp_index",
    "predecessor_index",
    "successor_index",
]
