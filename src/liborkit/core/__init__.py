"""Core infrastructure: configuration, Monte Carlo engine, grids, PRNG and dates."""

from liborkit.core.engine import MCConfig, MCPaths, MCResult, simulate_multipaths, summarize
from liborkit.core.grid import grid_index, mandatory_time_grid
from liborkit.core.rng import KeySeq

__all__ = [
    "KeySeq",
    "MCConfig",
    "MCPaths",
    "MCResult",
    "grid_index",
    "mandatory_time_grid",
    "simulate_multipaths",
    "summarize",
]
