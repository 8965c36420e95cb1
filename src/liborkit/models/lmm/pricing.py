"""Monte Carlo pricing of caplets and ratchet caps in the forward model.

Paths are generated on a grid that contains every fixing time; each rate is
read at its own fixing and cash flows are deflated with the spot-measure
numeraire ``Π_{j<=k} (1 + τ_j L_j(T_j))``.
"""
from __future__ import annotations

import logging

import jax.numpy as jnp

from liborkit.core.engine import MCConfig, MCResult, simulate_multipaths, summarize
from liborkit.core.grid import grid_index, mandatory_time_grid
from liborkit.core.rng import KeyArray
from liborkit.errors import ConfigurationError
from liborkit.models.lmm.process import ForwardRateProcess

Array = jnp.ndarray

logger = logging.getLogger(__name__)

__all__ = ["simulate_fixings", "caplet_npvs", "ratchet_npvs"]


def simulate_fixings(process: ForwardRateProcess, key: KeyArray, cfg: MCConfig) -> Array:
    """Simulated rates at their fixing times, shape ``(paths, size)``."""
    grid = mandatory_time_grid(process.fixing_times, cfg.steps)
    paths = simulate_multipaths(process, grid, key, cfg)
    locations = jnp.asarray([grid_index(grid, t) for t in process.fixing_times])
    columns = jnp.arange(process.size)
    return paths.values[:, locations, columns]


def _accruals(process: ForwardRateProcess) -> Array:
    return jnp.asarray(process.accrual_end_times) - jnp.asarray(process.accrual_start_times)


def caplet_npvs(
    process: ForwardRateProcess,
    strike: float,
    key: KeyArray,
    cfg: MCConfig,
) -> MCResult:
    """Present values of the caplets ``max(L_k(T_k) - K, 0) τ_k`` for every ``k``."""
    fixings = simulate_fixings(process, key, cfg)
    deflators = process.discount_bonds(fixings)
    payoffs = jnp.maximum(fixings - strike, 0.0) * _accruals(process)
    result = summarize(deflators * payoffs, antithetic=cfg.antithetic)
    logger.info("priced %d caplets at strike %.4f", process.size, strike)
    return result


def ratchet_npvs(
    process: ForwardRateProcess,
    spread: float,
    key: KeyArray,
    cfg: MCConfig,
) -> MCResult:
    """Present values of ``max(L_k(T_k) - L_{k-1}(T_{k-1}) - spread, 0) τ_k`` for ``k >= 1``."""
    if process.size < 2:
        raise ConfigurationError("ratchet caps need at least two rates")
    fixings = simulate_fixings(process, key, cfg)
    deflators = process.discount_bonds(fixings)
    payoffs = jnp.maximum(fixings[:, 1:] - fixings[:, :-1] - spread, 0.0) * _accruals(process)[1:]
    return summarize(deflators[:, 1:] * payoffs, antithetic=cfg.antithetic)
