"""Parametric instantaneous correlation between forward rates.

Both models are time-homogeneous: the correlation between rates ``i`` and
``j`` depends on ``|i - j|`` only. When fewer factors than rates are
requested, the pseudo square root is rank-reduced and the stored correlation
matrix is replaced by ``B Bᵀ`` so the two stay consistent.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

import jax.numpy as jnp
import numpy as np

from liborkit.errors import ConfigurationError
from liborkit.math.linalg import SalvagingAlgorithm, pseudo_sqrt, rank_reduced_sqrt
from liborkit.models.lmm.parameters import (
    ParameterBlock,
    ParameterSpec,
    VersionedCache,
    bounded,
    non_negative,
)

Array = jnp.ndarray

logger = logging.getLogger(__name__)

__all__ = [
    "CorrelationModel",
    "ExponentialCorrelationModel",
    "LinearExponentialCorrelationModel",
]


@dataclass(frozen=True)
class _CorrelationState:
    correlation: Array
    pseudo_root: Array
    host: np.ndarray


class CorrelationModel(ABC):
    """Base class for forward-rate correlation models.

    Parameters
    ----------
    size : int
        Number of forward rates.
    factors : int, optional
        Number of Brownian factors (columns of the pseudo square root).
        Defaults to ``size``.
    """

    _always_rank_reduce = False

    def __init__(
        self,
        size: int,
        factors: Optional[int],
        specs: Sequence[ParameterSpec],
        values: Sequence[float],
    ):
        if size < 1:
            raise ConfigurationError("correlation model needs at least one rate")
        factors = size if factors is None else factors
        if not 1 <= factors <= size:
            raise ConfigurationError(f"factors must be in [1, {size}], got {factors}")
        self._size = size
        self._factors = factors
        self.parameters = ParameterBlock(specs, values)
        self._state: VersionedCache[_CorrelationState] = VersionedCache()

    @property
    def size(self) -> int:
        return self._size

    @property
    def factors(self) -> int:
        return self._factors

    def is_time_independent(self) -> bool:
        return True

    def set_params(self, values) -> None:
        self.parameters.update(values)

    def correlation(self, t: float = 0.0, x=None) -> Array:
        """Full ``size × size`` correlation matrix."""
        return self._current().correlation

    def pseudo_sqrt(self, t: float = 0.0, x=None) -> Array:
        """``size × factors`` matrix ``B`` with ``B Bᵀ`` equal to :meth:`correlation`."""
        return self._current().pseudo_root

    def correlation_at(self, i: int, j: int, t: float = 0.0, x=None) -> float:
        return float(self._current().host[i, j])

    @abstractmethod
    def _raw_correlation(self) -> Array:
        """Correlation implied directly by the parametric form."""

    def _current(self) -> _CorrelationState:
        return self._state.get(self.parameters.version, self._generate)

    def _generate(self) -> _CorrelationState:
        rho = self._raw_correlation()
        if self._always_rank_reduce or self._factors < self._size:
            root = rank_reduced_sqrt(rho, self._factors, 1.0, SalvagingAlgorithm.SPECTRAL)
            rho = root @ root.T
        else:
            root = pseudo_sqrt(rho, SalvagingAlgorithm.SPECTRAL)
        logger.debug(
            "%s rebuilt with %s (%d rates, %d factors)",
            type(self).__name__,
            self.parameters.as_dict(),
            self._size,
            self._factors,
        )
        return _CorrelationState(rho, root, np.asarray(rho))

    def _distance(self) -> Array:
        idx = jnp.arange(self._size, dtype=jnp.float64)
        return jnp.abs(idx[:, None] - idx[None, :])


class ExponentialCorrelationModel(CorrelationModel):
    """``ρ_ij = exp(-β |i - j|)`` with ``β >= 0``."""

    def __init__(self, size: int, beta: float, factors: Optional[int] = None):
        super().__init__(size, factors, [ParameterSpec("beta", non_negative())], [beta])

    def _raw_correlation(self) -> Array:
        beta = self.parameters["beta"]
        return jnp.exp(-beta * self._distance())


class LinearExponentialCorrelationModel(CorrelationModel):
    """``ρ_ij = α + (1 - α) exp(-β |i - j|)`` with ``α ∈ [-1, 1]`` and ``β >= 0``.

    The square root is always taken through the principal-component
    reduction, and the correlation matrix exposed is the reconstructed
    ``B Bᵀ`` even when all factors are kept.
    """

    _always_rank_reduce = True

    def __init__(self, size: int, alpha: float, beta: float, factors: Optional[int] = None):
        super().__init__(
            size,
            factors,
            [ParameterSpec("alpha", bounded(-1.0, 1.0)), ParameterSpec("beta", non_negative())],
            [alpha, beta],
        )

    def _raw_correlation(self) -> Array:
        alpha = self.parameters["alpha"]
        beta = self.parameters["beta"]
        return alpha + (1.0 - alpha) * jnp.exp(-beta * self._distance())
