"""Calibration instruments for the LIBOR forward model.

A helper knows one market quote and how to read the corresponding model
quantity; :meth:`LiborForwardModel.calibrate` minimises the sum of squared
``calibration_error`` values over all helpers. Errors are expressed in
Black volatility so caplets and swaptions can be mixed.
"""
from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict

from liborkit.errors import ConfigurationError
from liborkit.models.black import OptionType, black_implied_std_dev

logger = logging.getLogger(__name__)

__all__ = ["CalibrationHelper", "CapletHelper", "SwaptionHelper", "CalibrationResult"]


@dataclass
class CalibrationResult:
    """Container for calibration outputs."""

    params: Dict[str, float]
    cost: float
    converged: bool
    iterations: int
    message: str = ""


class CalibrationHelper(ABC):
    """Market volatility quote paired with its model counterpart."""

    def __init__(self, market_volatility: float):
        if market_volatility <= 0.0:
            raise ConfigurationError("market volatility must be positive")
        self.market_volatility = float(market_volatility)

    @abstractmethod
    def model_volatility(self, model) -> float:
        ...

    def calibration_error(self, model) -> float:
        return self.model_volatility(model) - self.market_volatility


class CapletHelper(CalibrationHelper):
    """At-the-money caplet on forward rate ``index``.

    The model price comes from the zero-bond put that replicates the caplet
    and is converted back to a Black volatility.
    """

    def __init__(self, index: int, market_volatility: float):
        super().__init__(market_volatility)
        if index < 1:
            raise ConfigurationError("caplet index must be at least 1 (rate 0 has fixed)")
        self.index = index

    def model_volatility(self, model) -> float:
        process = model.process
        i = self.index
        start = process.accrual_start_times[i]
        end = process.accrual_end_times[i]
        tau = end - start
        forward = float(process.initial_values()[i])
        bond_strike = 1.0 / (1.0 + forward * tau)

        put = model.discount_bond_option(OptionType.PUT, bond_strike, start, end)
        caplet = put * (1.0 + forward * tau)
        undiscounted = caplet / (model.discount(end) * tau)
        std_dev = black_implied_std_dev(OptionType.CALL, forward, forward, undiscounted)
        return std_dev / math.sqrt(process.fixing_times[i])


class SwaptionHelper(CalibrationHelper):
    """At-the-money swaption exercised at ``exercise_index`` into ``length`` periods."""

    def __init__(self, exercise_index: int, length: int, market_volatility: float):
        super().__init__(market_volatility)
        if exercise_index < 0 or length < 1:
            raise ConfigurationError("invalid swaption coordinates")
        self.exercise_index = exercise_index
        self.length = length

    def model_volatility(self, model) -> float:
        matrix = model.swaption_volatility_matrix()
        return matrix.volatility(self.exercise_index, self.length)
