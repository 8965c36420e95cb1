"""Black (1976) formula on a forward and its inverse."""

from __future__ import annotations

from enum import IntEnum

import jax.numpy as jnp
from jax.scipy.stats import norm
from scipy.optimize import brentq

from liborkit.errors import ConfigurationError, NumericalConvergenceError

__all__ = ["OptionType", "black_formula", "black_implied_std_dev"]


class OptionType(IntEnum):
    CALL = 1
    PUT = -1

    def opposite(self) -> "OptionType":
        return OptionType.PUT if self is OptionType.CALL else OptionType.CALL


def black_formula(
    option_type: OptionType,
    strike: float,
    forward: float,
    std_dev: float,
    discount: float = 1.0,
    displacement: float = 0.0,
) -> float:
    """Undiscounted-forward Black price times ``discount``.

    Args:
        option_type: CALL or PUT
        strike: Option strike
        forward: Forward value of the underlying
        std_dev: Total standard deviation ``σ√T``
        discount: Discount factor applied to the result
        displacement: Shift applied to both forward and strike

    Returns:
        Option price
    """
    if std_dev < 0.0:
        raise ConfigurationError(f"stdDev ({std_dev}) must be non-negative")
    if discount <= 0.0:
        raise ConfigurationError(f"discount ({discount}) must be positive")
    sign = int(OptionType(option_type))

    f = forward + displacement
    k = strike + displacement
    if f <= 0.0 or k <= 0.0:
        if k <= 0.0 and sign == 1:
            return float(discount * (f - k))
        if f <= 0.0 and k > 0.0 and sign == -1:
            return float(discount * (k - f))
        return 0.0
    if std_dev == 0.0:
        return float(discount * max(sign * (f - k), 0.0))

    d1 = jnp.log(f / k) / std_dev + 0.5 * std_dev
    d2 = d1 - std_dev
    price = sign * (f * norm.cdf(sign * d1) - k * norm.cdf(sign * d2))
    return float(discount * jnp.maximum(price, 0.0))


def black_implied_std_dev(
    option_type: OptionType,
    strike: float,
    forward: float,
    price: float,
    discount: float = 1.0,
    *,
    tolerance: float = 1e-12,
    max_std_dev: float = 10.0,
) -> float:
    """Invert :func:`black_formula` for the total standard deviation.

    Raises:
        ConfigurationError: if ``price`` is below intrinsic value
        NumericalConvergenceError: if no root is bracketed
    """
    sign = int(OptionType(option_type))
    intrinsic = discount * max(sign * (forward - strike), 0.0)
    if price < intrinsic - tolerance:
        raise ConfigurationError(
            f"option price ({price}) is below its intrinsic value ({intrinsic})"
        )
    if price <= intrinsic:
        return 0.0

    def objective(std_dev: float) -> float:
        return black_formula(option_type, strike, forward, std_dev, discount) - price

    upper = max_std_dev
    if objective(upper) < 0.0:
        raise NumericalConvergenceError(
            f"implied standard deviation exceeds {max_std_dev} for price {price}"
        )
    root = brentq(objective, 0.0, upper, xtol=tolerance, maxiter=200)
    return float(root)
