"""Market data: discount curves and caplet volatility structures."""

from liborkit.market.caplet_volatility import (
    CapletVarianceCurve,
    CapletVolatilityStructure,
    ConstantCapletVolatility,
)
from liborkit.market.curves import DiscountCurve, FlatCurve, ZeroCurve

__all__ = [
    "CapletVarianceCurve",
    "CapletVolatilityStructure",
    "ConstantCapletVolatility",
    "DiscountCurve",
    "FlatCurve",
    "ZeroCurve",
]
