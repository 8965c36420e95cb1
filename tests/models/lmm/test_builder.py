import datetime

import jax
import numpy as np
import pytest

from liborkit.core.config import LMMConfig
from liborkit.core.utils.dates import Actual360
from liborkit.market import FlatCurve, ZeroCurve
from liborkit.models.lmm import (
    ExponentialCorrelationModel,
    FixedVolatilityModel,
    LinearExponentialCorrelationModel,
    LinearExponentialVolatilityModel,
    build_curve,
    build_model,
    caplet_npvs,
)


def _payload(**overrides):
    payload = {
        "curve": {"kind": "flat", "rate": 0.03},
        "schedule": {"settlement_date": "2024-01-15", "size": 6},
        "correlation": {"kind": "exponential", "beta": 0.1, "factors": 2},
        "volatility": {"kind": "linear_exponential", "a": 0.1, "b": 0.5, "c": 0.05, "d": 0.2},
        "simulation": {"steps": 6, "paths": 200, "seed": 3, "antithetic": True},
        "integration": {"intervals": 8},
    }
    payload.update(overrides)
    return LMMConfig.model_validate(payload)


def test_build_default_model():
    model = build_model(_payload())
    process = model.process
    assert process.size == 6
    assert process.factors == 2
    assert process.day_counter == Actual360()
    assert process.settlement_date == datetime.date(2024, 1, 15)
    assert isinstance(model.correlation_model, ExponentialCorrelationModel)
    assert isinstance(model.volatility_model, LinearExponentialVolatilityModel)
    assert model.covariance_proxy.intervals == 8
    # 2 business days before Monday 15 January
    assert process.fixing_dates[0] == datetime.date(2024, 1, 11)
    assert all(d.weekday() < 5 for d in process.fixing_dates)


def test_build_fixed_volatility_and_linear_exponential_correlation():
    model = build_model(
        _payload(
            correlation={"kind": "linear_exponential", "alpha": 0.3, "beta": 0.4},
            volatility={"kind": "fixed", "volatilities": [0.0, 0.2, 0.19, 0.18, 0.17, 0.16]},
        )
    )
    assert isinstance(model.correlation_model, LinearExponentialCorrelationModel)
    assert isinstance(model.volatility_model, FixedVolatilityModel)
    assert model.volatility_model.start_times == model.process.fixing_times
    assert model.caplet_volatility(1) == pytest.approx(0.2, rel=1e-8)


def test_build_curve_kinds():
    assert isinstance(build_curve(_payload().curve), FlatCurve)
    zero = _payload(curve={"kind": "zero", "times": [1.0, 5.0], "rates": [0.02, 0.03]})
    curve = build_curve(zero.curve)
    assert isinstance(curve, ZeroCurve)
    assert float(curve.zero_rate(3.0)) == pytest.approx(0.025)


def test_configured_simulation_runs_end_to_end():
    config = _payload()
    model = build_model(config)
    cfg = config.to_mc_config()
    result = caplet_npvs(model.process, 0.03, jax.random.PRNGKey(config.simulation.seed), cfg)
    assert result.mean.shape == (6,)
    assert bool(np.all(np.asarray(result.mean) >= 0.0))
