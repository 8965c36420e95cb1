import datetime
import math

import numpy as np
import pytest
from scipy.stats import norm

from liborkit.core.utils.dates import ScheduleSpec, libor_schedule
from liborkit.errors import ConfigurationError, NumericalConvergenceError, ScheduleMismatchError
from liborkit.market import FlatCurve
from liborkit.models import OptionType
from liborkit.models.lmm import (
    ExponentialCorrelationModel,
    ForwardRateProcess,
    LiborForwardModel,
    LinearExponentialVolatilityModel,
)


def _model(process, beta=0.1, factors=None):
    vol = LinearExponentialVolatilityModel(process.fixing_times, 0.1, 0.5, 0.05, 0.2)
    corr = ExponentialCorrelationModel(process.size, beta, factors)
    return LiborForwardModel(process, vol, corr)


@pytest.fixture
def model(semiannual_process):
    return _model(semiannual_process)


def _black_call(strike, forward, std_dev):
    d1 = math.log(forward / strike) / std_dev + 0.5 * std_dev
    return forward * norm.cdf(d1) - strike * norm.cdf(d1 - std_dev)


def test_parameter_vector(model):
    assert model.parameter_layout.names() == (
        "volatility.a",
        "volatility.b",
        "volatility.c",
        "volatility.d",
        "correlation.beta",
    )
    np.testing.assert_allclose(model.params, [0.1, 0.5, 0.05, 0.2, 0.1])
    model.set_params([0.12, 0.5, 0.05, 0.2, 0.3])
    assert model.correlation_model.parameters["beta"] == 0.3
    assert model.version == (1, 1)
    with pytest.raises(ConfigurationError):
        model.set_params([0.1, 0.5])


def test_discount_bond(model):
    curve = model.process.curve
    assert model.discount(1.0) == pytest.approx(float(curve.discount(1.0)))
    assert model.discount_bond(1.0, 3.0) == pytest.approx(math.exp(-0.05 * 2.0))


def test_discounting_requires_curve(semiannual_process):
    process = ForwardRateProcess(semiannual_process.schedule, semiannual_process.day_counter)
    lfm = _model(process)
    with pytest.raises(ConfigurationError, match="discount curve"):
        lfm.discount(1.0)


def test_bond_option_matches_black_caplet(model):
    process = model.process
    i = 3
    start, end = process.accrual_start_times[i], process.accrual_end_times[i]
    tau = end - start
    strike = 0.99
    cap_rate = (1.0 / strike - 1.0) / tau
    forward = float(process.initial_values()[i])
    variance = model.covariance_proxy.integrated_covariance_at(i, i, process.fixing_times[i])
    caplet = model.discount(end) * tau * _black_call(cap_rate, forward, math.sqrt(variance))

    put = model.discount_bond_option(OptionType.PUT, strike, start, end)
    assert put == pytest.approx(caplet / (1.0 + cap_rate * tau), rel=1e-12)


@pytest.mark.parametrize("i", [1, 4, 8])
def test_bond_option_put_call_parity(model, i):
    process = model.process
    start, end = process.accrual_start_times[i], process.accrual_end_times[i]
    strike = 0.975
    call = model.discount_bond_option(OptionType.CALL, strike, start, end)
    put = model.discount_bond_option(OptionType.PUT, strike, start, end)
    assert call - put == pytest.approx(model.discount(end) - strike * model.discount(start), abs=1e-13)


def test_bond_option_schedule_checks(model):
    starts = model.process.accrual_start_times
    ends = model.process.accrual_end_times
    with pytest.raises(ConfigurationError):
        model.discount_bond_option(OptionType.PUT, 0.0, starts[1], ends[1])
    with pytest.raises(ScheduleMismatchError, match="irregular"):
        model.discount_bond_option(OptionType.PUT, 0.97, starts[1] + 0.1, ends[1])
    with pytest.raises(ScheduleMismatchError, match="irregular"):
        model.discount_bond_option(OptionType.PUT, 0.97, starts[1], ends[2])
    with pytest.raises(ScheduleMismatchError, match="outside"):
        model.discount_bond_option(OptionType.PUT, 0.97, starts[-1] + 1.0, ends[-1] + 1.0)


def test_caplet_volatility(model):
    t = model.process.fixing_times[5]
    variance = model.volatility_model.integrated_variance(5, 5, t)
    assert model.caplet_volatility(5) == pytest.approx(math.sqrt(variance / t))
    with pytest.raises(ScheduleMismatchError):
        model.caplet_volatility(0)


def test_swap_weights_and_rate(model):
    process = model.process
    curve = process.curve
    w = np.asarray(model.swap_weights(2, 6))
    assert w.shape == (7,)
    assert w[:3].sum() == 0.0
    assert w.sum() == pytest.approx(1.0)

    ends = process.accrual_end_times
    annuity = sum(process.accrual_periods[i] * float(curve.discount(ends[i])) for i in range(3, 7))
    par = (float(curve.discount(process.accrual_start_times[3])) - float(curve.discount(ends[6]))) / annuity
    assert model.forward_swap_rate(2, 6) == pytest.approx(par, rel=1e-12)

    with pytest.raises(ConfigurationError):
        model.swap_weights(4, 4)


def test_swaption_matrix_single_period_is_caplet(model):
    matrix = model.swaption_volatility_matrix()
    assert matrix.volatilities.shape == (5, 5)
    assert matrix.lengths == (1, 2, 3, 4, 5)
    assert matrix.exercise_dates == model.process.fixing_dates[1:6]
    assert bool(np.all(np.asarray(matrix.volatilities) > 0.0))
    for k in range(5):
        assert matrix.volatility(k, 1) == pytest.approx(model.caplet_volatility(k + 1), rel=1e-12)


def test_swaption_matrix_decorrelation_lowers_long_swaptions(semiannual_process):
    flat = _model(semiannual_process, beta=0.0).swaption_volatility_matrix()
    decorrelated = _model(semiannual_process, beta=1.0).swaption_volatility_matrix()
    assert decorrelated.volatility(1, 5) < flat.volatility(1, 5)
    assert decorrelated.volatility(1, 1) == pytest.approx(flat.volatility(1, 1))


def test_swaption_matrix_is_cached_per_version(model):
    first = model.swaption_volatility_matrix()
    assert model.swaption_volatility_matrix() is first
    model.set_params([0.1, 0.5, 0.05, 0.25, 0.1])
    second = model.swaption_volatility_matrix()
    assert second is not first
    assert second.volatility(0, 1) > first.volatility(0, 1)


def test_swaption_matrix_lookup_errors(model):
    matrix = model.swaption_volatility_matrix()
    with pytest.raises(ScheduleMismatchError):
        matrix.volatility(0, 6)
    with pytest.raises(ScheduleMismatchError):
        matrix.volatility(5, 1)


def test_size_mismatch(semiannual_process):
    vol = LinearExponentialVolatilityModel([0.0, 0.5, 1.0], 0.1, 0.5, 0.05, 0.2)
    with pytest.raises(ConfigurationError):
        LiborForwardModel(semiannual_process, vol, ExponentialCorrelationModel(3, 0.1))


def test_model_on_business_day_schedule():
    curve = FlatCurve(0.03)
    entries = libor_schedule(curve, datetime.date(2024, 3, 1), 6, ScheduleSpec())
    process = ForwardRateProcess(entries, settlement_date=datetime.date(2024, 3, 1), curve=curve)
    lfm = _model(process)
    i = 2
    start, end = process.accrual_start_times[i], process.accrual_end_times[i]
    assert lfm.discount_bond_option(OptionType.PUT, 0.99, start, end) > 0.0


def test_bond_option_rejects_negative_variance(model, monkeypatch):
    process = model.process
    monkeypatch.setattr(model.covariance_proxy, "integrated_covariance_at", lambda i, j, t, x=None: -1e-6)
    with pytest.raises(NumericalConvergenceError, match="negative integrated variance"):
        model.discount_bond_option(
            OptionType.CALL, 0.97, process.accrual_start_times[2], process.accrual_end_times[2]
        )


def test_bond_option_tolerates_rounding_below_zero(model, monkeypatch):
    process = model.process
    monkeypatch.setattr(model.covariance_proxy, "integrated_covariance_at", lambda i, j, t, x=None: -1e-17)
    start, end = process.accrual_start_times[2], process.accrual_end_times[2]
    tau = end - start
    strike = 0.97
    cap_rate = (1.0 / strike - 1.0) / tau
    forward = float(process.initial_values()[2])
    intrinsic = model.discount(end) * tau * max(forward - cap_rate, 0.0) / (1.0 + cap_rate * tau)
    put = model.discount_bond_option(OptionType.PUT, strike, start, end)
    assert put == pytest.approx(intrinsic, rel=1e-12, abs=1e-15)
