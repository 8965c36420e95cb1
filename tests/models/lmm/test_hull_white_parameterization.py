import datetime

import numpy as np
import pytest

from liborkit.core.utils.dates import Actual365Fixed
from liborkit.errors import CalibrationError, ConfigurationError
from liborkit.market import CapletVarianceCurve
from liborkit.models.lmm import HullWhiteParameterization

SETTLEMENT = datetime.date(2024, 1, 15)


class _QuotedCapletVolatility:
    """Caplet volatilities looked up by fixing date, without consistency checks."""

    day_counter = Actual365Fixed()

    def __init__(self, quotes):
        self.quotes = dict(quotes)

    def volatility(self, date):
        return self.quotes[date]


@pytest.fixture
def caplet_curve(semiannual_process):
    dates = semiannual_process.fixing_dates[1:]
    vols = [0.20 - 0.005 * k for k in range(len(dates))]
    return CapletVarianceCurve(SETTLEMENT, dates, vols, Actual365Fixed())


def test_bootstrap_reproduces_caplet_variances(semiannual_process, caplet_curve):
    hw = HullWhiteParameterization(semiannual_process, caplet_curve)
    times = semiannual_process.fixing_times
    for i in range(1, semiannual_process.size):
        integrated = np.asarray(hw.integrated_covariance(times[i]))
        vol = caplet_curve.volatility(semiannual_process.fixing_dates[i])
        assert integrated[i, i] == pytest.approx(vol * vol * times[i], rel=1e-10)
    assert len(hw.lambdas) == semiannual_process.size - 1


def test_flat_caplet_vols_give_flat_lambdas(semiannual_process):
    quotes = {d: 0.2 for d in semiannual_process.fixing_dates[1:]}
    hw = HullWhiteParameterization(semiannual_process, _QuotedCapletVolatility(quotes))
    np.testing.assert_allclose(hw.lambdas, 0.2, rtol=1e-12)


def test_structure_shifts_with_reset_index(semiannual_process, caplet_curve):
    hw = HullWhiteParameterization(semiannual_process, caplet_curve)
    lambdas = np.asarray(hw.lambdas)

    at_start = np.asarray(hw.diffusion(0.0))
    assert at_start.shape == (10, 1)
    assert at_start[0, 0] == 0.0
    np.testing.assert_allclose(at_start[1:, 0], lambdas)

    t = semiannual_process.fixing_times[3] + 0.01
    shifted = np.asarray(hw.diffusion(t))
    np.testing.assert_array_equal(shifted[:4], 0.0)
    np.testing.assert_allclose(shifted[4:, 0], lambdas[:6])

    cov = np.asarray(hw.covariance(t))
    np.testing.assert_allclose(cov, shifted @ shifted.T, atol=1e-15)


def test_multi_factor_correlation_keeps_variances(semiannual_process, caplet_curve):
    idx = np.arange(9)
    corr = np.exp(-0.2 * np.abs(idx[:, None] - idx[None, :]))
    hw = HullWhiteParameterization(semiannual_process, caplet_curve, correlation=corr, factors=3)
    diffusion = np.asarray(hw.diffusion(0.0))
    assert diffusion.shape == (10, 3)
    np.testing.assert_allclose(np.sum(diffusion[1:] ** 2, axis=1), np.asarray(hw.lambdas) ** 2, rtol=1e-12)


def test_infeasible_caplet_term_structure(semiannual_process):
    dates = semiannual_process.fixing_dates[1:]
    quotes = {d: (0.40 if k == 0 else 0.05) for k, d in enumerate(dates)}
    with pytest.raises(CalibrationError, match="no real Hull-White volatility"):
        HullWhiteParameterization(semiannual_process, _QuotedCapletVolatility(quotes))


def test_invalid_configurations(semiannual_process, caplet_curve, process_factory):
    with pytest.raises(ConfigurationError, match="multi factor"):
        HullWhiteParameterization(semiannual_process, caplet_curve, factors=2)
    with pytest.raises(ConfigurationError, match="correlation must be"):
        HullWhiteParameterization(semiannual_process, caplet_curve, correlation=np.eye(10), factors=2)
    with pytest.raises(ConfigurationError, match="at least two rates"):
        HullWhiteParameterization(process_factory(1, 6), caplet_curve)
