import jax.numpy as jnp
import numpy as np
import pytest

from liborkit.errors import ConfigurationError
from liborkit.market import FlatCurve, ZeroCurve


def test_flat_curve_discount():
    curve = FlatCurve(0.03)
    assert float(curve.discount(2.0)) == pytest.approx(np.exp(-0.06))
    assert float(curve(0.0)) == 1.0
    np.testing.assert_allclose(curve.zero_rate(jnp.array([1.0, 5.0])), 0.03)


def test_zero_curve_interpolates_rates():
    curve = ZeroCurve([1.0, 3.0], [0.02, 0.04])
    assert float(curve.zero_rate(2.0)) == pytest.approx(0.03)
    assert float(curve.discount(2.0)) == pytest.approx(np.exp(-0.06))


def test_zero_curve_extrapolates_flat():
    curve = ZeroCurve([1.0, 3.0], [0.02, 0.04])
    assert float(curve.zero_rate(0.25)) == pytest.approx(0.02)
    assert float(curve.zero_rate(10.0)) == pytest.approx(0.04)
    assert float(curve.discount(0.0)) == 1.0


def test_zero_curve_forward_rate_on_flat_nodes():
    curve = ZeroCurve([0.5, 5.0], [0.025, 0.025])
    assert float(curve.forward_rate(1.0, 2.0)) == pytest.approx(0.025)


@pytest.mark.parametrize(
    "times, rates",
    [
        ([1.0, 2.0], [0.01]),
        ([], []),
        ([2.0, 1.0], [0.01, 0.02]),
        ([-1.0, 1.0], [0.01, 0.02]),
    ],
)
def test_zero_curve_validation(times, rates):
    with pytest.raises(ConfigurationError):
        ZeroCurve(times, rates)
