import jax.numpy as jnp
import numpy as np
import pytest

from liborkit.errors import ConfigurationError
from liborkit.models.lmm.parameters import (
    ParameterBlock,
    ParameterLayout,
    ParameterSpec,
    VersionedCache,
    bounded,
    non_negative,
    unconstrained,
)


@pytest.fixture
def vol_block():
    return ParameterBlock(
        [ParameterSpec("a", non_negative()), ParameterSpec("b", non_negative())],
        [0.1, 0.5],
    )


@pytest.fixture
def corr_block():
    return ParameterBlock(
        [ParameterSpec("alpha", bounded(-1.0, 1.0)), ParameterSpec("shift", unconstrained())],
        [0.2, -3.0],
    )


def test_block_access(vol_block):
    assert vol_block.names == ("a", "b")
    assert vol_block["b"] == 0.5
    assert vol_block.as_dict() == {"a": 0.1, "b": 0.5}
    np.testing.assert_allclose(vol_block.as_array(), [0.1, 0.5])
    with pytest.raises(KeyError):
        vol_block["c"]


def test_block_update_bumps_version(vol_block):
    assert vol_block.version == 0
    vol_block.update({"a": 0.2, "b": 0.4})
    assert vol_block.values == (0.2, 0.4)
    assert vol_block.version == 1


def test_rejected_update_leaves_block_unchanged(vol_block):
    with pytest.raises(ConfigurationError, match="'b' must be non-negative"):
        vol_block.update([0.3, -0.1])
    with pytest.raises(ConfigurationError, match="expected 2 parameters"):
        vol_block.update([0.3])
    with pytest.raises(ConfigurationError, match="names mismatch"):
        vol_block.update({"a": 0.3})
    assert vol_block.values == (0.1, 0.5)
    assert vol_block.version == 0


def test_invalid_initial_values_and_duplicates():
    with pytest.raises(ConfigurationError):
        ParameterBlock([ParameterSpec("a", bounded(0.0, 1.0))], [2.0])
    with pytest.raises(ConfigurationError, match="duplicate"):
        ParameterBlock(
            [ParameterSpec("a", unconstrained()), ParameterSpec("a", unconstrained())],
            [0.0, 1.0],
        )
    with pytest.raises(ConfigurationError, match="empty interval"):
        bounded(1.0, 1.0)


def test_non_finite_values_are_rejected():
    block = ParameterBlock([ParameterSpec("x", unconstrained())], [0.0])
    with pytest.raises(ConfigurationError):
        block.update([float("nan")])


def test_layout_offsets_and_names(vol_block, corr_block):
    layout = ParameterLayout({"volatility": vol_block, "correlation": corr_block})
    assert layout.size == 4
    assert layout.slice_of("correlation") == slice(2, 4)
    assert layout.names() == ("volatility.a", "volatility.b", "correlation.alpha", "correlation.shift")
    np.testing.assert_allclose(layout.values(), [0.1, 0.5, 0.2, -3.0])


def test_layout_update_is_atomic(vol_block, corr_block):
    layout = ParameterLayout({"volatility": vol_block, "correlation": corr_block})
    with pytest.raises(ConfigurationError, match="'alpha'"):
        layout.set_values([0.3, 0.3, 1.5, 0.0])
    assert vol_block.values == (0.1, 0.5)
    assert layout.version == (0, 0)

    with pytest.raises(ConfigurationError, match="length 3"):
        layout.set_values([0.3, 0.3, 0.5])

    layout.set_values([0.3, 0.3, 0.5, 0.0])
    assert layout.version == (1, 1)
    assert corr_block["alpha"] == 0.5


def test_empty_layout():
    layout = ParameterLayout({})
    assert layout.size == 0
    assert layout.values().shape == (0,)


@pytest.mark.parametrize(
    "constraint, values",
    [
        (non_negative(), [1e-4, 0.3, 5.0]),
        (bounded(-1.0, 1.0), [-0.9, 0.0, 0.75]),
        (unconstrained(), [-2.0, 3.0]),
    ],
)
def test_transforms_are_inverse(constraint, values):
    y = jnp.asarray(values)
    x = constraint.transform.invert(y)
    np.testing.assert_allclose(constraint.transform.apply(x), y, rtol=1e-9)
    assert all(constraint.test(float(v)) for v in constraint.transform.apply(jnp.linspace(-20, 20, 9)))


def test_versioned_cache_rebuilds_on_new_key():
    calls = []

    def build():
        calls.append(1)
        return len(calls)

    cache = VersionedCache()
    assert cache.get(0, build) == 1
    assert cache.get(0, build) == 1
    assert cache.get(1, build) == 2
    cache.invalidate()
    assert cache.get(1, build) == 3
