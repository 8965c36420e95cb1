import jax
import jax.numpy as jnp
import numpy as np
import pytest

from liborkit.core import KeySeq, MCConfig, simulate_multipaths, summarize
from liborkit.errors import ConfigurationError


class _BrownianMotion:
    """Two independent driftless Brownian motions."""

    factors = 2

    def initial_values(self):
        return jnp.zeros(2)

    def evolve(self, t0, x0, dt, dw):
        return x0 + jnp.sqrt(dt) * dw


def test_mc_config_validation():
    with pytest.raises(ConfigurationError):
        MCConfig(steps=0, paths=10)
    with pytest.raises(ConfigurationError):
        MCConfig(steps=1, paths=0)
    with pytest.raises(ConfigurationError, match="even"):
        MCConfig(steps=1, paths=3, antithetic=True)
    assert MCConfig(steps=1, paths=10, antithetic=True).base_paths == 5


def test_simulate_multipaths_shapes_and_metadata():
    grid = jnp.linspace(0.0, 1.0, 5)
    paths = simulate_multipaths(_BrownianMotion(), grid, jax.random.PRNGKey(0), MCConfig(steps=4, paths=6))
    assert paths.values.shape == (6, 5, 2)
    np.testing.assert_array_equal(paths.values[:, 0], 0.0)
    assert paths.terminal().shape == (6, 2)
    assert paths.mean_path().shape == (5, 2)
    assert paths.metadata == {"antithetic": False, "paths": 6, "steps": 4, "factors": 2}


def test_antithetic_paths_mirror_each_other():
    grid = jnp.linspace(0.0, 1.0, 3)
    cfg = MCConfig(steps=2, paths=8, antithetic=True)
    paths = simulate_multipaths(_BrownianMotion(), grid, jax.random.PRNGKey(5), cfg)
    np.testing.assert_allclose(paths.values[:4], -paths.values[4:], atol=1e-15)


def test_terminal_variance():
    grid = jnp.linspace(0.0, 2.0, 9)
    cfg = MCConfig(steps=8, paths=20_000)
    terminal = np.asarray(simulate_multipaths(_BrownianMotion(), grid, jax.random.PRNGKey(2), cfg).terminal())
    np.testing.assert_allclose(terminal.var(axis=0), 2.0, rtol=0.05)


def test_grid_validation():
    with pytest.raises(ConfigurationError):
        simulate_multipaths(_BrownianMotion(), jnp.array([0.0]), jax.random.PRNGKey(0), MCConfig(1, 2))
    with pytest.raises(ConfigurationError):
        simulate_multipaths(_BrownianMotion(), jnp.array([0.0, 1.0, 0.5]), jax.random.PRNGKey(0), MCConfig(1, 2))


def test_summarize_statistics():
    samples = jnp.array([[1.0], [2.0], [3.0], [4.0]])
    plain = summarize(samples)
    assert float(plain.mean[0]) == pytest.approx(2.5)
    assert float(plain.error_estimate[0]) == pytest.approx(np.std([1, 2, 3, 4], ddof=1) / 2.0)

    paired = summarize(samples, antithetic=True)
    assert float(paired.mean[0]) == pytest.approx(2.5)
    assert float(paired.error_estimate[0]) == pytest.approx(np.std([2.0, 3.0], ddof=1) / np.sqrt(2.0))
    assert paired.samples == 4

    with pytest.raises(ConfigurationError):
        summarize(samples[:3], antithetic=True)


def test_key_sequence_is_deterministic():
    first = KeySeq(seed=7)
    second = KeySeq.from_config({"seed": 7})
    np.testing.assert_array_equal(first.normal((3,)), second.normal((3,)))
    assert first.split(2)[0].shape == first.key.shape
    with pytest.raises(ValueError):
        KeySeq.from_config({})
