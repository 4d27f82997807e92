"""
Pytest configuration and shared fixtures for occumcmc tests.
"""

import pytest
import numpy as np
import jax.numpy as jnp

from occumcmc.registry import _REGISTRY


@pytest.fixture
def rng_seed():
    """Default RNG seed for reproducible tests."""
    return 42


@pytest.fixture
def basic_mcmc_config():
    """Basic multi-chain configuration for tests."""
    return {
        'n_chains': 4,
        'n_iterations': 200,
        'step_scale': 0.5,
        'rng_seed': 42,
    }


@pytest.fixture
def isolated_registry():
    """
    Snapshot the target registry and restore it after the test.

    Usage:
        def test_something(isolated_registry):
            register_target('tmp', {...})  # removed again after the test
    """
    saved = dict(_REGISTRY)
    yield
    _REGISTRY.clear()
    _REGISTRY.update(saved)


def standard_normal_2d(state):
    """Unnormalized standard bivariate Normal."""
    return jnp.exp(-0.5 * jnp.sum(state ** 2))


def shifted_normal_2d(state):
    """Unit-variance bivariate Normal centred at (2, -1)."""
    return jnp.exp(-0.5 * ((state[0] - 2.0) ** 2 + (state[1] + 1.0) ** 2))


def make_history(n_samples=100, n_chains=3, n_params=2, seed=0):
    """Synthetic (n_samples, n_chains, n_params) history."""
    return np.random.default_rng(seed).normal(size=(n_samples, n_chains, n_params))
