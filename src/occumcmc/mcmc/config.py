"""
MCMC Configuration and Initialization.

This module handles setting up and validating run configurations:
- clean_config: Fill in defaults for missing keys
- configure_run: Main configuration entry point
- gen_rng_keys: Generate JAX random keys
- gen_chain_keys: Independent per-chain keys
- build_initial_states: Starting state for every chain
- check_target_shape: Dimensionality check of the target against the initial state

Configuration is split into two parts:
- user_config: Serializable config (plain Python values)
- runtime_ctx: JAX-dependent objects that exist only during execution

All config keys use lowercase with underscores (e.g., 'n_chains', 'step_scale').
"""

import jax
import jax.numpy as jnp
import jax.random as random
import numpy as np
from typing import Any, Callable, Dict, Optional, Tuple

from ..error_handling import InvalidConfiguration, validate_run_config
from .types import RunParams

import logging
logger = logging.getLogger('occumcmc')


def clean_config(mcmc_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Cleans the config and sets defaults.
    All config keys use lowercase with underscores.
    """
    mcmc_config = dict(mcmc_config)
    mcmc_config.setdefault('n_chains', 1)
    mcmc_config.setdefault('n_iterations', 1000)
    mcmc_config.setdefault('step_scale', 0.5)
    mcmc_config.setdefault('initial_states', None)
    mcmc_config.setdefault('n_params', 2)
    mcmc_config.setdefault('init_spread', 0.0)
    mcmc_config.setdefault('rng_seed', None)
    mcmc_config.setdefault('log_density', False)
    mcmc_config.setdefault('use_double', False)
    mcmc_config.setdefault('target_kwargs', {})
    return mcmc_config


def resolve_seed(rng_seed: Optional[int]) -> int:
    """Return rng_seed, or draw one from process entropy if it is None."""
    if rng_seed is not None:
        return int(rng_seed)
    seed = int(np.random.SeedSequence().generate_state(1)[0] & 0x7FFFFFFF)
    logger.info(f"No rng_seed given, drew {seed} from process entropy")
    return seed


def gen_rng_keys(rng_seed: int) -> Tuple[Any, Any]:
    """Generate JAX random keys from seed.

    Returns:
        (master_key, init_key): Tuple of JAX PRNGKeys
    """
    mkey = random.PRNGKey(rng_seed)
    master_key, init_key = random.split(mkey, 2)
    return master_key, init_key


def gen_chain_keys(master_key, n_chains: int):
    """
    One independent key per chain.

    Keys are derived with fold_in on the chain id, so a chain's random
    stream does not depend on how many other chains are run.
    """
    return jnp.stack([random.fold_in(master_key, chain_id) for chain_id in range(n_chains)])


def build_initial_states(
    initial_states,
    n_chains: int,
    n_params: int,
    init_spread: float,
    init_key,
    dtype,
) -> jnp.ndarray:
    """
    Build the (n_chains, n_params) array of starting states.

    Args:
        initial_states: None (origin), a single (n_params,) vector shared by
            every chain, or an (n_chains, n_params) array
        n_chains: Number of chains
        n_params: Dimension used when initial_states is None
        init_spread: Std dev of Normal scatter added to each start (0 = none)
        init_key: JAX key for the scatter
        dtype: Floating dtype for the states

    Raises:
        InvalidConfiguration: On shape mismatch or non-finite values
    """
    if initial_states is None:
        states = np.zeros((n_chains, n_params))
    else:
        states = np.asarray(initial_states, dtype=float)
        if states.ndim == 1:
            states = np.broadcast_to(states, (n_chains, states.shape[0]))
        elif states.ndim != 2 or states.shape[0] != n_chains:
            raise InvalidConfiguration(
                "Invalid run configuration:\n  - "
                f"initial_states must have shape (n_params,) or ({n_chains}, n_params), "
                f"got {states.shape}"
            )
        if states.shape[1] < 1:
            raise InvalidConfiguration(
                "Invalid run configuration:\n  - initial_states must have at least one parameter"
            )

    if not np.all(np.isfinite(states)):
        raise InvalidConfiguration(
            "Invalid run configuration:\n  - initial_states contains NaN or Inf values"
        )

    states = jnp.asarray(states, dtype=dtype)
    if init_spread > 0:
        states = states + init_spread * random.normal(init_key, states.shape, dtype=dtype)
    return states


# Raised when a target converts a traced state to a concrete value
_UNTRACEABLE_ERRORS = (
    jax.errors.ConcretizationTypeError,
    jax.errors.TracerArrayConversionError,
    jax.errors.TracerIntegerConversionError,
)


def check_target_shape(target_fn: Callable, initial_state: jnp.ndarray) -> None:
    """
    Verify that target_fn accepts a vector shaped like initial_state and returns a scalar.

    Only shapes are evaluated (jax.eval_shape); the target is not computed.

    Raises:
        InvalidConfiguration: If the target is not JAX-traceable, rejects the
            state's dimensionality, or returns a non-scalar
    """
    try:
        out = jax.eval_shape(target_fn, initial_state)
    except _UNTRACEABLE_ERRORS as e:
        raise InvalidConfiguration(
            "Invalid run configuration:\n  - target density is not JAX-traceable "
            "(write it with jax.numpy and jnp.where instead of math, numpy or "
            f"Python if on the state): {e}"
        ) from e
    except (TypeError, ValueError, IndexError) as e:
        raise InvalidConfiguration(
            "Invalid run configuration:\n  - target density cannot be evaluated on a "
            f"state of shape {initial_state.shape}: {e}"
        ) from e

    if getattr(out, 'shape', None) != ():
        raise InvalidConfiguration(
            "Invalid run configuration:\n  - target density must return a scalar, "
            f"got shape {getattr(out, 'shape', type(out))}"
        )


def configure_run(
    mcmc_config: Dict[str, Any],
    target_fn: Callable,
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Configure a sampling run from a config dict and target function.

    Every check runs here, before any sampling begins.

    Args:
        mcmc_config: Input configuration dict with keys like 'n_chains', 'step_scale', etc.
        target_fn: Target density (or log density) function

    Returns:
        user_config: Clean config dict with user values + resolved seed and n_params
        runtime_ctx: Dict with JAX keys, dtype, initial states and run_params

    Raises:
        InvalidConfiguration: If the configuration or target is malformed
    """
    mcmc_config = clean_config(mcmc_config)
    validate_run_config(mcmc_config)

    use_double = bool(mcmc_config['use_double'])
    if use_double:
        jax.config.update("jax_enable_x64", True)
        jnp_float_dtype = jnp.float64
    else:
        jax.config.update("jax_enable_x64", False)
        jnp_float_dtype = jnp.float32

    rng_seed = resolve_seed(mcmc_config['rng_seed'])
    master_key, init_key = gen_rng_keys(rng_seed)

    n_chains = mcmc_config['n_chains']
    initial_states = build_initial_states(
        mcmc_config['initial_states'],
        n_chains,
        mcmc_config['n_params'],
        float(mcmc_config['init_spread']),
        init_key,
        jnp_float_dtype,
    )
    check_target_shape(target_fn, initial_states[0])

    run_params = RunParams(
        N_ITERATIONS=int(mcmc_config['n_iterations']),
        LOG_DENSITY=bool(mcmc_config['log_density']),
    )

    user_config = {
        'n_chains': n_chains,
        'n_iterations': run_params.N_ITERATIONS,
        'step_scale': float(mcmc_config['step_scale']),
        'n_params': int(initial_states.shape[1]),
        'init_spread': float(mcmc_config['init_spread']),
        'rng_seed': rng_seed,
        'log_density': run_params.LOG_DENSITY,
        'use_double': use_double,
    }

    runtime_ctx = {
        'jnp_float_dtype': jnp_float_dtype,
        'master_key': master_key,
        'init_key': init_key,
        'chain_keys': gen_chain_keys(master_key, n_chains),
        'initial_states': initial_states,
        'run_params': run_params,
    }

    return user_config, runtime_ctx
