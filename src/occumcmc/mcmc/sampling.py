"""
MCMC Sampling Functions.

Core sampling functions for the random-walk Metropolis sampler:
- acceptance_probability: min(1, density ratio) with the zero-density rule
- propose_random_walk: Symmetric Gaussian perturbation of the current state
- metropolis_step: One accept/reject step for a single chain
- chain_scan: Full run of one chain as a jax.lax.scan
- parallel_chain_scan: Jitted, vmapped version for independent chains
"""

import jax
import jax.numpy as jnp
import jax.random as random
from functools import partial

from .types import RunParams


def acceptance_probability(current_value, proposed_value, log_density=False):
    """
    Probability of accepting a proposal, min(1, f(s') / f(s)).

    A current density of exactly zero (log density of -inf) gives an
    infinite ratio, so the proposal is always accepted. NaN values are
    passed through: u < NaN is False, so such proposals are rejected.

    Args:
        current_value: Target value at the current state
        proposed_value: Target value at the proposed state
        log_density: If True, both values are log densities and the
            result is returned on the log scale, min(0, log ratio)

    Returns:
        Acceptance probability (or its log when log_density=True)
    """
    if log_density:
        at_zero = current_value == -jnp.inf
        safe_current = jnp.where(at_zero, 0.0, current_value)
        log_ratio = jnp.where(at_zero, jnp.inf, proposed_value - safe_current)
        return jnp.minimum(0.0, log_ratio)

    at_zero = current_value == 0
    safe_current = jnp.where(at_zero, 1.0, current_value)
    ratio = jnp.where(at_zero, jnp.inf, proposed_value / safe_current)
    return jnp.minimum(1.0, ratio)


def propose_random_walk(key, state, step_scale):
    """
    Random walk proposal with isotropic Gaussian noise.

    Proposal: s' ~ N(s, step_scale^2 * I)

    Symmetric, q(s'|s) = q(s|s'), so no Hastings correction is needed.
    """
    noise = random.normal(key, shape=state.shape, dtype=state.dtype)
    return state + step_scale * noise


def metropolis_step(key, state, current_value, target_fn, step_scale, log_density=False):
    """
    Perform one Metropolis step for a single chain.

    Args:
        key: JAX random key for this step
        state: Current parameter vector (n_params,)
        current_value: target_fn(state), carried to avoid re-evaluation
        target_fn: Target density (or log density) function
        step_scale: Proposal standard deviation
        log_density: Whether target_fn returns a log density

    Returns:
        next_state, next_value, accepted, proposal_finite

    Proposals with a non-finite value (NaN, or +inf) are always rejected.
    """
    proposal_key, accept_key = random.split(key)

    proposal = propose_random_walk(proposal_key, state, step_scale)
    proposed_value = jnp.asarray(target_fn(proposal), dtype=current_value.dtype)

    u = random.uniform(accept_key, shape=(), dtype=current_value.dtype)
    alpha = acceptance_probability(current_value, proposed_value, log_density)
    if log_density:
        proposal_finite = ~jnp.isnan(proposed_value) & (proposed_value != jnp.inf)
        accept = (jnp.log(u) < alpha) & proposal_finite
    else:
        proposal_finite = jnp.isfinite(proposed_value)
        accept = (u < alpha) & proposal_finite

    next_state = jnp.where(accept, proposal, state)
    next_value = jnp.where(accept, proposed_value, current_value)
    return next_state, next_value, accept, proposal_finite


def chain_scan(chain_key, initial_state, step_scale, target_fn, run_params: RunParams):
    """
    Advance one chain for run_params.N_ITERATIONS iterations.

    Each iteration uses its own key split from chain_key, so the chain
    depends only on chain_key, its initial state and the step scale.

    Returns:
        states: (n_iterations, n_params) recorded states
        values: (n_iterations,) target value at each recorded state
        accepted: (n_iterations,) accept flags
        n_nonfinite: Count of non-finite proposal evaluations
    """
    log_density = run_params.LOG_DENSITY
    step_keys = random.split(chain_key, run_params.N_ITERATIONS)
    initial_value = jnp.asarray(target_fn(initial_state), dtype=initial_state.dtype)

    def scan_body(carry, step_key):
        state, value, n_nonfinite = carry
        next_state, next_value, accept, proposal_finite = metropolis_step(
            step_key, state, value, target_fn, step_scale, log_density
        )
        n_nonfinite = n_nonfinite + (~proposal_finite).astype(jnp.int32)
        return (next_state, next_value, n_nonfinite), (next_state, next_value, accept)

    (_, _, n_nonfinite), (states, values, accepted) = jax.lax.scan(
        scan_body,
        (initial_state, initial_value, jnp.int32(0)),
        step_keys
    )
    return states, values, accepted, n_nonfinite


@partial(jax.jit, static_argnums=(3, 4))
def parallel_chain_scan(chain_keys, initial_states, step_scale, target_fn, run_params: RunParams):
    """
    Run every chain in parallel.

    Chains share only the read-only target function; each has its own key.

    Args:
        chain_keys: Per-chain random keys (n_chains, ...)
        initial_states: Starting states (n_chains, n_params)
        step_scale: Proposal standard deviation, shared across chains
        target_fn: Target density function (static)
        run_params: RunParams (static)

    Returns:
        states (n_chains, n_iterations, n_params), values, accepted,
        and n_nonfinite (n_chains,)
    """
    scan_one = partial(chain_scan, step_scale=step_scale, target_fn=target_fn, run_params=run_params)
    return jax.vmap(scan_one)(chain_keys, initial_states)
