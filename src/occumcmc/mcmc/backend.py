"""
MCMC Backend - Main Entry Points.

This module provides the public sampling functions:

- run_chains: Multi-chain run over a target callable or registered target name
- run: Single-chain run with the plain function-call contract

The implementation is split across several modules:

- types: Data structures (RunParams, SampleRecord, ChainSet)
- config: Configuration and initialization
- sampling: Proposal, acceptance and chain scan functions
"""

import time
import warnings
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Sequence, Union

import jax
import numpy as np

from .config import configure_run
from .sampling import parallel_chain_scan
from .types import ChainSet, SampleRecord
from ..error_handling import NumericalInstability, diagnose_chains, print_diagnostics
from ..registry import get_target

import logging
logger = logging.getLogger('occumcmc')

__all__ = [
    'run',
    'run_chains',
]


def _resolve_target(target, mcmc_config: Dict[str, Any]):
    """
    Turn a target callable or registered name into (target_fn, mcmc_config).

    For a registered name, the entry's factory is called with
    mcmc_config['target_kwargs'], and its log_density / n_params apply
    unless the config sets them explicitly.
    """
    if callable(target):
        return target, mcmc_config

    entry = get_target(target)
    target_fn = entry['density'](**mcmc_config.get('target_kwargs', {}))
    mcmc_config = dict(mcmc_config)
    mcmc_config.setdefault('log_density', entry.get('log_density', False))
    if 'n_params' in entry:
        mcmc_config.setdefault('n_params', entry['n_params'])
    return target_fn, mcmc_config


def _print_acceptance_summary(chain_set: ChainSet) -> None:
    rates = chain_set.acceptance_rates
    logger.info(f"--- Acceptance Rates ({len(rates)} chain(s)) ---")
    logger.info(f"  Mean: {np.mean(rates):.1%}  Min: {np.min(rates):.1%}  Max: {np.max(rates):.1%}")


def run_chains(
    target: Union[Callable, str],
    mcmc_config: Optional[Dict[str, Any]] = None,
) -> ChainSet:
    """
    Run independent random-walk Metropolis chains over one target.

    Args:
        target: Target density function (JAX-traceable, state -> scalar), or
            the name of a registered target
        mcmc_config: Run configuration dict. Keys (all optional):
            n_chains, n_iterations, step_scale, initial_states, n_params,
            init_spread, rng_seed, log_density, use_double, target_kwargs

    Returns:
        ChainSet with one full, untrimmed SampleRecord per chain

    Raises:
        InvalidConfiguration: If the configuration is malformed (before sampling)

    Warns:
        NumericalInstability: If any chain evaluated a non-finite density
    """
    target_fn, mcmc_config = _resolve_target(target, dict(mcmc_config or {}))
    user_config, runtime_ctx = configure_run(mcmc_config, target_fn)

    n_chains = user_config['n_chains']
    n_iterations = user_config['n_iterations']
    logger.info("--- MCMC RUN ---")
    logger.info(f"  Chains: {n_chains}  Iterations: {n_iterations}  "
                f"Params: {user_config['n_params']}  step_scale: {user_config['step_scale']}  "
                f"seed: {user_config['rng_seed']}")

    start_time = time.perf_counter()
    states, values, accepted, n_nonfinite = parallel_chain_scan(
        runtime_ctx['chain_keys'],
        runtime_ctx['initial_states'],
        user_config['step_scale'],
        target_fn,
        runtime_ctx['run_params'],
    )
    states, values, accepted, n_nonfinite = jax.device_get((states, values, accepted, n_nonfinite))
    wall_time = time.perf_counter() - start_time
    logger.info(f"  Total Wall Time: {timedelta(seconds=int(wall_time))} ({wall_time:.2f}s)")

    records = tuple(
        SampleRecord(
            chain_id=chain_id,
            states=states[chain_id],
            densities=values[chain_id],
            accepted=accepted[chain_id],
            n_nonfinite=n_nonfinite[chain_id],
        )
        for chain_id in range(n_chains)
    )
    chain_set = ChainSet(
        records=records,
        rng_seed=user_config['rng_seed'],
        step_scale=user_config['step_scale'],
    )

    _print_acceptance_summary(chain_set)
    diagnostics = diagnose_chains(chain_set)
    print_diagnostics(diagnostics)

    total_nonfinite = int(np.sum(n_nonfinite))
    if total_nonfinite > 0:
        warnings.warn(
            f"{total_nonfinite} proposal(s) across {n_chains} chain(s) evaluated to a "
            f"non-finite density and were rejected",
            NumericalInstability,
            stacklevel=2,
        )

    return chain_set


def run(
    target_density: Callable,
    initial_state: Optional[Sequence[float]] = None,
    n_iterations: int = 1000,
    step_scale: float = 0.5,
    random_seed: Optional[int] = None,
    *,
    log_density: bool = False,
) -> SampleRecord:
    """
    Run a single random-walk Metropolis chain.

    Args:
        target_density: Function mapping a parameter vector to a non-negative
            unnormalized density (log density when log_density=True)
        initial_state: Starting parameter vector (default: origin in 2-D)
        n_iterations: Number of iterations (>= 1)
        step_scale: Proposal standard deviation (> 0)
        random_seed: Seed for a fully deterministic run; None draws from entropy
        log_density: Whether target_density returns a log density

    Returns:
        SampleRecord of length n_iterations (chain_id 0)

    Raises:
        InvalidConfiguration: If n_iterations < 1, step_scale <= 0, or the
            initial state does not fit the target
    """
    chain_set = run_chains(target_density, {
        'n_chains': 1,
        'n_iterations': n_iterations,
        'step_scale': step_scale,
        'initial_states': initial_state,
        'rng_seed': random_seed,
        'log_density': log_density,
    })
    return chain_set[0]
