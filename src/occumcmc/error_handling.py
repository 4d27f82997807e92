"""
Error Handling and Validation Utilities for the Metropolis Sampler

This module provides the two error conditions of the sampler, run
configuration validation, and post-run diagnostic tools.

- InvalidConfiguration: malformed run configuration, raised before sampling
- NumericalInstability: warning category for non-finite density evaluations
"""

import math
import numbers
from typing import Any, Dict

import numpy as np

import logging
logger = logging.getLogger('occumcmc')


class InvalidConfiguration(ValueError):
    """Run configuration is malformed; raised before any sampling begins."""


class NumericalInstability(RuntimeWarning):
    """A chain evaluated the target density to a non-finite value."""


def _is_integer(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def validate_run_config(mcmc_config: Dict[str, Any]) -> None:
    """
    Validates that a run configuration is sensible.

    All problems are collected and reported together.

    Args:
        mcmc_config: Configuration dictionary (lowercase keys)

    Raises:
        InvalidConfiguration: If configuration is invalid
    """
    errors = []

    if 'n_iterations' in mcmc_config:
        n_iterations = mcmc_config['n_iterations']
        if not _is_integer(n_iterations):
            errors.append(f"n_iterations must be an integer, got {n_iterations!r}")
        elif n_iterations < 1:
            errors.append(f"n_iterations must be >= 1, got {n_iterations}")

    if 'n_chains' in mcmc_config:
        n_chains = mcmc_config['n_chains']
        if not _is_integer(n_chains):
            errors.append(f"n_chains must be an integer, got {n_chains!r}")
        elif n_chains < 1:
            errors.append(f"n_chains must be >= 1, got {n_chains}")

    if 'n_params' in mcmc_config:
        n_params = mcmc_config['n_params']
        if not _is_integer(n_params) or n_params < 1:
            errors.append(f"n_params must be an integer >= 1, got {n_params!r}")

    if 'step_scale' in mcmc_config:
        step_scale = mcmc_config['step_scale']
        if not isinstance(step_scale, numbers.Real) or isinstance(step_scale, bool):
            errors.append(f"step_scale must be a real number, got {step_scale!r}")
        elif not math.isfinite(step_scale) or step_scale <= 0:
            errors.append(f"step_scale must be a finite value > 0, got {step_scale}")

    if 'init_spread' in mcmc_config:
        init_spread = mcmc_config['init_spread']
        if not isinstance(init_spread, numbers.Real) or not init_spread >= 0:
            errors.append(f"init_spread must be >= 0, got {init_spread!r}")

    if mcmc_config.get('rng_seed') is not None:
        rng_seed = mcmc_config['rng_seed']
        if not _is_integer(rng_seed):
            errors.append(f"rng_seed must be an integer or None, got {rng_seed!r}")
        elif not -2 ** 63 <= rng_seed < 2 ** 63:
            errors.append(f"rng_seed must fit in a signed 64-bit integer, got {rng_seed}")

    if errors:
        raise InvalidConfiguration("Invalid run configuration:\n  - " + "\n  - ".join(errors))


def diagnose_chains(chain_set, diagnostics: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Analyzes a finished multi-chain run to identify common pathologies.

    Args:
        chain_set: ChainSet returned by run_chains
        diagnostics: Existing diagnostics dict; its other keys are kept, but
            'issues', 'warnings' and 'info' are replaced with fresh lists

    Returns:
        diagnostics: Dictionary with issues, warnings, and info
    """
    diagnostics = (diagnostics or {}) | {
        'issues': [],
        'warnings': [],
        'info': []
    }

    history = chain_set.history

    if not np.all(np.isfinite(history)):
        diagnostics['issues'].append(
            "History contains NaN or Inf values - sampler became unstable"
        )

    n_nonfinite = sum(record.n_nonfinite for record in chain_set)
    if n_nonfinite > 0:
        diagnostics['issues'].append(
            f"{n_nonfinite} proposal(s) evaluated to a non-finite density and were rejected"
        )

    rates = chain_set.acceptance_rates
    stuck = [r.chain_id for r in chain_set if r.accepted.sum() == 0]
    if stuck:
        diagnostics['warnings'].append(
            f"{len(stuck)} chain(s) never accepted a proposal (stalled): {stuck}"
        )

    low = [r.chain_id for r in chain_set if 0 < r.acceptance_rate < 0.10]
    if low:
        diagnostics['warnings'].append(
            f"{len(low)} chain(s) have acceptance rate < 10% - consider a smaller step_scale"
        )

    diagnostics['info'].append(f"Total samples: {history.shape[0] * history.shape[1]}")
    diagnostics['info'].append(f"Number of chains: {history.shape[1]}")
    diagnostics['info'].append(f"Number of parameters: {history.shape[2]}")
    diagnostics['info'].append(f"Mean acceptance rate: {np.mean(rates):.1%}")

    return diagnostics


def print_diagnostics(diagnostics: Dict[str, Any]) -> None:
    """Log diagnostics from diagnose_chains."""
    if diagnostics['issues']:
        logger.error("[ERROR] ISSUES:")
        for issue in diagnostics['issues']:
            logger.error(f"  - {issue}")

    if diagnostics['warnings']:
        logger.warning("[WARN] WARNINGS:")
        for warning in diagnostics['warnings']:
            logger.warning(f"  - {warning}")

    if diagnostics['info']:
        logger.info("[INFO] INFO:")
        for info in diagnostics['info']:
            logger.info(f"  - {info}")

    if not diagnostics['issues'] and not diagnostics['warnings']:
        logger.info("[OK] No issues detected")
