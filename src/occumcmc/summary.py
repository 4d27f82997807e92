"""
Posterior summary utilities for sampler output.

This module provides functions for:
- Applying burn-in filtering (a caller-side policy; the sampler never trims)
- Equal-tailed credible intervals
- Pooled posterior summaries (mean, median, sd, interval bounds)
- Per-chain means and a simple agreement check between chains
"""

from typing import Any, Dict, Optional, Sequence

import numpy as np

from .error_handling import InvalidConfiguration
from .mcmc.types import ChainSet, SampleRecord

import logging
logger = logging.getLogger('occumcmc')


DEFAULT_BURN_FRACTION = 0.1


def _as_history(samples) -> np.ndarray:
    """States as an array whose first axis is iteration."""
    if isinstance(samples, ChainSet):
        return samples.history
    if isinstance(samples, SampleRecord):
        return samples.states
    return np.asarray(samples)


def apply_burnin(samples, burn_fraction: float = DEFAULT_BURN_FRACTION,
                 burn_iter: Optional[int] = None) -> np.ndarray:
    """
    Drop the first iterations of a chain (burn-in removal).

    Args:
        samples: SampleRecord, ChainSet, or array with iteration on axis 0
            (e.g. (n_iterations, n_params) or (n_iterations, n_chains, n_params))
        burn_fraction: Fraction of iterations to drop, used when burn_iter is None
        burn_iter: Exact number of leading iterations to drop

    Returns:
        Array of the kept samples (same trailing shape, fewer iterations)

    Raises:
        InvalidConfiguration: If the fraction is outside [0, 1) or every
            sample would be dropped
    """
    history = _as_history(samples)
    n_samples = history.shape[0]

    if burn_iter is None:
        if not 0.0 <= burn_fraction < 1.0:
            raise InvalidConfiguration(f"burn_fraction must be in [0, 1), got {burn_fraction}")
        burn_iter = int(np.floor(burn_fraction * n_samples))
    elif burn_iter < 0:
        raise InvalidConfiguration(f"burn_iter must be >= 0, got {burn_iter}")

    if burn_iter >= n_samples:
        raise InvalidConfiguration(
            f"burn_iter ({burn_iter}) would drop all {n_samples} samples"
        )

    logger.debug(f"Burn-in filter: dropped {burn_iter}, kept {n_samples - burn_iter} samples")
    return history[burn_iter:]


def _pooled(history: np.ndarray) -> np.ndarray:
    """Flatten (n_iterations, [n_chains,] n_params) into (n_draws, n_params)."""
    if history.ndim == 1:
        return history[:, None]
    return history.reshape(-1, history.shape[-1])


def credible_interval(samples, prob: float = 0.95):
    """
    Equal-tailed credible interval per parameter.

    Args:
        samples: Array of draws (n_draws, n_params), or anything apply_burnin accepts
        prob: Interval mass in (0, 1)

    Returns:
        (lower, upper): arrays of shape (n_params,)
    """
    if not 0.0 < prob < 1.0:
        raise InvalidConfiguration(f"prob must be in (0, 1), got {prob}")
    draws = _pooled(_as_history(samples))
    tail = (1.0 - prob) / 2.0
    lower, upper = np.quantile(draws, [tail, 1.0 - tail], axis=0)
    return lower, upper


def summarize(
    samples,
    burn_fraction: float = DEFAULT_BURN_FRACTION,
    burn_iter: Optional[int] = None,
    prob: float = 0.95,
    param_names: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """
    Posterior summary per parameter, pooling chains after burn-in.

    Returns:
        Dict with 'param_names', 'mean', 'median', 'sd', 'lower', 'upper'
        (arrays of shape (n_params,)), 'prob' and 'n_samples'
    """
    kept = apply_burnin(samples, burn_fraction=burn_fraction, burn_iter=burn_iter)
    draws = _pooled(kept)
    n_params = draws.shape[1]

    if param_names is None:
        param_names = [f"theta[{i}]" for i in range(n_params)]
    elif len(param_names) != n_params:
        raise InvalidConfiguration(
            f"Got {len(param_names)} param_names for {n_params} parameters"
        )

    lower, upper = credible_interval(draws, prob=prob)
    return {
        'param_names': list(param_names),
        'mean': np.mean(draws, axis=0),
        'median': np.median(draws, axis=0),
        'sd': np.std(draws, axis=0, ddof=1) if draws.shape[0] > 1 else np.zeros(n_params),
        'lower': lower,
        'upper': upper,
        'prob': prob,
        'n_samples': draws.shape[0],
    }


def chain_means(chain_set: ChainSet, burn_fraction: float = DEFAULT_BURN_FRACTION,
                burn_iter: Optional[int] = None) -> np.ndarray:
    """Post-burn-in mean of every chain, shape (n_chains, n_params)."""
    kept = apply_burnin(chain_set, burn_fraction=burn_fraction, burn_iter=burn_iter)
    return np.mean(kept, axis=0)


def chains_agree(chain_set: ChainSet, tolerance: float,
                 burn_fraction: float = DEFAULT_BURN_FRACTION,
                 burn_iter: Optional[int] = None) -> bool:
    """
    Basic convergence smoke test: do all chains settle on the same region?

    True iff, for every parameter, the spread (max - min) of the post-burn-in
    chain means is at most tolerance.
    """
    means = chain_means(chain_set, burn_fraction=burn_fraction, burn_iter=burn_iter)
    spread = np.max(means, axis=0) - np.min(means, axis=0)
    return bool(np.all(spread <= tolerance))


def print_summary(summary: Dict[str, Any]) -> None:
    """Log a summary produced by summarize()."""
    pct = summary['prob'] * 100
    logger.info(f"--- Posterior Summary ({summary['n_samples']} draws, {pct:g}% interval) ---")
    logger.info(f"  {'param':<12}{'mean':>10}{'median':>10}{'sd':>10}{'lower':>10}{'upper':>10}")
    for i, name in enumerate(summary['param_names']):
        logger.info(
            f"  {name:<12}{summary['mean'][i]:>10.4f}{summary['median'][i]:>10.4f}"
            f"{summary['sd'][i]:>10.4f}{summary['lower'][i]:>10.4f}{summary['upper'][i]:>10.4f}"
        )
