"""
Grid-approximated posteriors.

Bayes' theorem on a discrete grid: posterior weights are proportional to
prior times likelihood, normalized to sum to one. Used to show how the
prior and likelihood combine before introducing sampling.
"""

import numpy as np


def grid_posterior(grid, prior, likelihood):
    """
    Posterior weights on a parameter grid.

    Args:
        grid: (n,) parameter values
        prior: (n,) prior weights (or a callable evaluated on grid)
        likelihood: (n,) likelihood values (or a callable evaluated on grid)

    Returns:
        (n,) posterior weights summing to 1

    Raises:
        ValueError: On length mismatch, negative weights, or a product that
            is zero everywhere
    """
    grid = np.asarray(grid, dtype=float)
    prior = np.asarray(prior(grid) if callable(prior) else prior, dtype=float)
    likelihood = np.asarray(likelihood(grid) if callable(likelihood) else likelihood, dtype=float)

    if not (grid.shape == prior.shape == likelihood.shape) or grid.ndim != 1:
        raise ValueError(
            f"grid, prior and likelihood must be 1-D of equal length, got "
            f"{grid.shape}, {prior.shape}, {likelihood.shape}"
        )
    if np.any(prior < 0) or np.any(likelihood < 0):
        raise ValueError("prior and likelihood must be non-negative")

    unnormalized = prior * likelihood
    total = unnormalized.sum()
    if not total > 0:
        raise ValueError("prior * likelihood is zero everywhere on the grid")
    return unnormalized / total


def grid_posterior_mean(grid, weights):
    """Posterior mean from grid weights."""
    return float(np.sum(np.asarray(grid, dtype=float) * np.asarray(weights, dtype=float)))
