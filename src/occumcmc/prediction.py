"""
Occupancy prediction curves.

Given posterior draws of a logit-linear predictor (intercept, slope),
evaluate the predicted occupancy probability over a covariate grid and
summarize it with a pointwise credible band.
"""

from typing import Dict

import jax
import jax.numpy as jnp
import numpy as np

from .error_handling import InvalidConfiguration


def prediction_curve(coef_samples, covariate, prob: float = 0.95) -> Dict[str, np.ndarray]:
    """
    Posterior predicted probability expit(b0 + b1 * x) over a covariate grid.

    Args:
        coef_samples: (n_draws, 2) draws of (intercept, slope) on the logit
            scale, e.g. burned-in sampler states
        covariate: (n_x,) covariate values
        prob: Mass of the pointwise credible band

    Returns:
        Dict with 'x', 'mean', 'median', 'lower', 'upper', each (n_x,)
    """
    coefs = np.asarray(coef_samples, dtype=float)
    x = np.asarray(covariate, dtype=float)
    if coefs.ndim != 2 or coefs.shape[1] != 2:
        raise InvalidConfiguration(
            f"coef_samples must have shape (n_draws, 2), got {coefs.shape}"
        )
    if x.ndim != 1:
        raise InvalidConfiguration(f"covariate must be 1-D, got shape {x.shape}")
    if not 0.0 < prob < 1.0:
        raise InvalidConfiguration(f"prob must be in (0, 1), got {prob}")

    # (n_draws, n_x)
    eta = jnp.asarray(coefs[:, :1]) + jnp.asarray(coefs[:, 1:]) * jnp.asarray(x)[None, :]
    curves = np.asarray(jax.nn.sigmoid(eta))

    tail = (1.0 - prob) / 2.0
    lower, median, upper = np.quantile(curves, [tail, 0.5, 1.0 - tail], axis=0)
    return {
        'x': x,
        'mean': curves.mean(axis=0),
        'median': median,
        'lower': lower,
        'upper': upper,
    }
