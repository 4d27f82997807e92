"""
Tutorial Targets - Example Densities for the Metropolis Sampler

This module contains the target densities used throughout the tutorial pages:

- bivariate_normal: Well-behaved unimodal target; chains converge and agree
- separated_modes: Narrow, far-apart modes; chains started on different modes
  never meet (the "bad fit" illustration)
- occupancy: Single-season occupancy posterior on the logit scale for a
  detection-history matrix (log density)

Each entry of BUILTIN_TARGETS is a factory returning a JAX-traceable
state -> scalar function, so targets can be sampled by name with run_chains().
"""

import numpy as np
import jax
import jax.numpy as jnp
import jax.scipy.stats as stats

from .registry import register_target, list_targets


# Four fixed points of the "bad fit" illustration
BAD_FIT_CENTERS = ((-10.0, -10.0), (-10.0, 10.0), (10.0, -10.0), (10.0, 10.0))


# ============================================================================
# BIVARIATE NORMAL
# ============================================================================

def bivariate_normal_density(mean=(2.0, -1.0), sd=1.0):
    """
    Unnormalized isotropic Normal density.

        f(x, y) = exp(-0.5 * ((x - mx)^2 + (y - my)^2) / sd^2)

    The default is centred at (2, -1) with unit variance.
    """
    mean = jnp.asarray(mean, dtype=float)

    def density(state):
        z = (state - mean) / sd
        return jnp.exp(-0.5 * jnp.sum(z ** 2))

    return density


# ============================================================================
# SEPARATED MODES ("BAD FIT")
# ============================================================================

def separated_modes_density(centers=BAD_FIT_CENTERS, width=0.1):
    """
    Equal-weight mixture of narrow isotropic Gaussians.

    With width much smaller than the distance between centres, the density
    between modes underflows and a small-step chain stays on the mode it
    started from.
    """
    centers = jnp.asarray(centers, dtype=float)

    def density(state):
        sq_dist = jnp.sum((state - centers) ** 2, axis=1)
        return jnp.mean(jnp.exp(-0.5 * sq_dist / width ** 2))

    return density


# ============================================================================
# SINGLE-SEASON OCCUPANCY
# ============================================================================

def occupancy_log_density(detections, prior_sd=2.5):
    """
    Log posterior of a single-season occupancy model.

    Model:
        z_i ~ Bernoulli(psi)                 [site occupied]
        y_ij | z_i ~ Bernoulli(z_i * p)      [detection on visit j]
        logit(psi), logit(p) ~ Normal(0, prior_sd^2)

    State is (logit psi, logit p). With z marginalized, a site with at
    least one detection contributes
        log psi + sum_j [y_ij log p + (1 - y_ij) log(1 - p)]
    and a site with no detections contributes
        log(psi (1 - p)^J + (1 - psi)).

    Args:
        detections: (n_sites, n_visits) matrix of 0/1 detections
        prior_sd: Standard deviation of the Normal priors on the logit scale

    Raises:
        ValueError: If detections is not a 2-D 0/1 matrix
    """
    y = np.asarray(detections)
    if y.ndim != 2 or y.shape[0] < 1 or y.shape[1] < 1:
        raise ValueError(f"detections must be a non-empty (n_sites, n_visits) matrix, got shape {y.shape}")
    if not np.all((y == 0) | (y == 1)):
        raise ValueError("detections must contain only 0 and 1")

    n_visits = y.shape[1]
    n_detected = jnp.asarray(y.sum(axis=1), dtype=float)
    ever_detected = jnp.asarray(y.any(axis=1))

    def log_density(state):
        log_psi = jax.nn.log_sigmoid(state[0])
        log_1m_psi = jax.nn.log_sigmoid(-state[0])
        log_p = jax.nn.log_sigmoid(state[1])
        log_1m_p = jax.nn.log_sigmoid(-state[1])

        ll_detected = log_psi + n_detected * log_p + (n_visits - n_detected) * log_1m_p
        ll_missed = jnp.logaddexp(log_psi + n_visits * log_1m_p, log_1m_psi)
        log_lik = jnp.sum(jnp.where(ever_detected, ll_detected, ll_missed))

        log_prior = jnp.sum(stats.norm.logpdf(state[:2], 0.0, prior_sd))
        return log_lik + log_prior

    return log_density


def simulate_detection_histories(n_sites, n_visits, psi, p, rng_seed=None):
    """
    Simulate a detection-history matrix from a single-season occupancy model.

    Returns:
        (n_sites, n_visits) int array of 0/1 detections
    """
    if not (0.0 <= psi <= 1.0 and 0.0 <= p <= 1.0):
        raise ValueError(f"psi and p must lie in [0, 1], got psi={psi}, p={p}")
    rng = np.random.default_rng(rng_seed)
    occupied = rng.random(n_sites) < psi
    detected = rng.random((n_sites, n_visits)) < p
    return (detected & occupied[:, None]).astype(np.int32)


BUILTIN_TARGETS = {
    'bivariate_normal': {
        'density': bivariate_normal_density,
        'n_params': 2,
        'description': 'Unit-variance bivariate Normal centred at (2, -1)',
    },
    'separated_modes': {
        'density': separated_modes_density,
        'n_params': 2,
        'description': 'Four narrow modes at (+/-10, +/-10); chains do not mix',
    },
    'occupancy': {
        'density': occupancy_log_density,
        'log_density': True,
        'n_params': 2,
        'description': 'Single-season occupancy posterior on (logit psi, logit p)',
    },
}


def register_builtin_targets():
    """Register BUILTIN_TARGETS, skipping names already present."""
    registered = set(list_targets())
    for name, config in BUILTIN_TARGETS.items():
        if name not in registered:
            register_target(name, config)
