"""
occumcmc - Toy Metropolis Sampling for Bayesian Occupancy Tutorials

Public API:
    Sampling:
        run - Single random-walk Metropolis chain over a target density
        run_chains - Independent chains (vectorized) over a callable or registered target
        SampleRecord - Read-only per-chain record of visited states
        ChainSet - Records of every chain in a run
        acceptance_probability - min(1, density ratio) with the zero-density rule
        metropolis_step - One accept/reject step

    Errors:
        InvalidConfiguration - Malformed run configuration (raised before sampling)
        NumericalInstability - Warning for non-finite density evaluations

    Registration:
        register_target - Register a named target density factory
        get_target - Retrieve a registered target
        list_targets - List all registered targets

    Summaries:
        apply_burnin - Drop leading iterations (caller-side policy)
        summarize - Mean, median, sd and credible interval per parameter
        credible_interval - Equal-tailed quantile interval
        chain_means - Post-burn-in mean of every chain
        chains_agree - Smoke test for chains settling on the same region

    Tutorial helpers:
        grid_posterior - Prior x likelihood on a grid, normalized
        prediction_curve - Predicted occupancy probability with a credible band
        simulate_detection_histories - Simulated single-season detection data

Example:
    import jax.numpy as jnp
    from occumcmc import run, summarize

    def target(state):
        return jnp.exp(-0.5 * ((state[0] - 2.0) ** 2 + (state[1] + 1.0) ** 2))

    record = run(target, initial_state=[0.0, 0.0], n_iterations=5000,
                 step_scale=0.4, random_seed=1)
    summary = summarize(record, burn_iter=500)
"""

from .error_handling import (
    InvalidConfiguration,
    NumericalInstability,
    diagnose_chains,
    print_diagnostics,
)
from .registry import register_target, get_target, list_targets
from .mcmc import (
    run,
    run_chains,
    Sample,
    SampleRecord,
    ChainSet,
    acceptance_probability,
    metropolis_step,
)
from .summary import (
    DEFAULT_BURN_FRACTION,
    apply_burnin,
    credible_interval,
    summarize,
    chain_means,
    chains_agree,
    print_summary,
)
from .targets import (
    BAD_FIT_CENTERS,
    bivariate_normal_density,
    separated_modes_density,
    occupancy_log_density,
    simulate_detection_histories,
    register_builtin_targets,
)
from .bayes import grid_posterior, grid_posterior_mean
from .prediction import prediction_curve

register_builtin_targets()
