"""
Sampling Step Tests

Tests the acceptance test, proposal and single Metropolis step in isolation:
- Acceptance monotonicity (uphill moves always accepted)
- Zero-density edge case (always accept, no division by zero)
- Non-finite densities (rejected)
- Log-density mode

Run with: pytest tests/test_sampling.py -v
"""

import numpy as np
import jax
import jax.numpy as jnp
import jax.random as random
import pytest

from occumcmc.mcmc.sampling import (
    acceptance_probability,
    propose_random_walk,
    metropolis_step,
    chain_scan,
)
from occumcmc.mcmc.types import RunParams

from conftest import standard_normal_2d


# ============================================================================
# ACCEPTANCE PROBABILITY
# ============================================================================

class TestAcceptanceProbability:

    @pytest.mark.parametrize("current, proposed", [
        (0.5, 0.5),
        (0.5, 0.9),
        (1e-20, 1.0),
        (0.3, 100.0),
    ])
    def test_uphill_is_one(self, current, proposed):
        alpha = acceptance_probability(jnp.float32(current), jnp.float32(proposed))
        assert float(alpha) == 1.0

    def test_downhill_is_ratio(self):
        alpha = acceptance_probability(jnp.float32(0.8), jnp.float32(0.2))
        np.testing.assert_allclose(float(alpha), 0.25, rtol=1e-6)

    def test_zero_current_density_always_accepts(self):
        assert float(acceptance_probability(jnp.float32(0.0), jnp.float32(0.5))) == 1.0
        # Even when the proposal is also zero there is no 0/0
        alpha = acceptance_probability(jnp.float32(0.0), jnp.float32(0.0))
        assert float(alpha) == 1.0

    def test_nan_proposal_gives_nan(self):
        alpha = acceptance_probability(jnp.float32(0.5), jnp.float32(jnp.nan))
        assert np.isnan(float(alpha))
        # u < NaN is False for every u
        assert not bool(jnp.float32(0.0) < alpha)

    def test_log_mode(self):
        alpha = acceptance_probability(jnp.float32(-1.0), jnp.float32(-3.0), log_density=True)
        np.testing.assert_allclose(float(alpha), -2.0, rtol=1e-6)
        alpha = acceptance_probability(jnp.float32(-3.0), jnp.float32(-1.0), log_density=True)
        assert float(alpha) == 0.0

    def test_log_mode_minus_inf_current_always_accepts(self):
        alpha = acceptance_probability(jnp.float32(-jnp.inf), jnp.float32(-jnp.inf), log_density=True)
        assert float(alpha) == 0.0


# ============================================================================
# PROPOSAL
# ============================================================================

class TestProposal:

    def test_shape_and_dtype(self):
        state = jnp.zeros(3, dtype=jnp.float32)
        proposal = propose_random_walk(random.PRNGKey(0), state, 0.5)
        assert proposal.shape == (3,)
        assert proposal.dtype == jnp.float32

    def test_step_scale_controls_spread(self):
        keys = random.split(random.PRNGKey(1), 4000)
        state = jnp.zeros(2)
        proposals = jax.vmap(lambda k: propose_random_walk(k, state, 0.4))(keys)
        np.testing.assert_allclose(np.std(np.asarray(proposals), axis=0), 0.4, rtol=0.1)
        np.testing.assert_allclose(np.mean(np.asarray(proposals), axis=0), 0.0, atol=0.05)


# ============================================================================
# METROPOLIS STEP
# ============================================================================

class TestMetropolisStep:

    def _step_many(self, target_fn, state, step_scale, n=500, seed=0):
        keys = random.split(random.PRNGKey(seed), n)
        value = jnp.asarray(target_fn(state), dtype=state.dtype)
        step = lambda k: metropolis_step(k, state, value, target_fn, step_scale)
        return keys, jax.vmap(step)(keys)

    def test_uphill_proposals_always_accepted(self):
        """If f(s') >= f(s), the proposal is accepted regardless of u."""
        state = jnp.array([1.5, -1.5], dtype=jnp.float32)
        keys, (next_states, next_values, accepted, _) = self._step_many(
            standard_normal_2d, state, 0.8
        )

        proposal_keys = jax.vmap(lambda k: random.split(k)[0])(keys)
        proposals = jax.vmap(lambda k: propose_random_walk(k, state, 0.8))(proposal_keys)
        uphill = np.asarray(jax.vmap(standard_normal_2d)(proposals)) >= float(standard_normal_2d(state))

        assert uphill.any() and (~uphill).any()
        assert np.all(np.asarray(accepted)[uphill])
        np.testing.assert_allclose(np.asarray(next_states)[uphill], np.asarray(proposals)[uphill], rtol=1e-6)

    def test_rejection_keeps_state(self):
        state = jnp.array([0.0, 0.0], dtype=jnp.float32)
        _, (next_states, next_values, accepted, _) = self._step_many(standard_normal_2d, state, 2.0)
        rejected = ~np.asarray(accepted)
        assert rejected.any()
        np.testing.assert_array_equal(np.asarray(next_states)[rejected], 0.0)
        np.testing.assert_allclose(np.asarray(next_values)[rejected], 1.0)

    def test_zero_density_state_always_moves(self):
        """From a zero-density state every proposal is accepted."""
        target = lambda s: jnp.where(s[0] > 50.0, 1.0, 0.0)
        state = jnp.array([-100.0, 0.0], dtype=jnp.float32)
        _, (next_states, _, accepted, proposal_finite) = self._step_many(target, state, 0.1)
        assert np.all(np.asarray(accepted))
        assert np.all(np.asarray(proposal_finite))
        assert not np.any(np.all(np.asarray(next_states) == np.asarray(state), axis=1))

    def test_zero_to_positive_density_accepted(self):
        target = lambda s: jnp.where(s[0] > 0.0, 1.0, 0.0)
        state = jnp.array([-0.01, 0.0], dtype=jnp.float32)
        keys, (next_states, next_values, accepted, _) = self._step_many(target, state, 1.0)
        into_support = np.asarray(next_states)[:, 0] > 0.0
        assert into_support.any()
        assert np.all(np.asarray(accepted))
        np.testing.assert_allclose(np.asarray(next_values)[into_support], 1.0)

    def test_nan_proposals_rejected_and_flagged(self):
        target = lambda s: jnp.where(jnp.all(s == 0.0), 1.0, jnp.nan)
        state = jnp.zeros(2, dtype=jnp.float32)
        _, (next_states, _, accepted, proposal_finite) = self._step_many(target, state, 0.5)
        assert not np.any(np.asarray(accepted))
        assert not np.any(np.asarray(proposal_finite))
        np.testing.assert_array_equal(np.asarray(next_states), 0.0)

    def test_infinite_proposals_rejected_and_flagged(self):
        target = lambda s: jnp.where(s[0] > 0.0, jnp.inf, 1.0)
        state = jnp.array([-0.05, 0.0], dtype=jnp.float32)
        _, (next_states, next_values, accepted, proposal_finite) = self._step_many(target, state, 0.5)
        infinite = ~np.asarray(proposal_finite)
        assert infinite.any()
        assert not np.any(np.asarray(accepted)[infinite])
        np.testing.assert_array_equal(np.asarray(next_states)[infinite], np.broadcast_to(np.asarray(state), (infinite.sum(), 2)))
        assert np.all(np.isfinite(np.asarray(next_values)))


# ============================================================================
# CHAIN SCAN
# ============================================================================

class TestChainScan:

    def test_output_shapes(self):
        run_params = RunParams(N_ITERATIONS=50)
        states, values, accepted, n_nonfinite = chain_scan(
            random.PRNGKey(0), jnp.zeros(2), 0.5, standard_normal_2d, run_params
        )
        assert states.shape == (50, 2)
        assert values.shape == (50,)
        assert accepted.shape == (50,)
        assert int(n_nonfinite) == 0

    def test_recorded_values_match_states(self):
        run_params = RunParams(N_ITERATIONS=100)
        states, values, _, _ = chain_scan(
            random.PRNGKey(3), jnp.zeros(2), 0.7, standard_normal_2d, run_params
        )
        np.testing.assert_allclose(
            np.asarray(values), np.asarray(jax.vmap(standard_normal_2d)(states)), rtol=1e-5
        )

    def test_flat_target_accepts_everything(self):
        run_params = RunParams(N_ITERATIONS=200)
        _, _, accepted, _ = chain_scan(
            random.PRNGKey(5), jnp.zeros(3), 1.0, lambda s: jnp.float32(1.0), run_params
        )
        assert np.all(np.asarray(accepted))

    @pytest.mark.parametrize("log_density, inside", [(False, 1.0), (True, 0.0)])
    def test_chain_never_enters_infinite_region(self, log_density, inside):
        """+inf values are counted and never become the chain state."""
        run_params = RunParams(N_ITERATIONS=200, LOG_DENSITY=log_density)
        target = lambda s: jnp.where(s[0] > 0.0, jnp.inf, inside)
        states, values, accepted, n_nonfinite = chain_scan(
            random.PRNGKey(1), jnp.array([-0.05, 0.0]), 0.5, target, run_params
        )
        assert int(n_nonfinite) > 0
        assert np.all(np.asarray(states)[:, 0] <= 0.0)
        assert np.all(np.isfinite(np.asarray(values)))
        assert np.asarray(accepted).sum() <= 200 - int(n_nonfinite)

    def test_unchanged_state_iff_rejected(self):
        run_params = RunParams(N_ITERATIONS=300)
        initial = jnp.zeros(2)
        states, _, accepted, _ = chain_scan(
            random.PRNGKey(9), initial, 1.5, standard_normal_2d, run_params
        )
        states = np.asarray(states)
        previous = np.vstack([np.asarray(initial)[None, :], states[:-1]])
        unchanged = np.all(states == previous, axis=1)
        np.testing.assert_array_equal(unchanged, ~np.asarray(accepted))
