"""
Target Registration System

This module provides a registry of named target densities that can be sampled
by name. User code registers targets via register_target(), and run_chains()
retrieves them via get_target().

Example usage:
    import jax.numpy as jnp
    from occumcmc import register_target, run_chains

    def make_ridge(width=0.5):
        def density(state):
            return jnp.exp(-0.5 * (state[0] - state[1]) ** 2 / width ** 2 - 0.5 * state[0] ** 2)
        return density

    register_target('ridge', {
        'density': make_ridge,
        'n_params': 2,
    })

    chains = run_chains('ridge', {'n_chains': 4, 'target_kwargs': {'width': 0.2}})
"""

_REGISTRY = {}


def register_target(name, config):
    """
    Register a target density with the sampler.

    Args:
        name: Unique target identifier string (e.g., 'bivariate_normal')
        config: Dict with keys:

            Required:
                density: fn(**kwargs) -> target function
                    Factory returning a JAX-traceable state -> scalar function.

            Optional:
                log_density: bool (default False)
                    True if the factory's function returns a log density.

                n_params: int
                    Dimension of the state, used when no initial state is given.

                description: str
                    One-line description for listings.

    Raises:
        ValueError: If required keys are missing or name is already registered.
    """
    if name in _REGISTRY:
        raise ValueError(f"Target '{name}' is already registered")

    required_keys = ['density']
    missing = [k for k in required_keys if k not in config]
    if missing:
        raise ValueError(f"Missing required keys for target '{name}': {missing}")

    if not callable(config['density']):
        raise ValueError(f"'density' for target '{name}' must be a callable factory")

    _REGISTRY[name] = config


def get_target(name):
    """
    Get a registered target configuration by name.

    Raises:
        KeyError: If the target is not registered
    """
    if name not in _REGISTRY:
        available = list(_REGISTRY.keys())
        raise KeyError(f"Unknown target '{name}'. Available: {available}")
    return _REGISTRY[name]


def list_targets():
    """List all registered target names."""
    return list(_REGISTRY.keys())


def clear_registry():
    """
    Clear all registered targets. Primarily for testing.
    """
    _REGISTRY.clear()
