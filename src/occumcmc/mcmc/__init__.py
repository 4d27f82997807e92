"""
MCMC Subpackage - Core random-walk Metropolis implementation.

This package contains the core sampling logic:
- backend: Public entry points (run, run_chains)
- config: Configuration, validation and initialization
- sampling: Proposal, acceptance test and chain scan functions
- types: Core data structures (RunParams, Sample, SampleRecord, ChainSet)
"""

from .types import RunParams, Sample, SampleRecord, ChainSet

from .backend import run, run_chains

from .config import (
    clean_config,
    configure_run,
    gen_rng_keys,
    gen_chain_keys,
)
from .sampling import (
    acceptance_probability,
    propose_random_walk,
    metropolis_step,
    chain_scan,
    parallel_chain_scan,
)

__all__ = [
    # Main entry points
    'run',
    'run_chains',
    # Types
    'RunParams',
    'Sample',
    'SampleRecord',
    'ChainSet',
    # Config
    'clean_config',
    'configure_run',
    'gen_rng_keys',
    'gen_chain_keys',
    # Sampling
    'acceptance_probability',
    'propose_random_walk',
    'metropolis_step',
    'chain_scan',
    'parallel_chain_scan',
]
