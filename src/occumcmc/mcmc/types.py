"""
MCMC Data Structures and Type Definitions.

This module contains the core data structures used by the sampler:
- RunParams: Immutable run parameters for JAX static arguments
- Sample: One (iteration, state, chain_id) entry of a chain
- SampleRecord: Read-only per-chain record of visited states
- ChainSet: The records of every chain in a run
"""

from dataclasses import dataclass
from typing import Iterator, NamedTuple, Tuple

import numpy as np


@dataclass(frozen=True)
class RunParams:
    """
    Immutable run parameters for JAX static argument compatibility.

    This frozen dataclass is hashable, so it can be passed as a static
    argument to the jitted chain scan.
    """
    N_ITERATIONS: int
    LOG_DENSITY: bool = False


class Sample(NamedTuple):
    iteration: int
    state: np.ndarray
    chain_id: int


def _readonly(array, dtype=None) -> np.ndarray:
    out = np.array(array, dtype=dtype, copy=True)
    out.setflags(write=False)
    return out


@dataclass(frozen=True)
class SampleRecord:
    """
    Ordered states visited by one chain, one entry per iteration.

    Entry i is the state occupied after the accept/reject decision of
    iteration i; a rejected proposal re-records the previous state. The
    record is never mutated after construction.

    Attributes:
        chain_id: Identifier of the chain that produced the record
        states: (n_iterations, n_params) visited states
        densities: (n_iterations,) target value at each recorded state
            (log density when the run used log_density=True)
        accepted: (n_iterations,) True where the proposal was accepted
        n_nonfinite: Number of proposals whose density was non-finite
    """
    chain_id: int
    states: np.ndarray
    densities: np.ndarray
    accepted: np.ndarray
    n_nonfinite: int = 0

    def __post_init__(self):
        states = _readonly(self.states)
        if states.ndim != 2:
            raise ValueError(f"states must be 2-D (n_iterations, n_params), got shape {states.shape}")
        object.__setattr__(self, 'states', states)
        object.__setattr__(self, 'densities', _readonly(self.densities))
        object.__setattr__(self, 'accepted', _readonly(self.accepted, dtype=bool))
        object.__setattr__(self, 'chain_id', int(self.chain_id))
        object.__setattr__(self, 'n_nonfinite', int(self.n_nonfinite))

    def __len__(self) -> int:
        return self.states.shape[0]

    def __getitem__(self, i) -> Sample:
        i = range(len(self))[i]
        return Sample(i, self.states[i], self.chain_id)

    def __iter__(self) -> Iterator[Sample]:
        for i in range(len(self)):
            yield Sample(i, self.states[i], self.chain_id)

    @property
    def iterations(self) -> np.ndarray:
        return np.arange(len(self))

    @property
    def n_params(self) -> int:
        return self.states.shape[1]

    @property
    def acceptance_rate(self) -> float:
        return float(np.mean(self.accepted))


@dataclass(frozen=True)
class ChainSet:
    """
    Records of all chains of one run, ordered by chain id.

    Attributes:
        records: One SampleRecord per chain
        rng_seed: Seed the run was drawn from (resolved if none was given)
        step_scale: Proposal standard deviation used by every chain
    """
    records: Tuple[SampleRecord, ...]
    rng_seed: int
    step_scale: float

    def __post_init__(self):
        object.__setattr__(self, 'records', tuple(self.records))

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, chain_id) -> SampleRecord:
        return self.records[chain_id]

    def __iter__(self) -> Iterator[SampleRecord]:
        return iter(self.records)

    @property
    def n_chains(self) -> int:
        return len(self.records)

    @property
    def n_iterations(self) -> int:
        return len(self.records[0])

    @property
    def history(self) -> np.ndarray:
        """States of all chains as (n_iterations, n_chains, n_params)."""
        return np.stack([r.states for r in self.records], axis=1)

    @property
    def acceptance_rates(self) -> np.ndarray:
        return np.array([r.acceptance_rate for r in self.records])
