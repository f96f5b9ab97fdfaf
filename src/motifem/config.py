"""Immutable configuration of one motif discovery experiment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from motifem.alphabet import ALPHABET_SIZE
from motifem.errors import InvalidConfiguration
from motifem.ragged import RaggedData

INIT_STRATEGIES = ("prior", "sites")


@dataclass(frozen=True)
class MotifConfig:
    """
    Configuration for motif inference.

    Attributes
    ----------
    motif_length : int
        Number of motif columns M.
    presence_prior : float
        Prior probability p that a sequence contains the motif, in (0, 1].
    prior_strength : float
        Symmetric Dirichlet pseudo-count alpha for every motif column.
    iteration_cap : int
        Maximum number of EM updates per restart.
    convergence_tolerance : float
        Stop when the L1 change of the PFM between updates falls below this.
    restart_count : int
        Number of independent restarts.
    random_seed : int, optional
        Base seed.  When None, fresh entropy is drawn and reported.
    sequence_count : int, optional
        Expected number of sequences, checked against the data when given.
    sequence_length : int, optional
        Expected sequence length, checked against the data when given.
    init_strategy : str
        "sites" (default) seeds the initial PFM from the best window of a
        randomly chosen sequence, "prior" draws it from the Dirichlet prior.
    n_jobs : int
        Parallel jobs for restarts (joblib semantics, -1 uses all cores).
    dominance_threshold : float, optional
        Truth probability a symbol needs to count as dominant when scoring.
    """

    motif_length: int
    presence_prior: float = 0.8
    prior_strength: float = 1.0
    iteration_cap: int = 200
    convergence_tolerance: float = 1e-6
    restart_count: int = 5
    random_seed: Optional[int] = None
    sequence_count: Optional[int] = None
    sequence_length: Optional[int] = None
    init_strategy: str = "sites"
    n_jobs: int = 1
    dominance_threshold: Optional[float] = 0.4

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise InvalidConfiguration for any out-of-range parameter."""
        if self.motif_length <= 0:
            raise InvalidConfiguration(f"motif_length must be positive, got {self.motif_length}")
        if not 0.0 < self.presence_prior <= 1.0:
            raise InvalidConfiguration(f"presence_prior must be in (0, 1], got {self.presence_prior}")
        if not self.prior_strength > 0:
            raise InvalidConfiguration(f"prior_strength must be positive, got {self.prior_strength}")
        if self.iteration_cap <= 0:
            raise InvalidConfiguration(f"iteration_cap must be positive, got {self.iteration_cap}")
        if not self.convergence_tolerance > 0:
            raise InvalidConfiguration(f"convergence_tolerance must be positive, got {self.convergence_tolerance}")
        if self.restart_count <= 0:
            raise InvalidConfiguration(f"restart_count must be positive, got {self.restart_count}")
        if self.random_seed is not None and self.random_seed < 0:
            raise InvalidConfiguration(f"random_seed must be non-negative, got {self.random_seed}")
        if self.sequence_count is not None and self.sequence_count <= 0:
            raise InvalidConfiguration(f"sequence_count must be positive, got {self.sequence_count}")
        if self.sequence_length is not None:
            if self.sequence_length <= 0:
                raise InvalidConfiguration(f"sequence_length must be positive, got {self.sequence_length}")
            if self.motif_length > self.sequence_length:
                raise InvalidConfiguration(
                    f"motif_length ({self.motif_length}) exceeds sequence_length ({self.sequence_length})"
                )
        if self.init_strategy not in INIT_STRATEGIES:
            raise InvalidConfiguration(f"init_strategy must be one of {INIT_STRATEGIES}, got {self.init_strategy!r}")
        if self.n_jobs == 0:
            raise InvalidConfiguration("n_jobs must be non-zero")
        if self.dominance_threshold is not None and not 0.0 < self.dominance_threshold <= 1.0:
            raise InvalidConfiguration(f"dominance_threshold must be in (0, 1], got {self.dominance_threshold}")


def create_config(motif_length: int, **kwargs) -> MotifConfig:
    """Build a validated MotifConfig; unknown keyword arguments are rejected."""
    try:
        return MotifConfig(motif_length=motif_length, **kwargs)
    except TypeError as e:
        raise InvalidConfiguration(str(e)) from e


def validate_sequences(config: MotifConfig, sequences: RaggedData) -> None:
    """Check observed sequences against the configuration before any inference."""
    n_seq = sequences.num_sequences
    if n_seq == 0:
        raise InvalidConfiguration("At least one sequence is required")
    if config.sequence_count is not None and n_seq != config.sequence_count:
        raise InvalidConfiguration(f"Expected {config.sequence_count} sequences, got {n_seq}")

    lengths = sequences.lengths()
    shortest = int(lengths.min())
    if config.motif_length > shortest:
        raise InvalidConfiguration(
            f"motif_length ({config.motif_length}) exceeds the shortest sequence length ({shortest})"
        )
    if config.sequence_length is not None and np.any(lengths != config.sequence_length):
        raise InvalidConfiguration(f"All sequences must have length {config.sequence_length}")

    data = sequences.data
    if data.size and (data.min() < 0 or data.max() >= ALPHABET_SIZE):
        bad = int(np.count_nonzero((data < 0) | (data >= ALPHABET_SIZE)))
        raise InvalidConfiguration(f"Sequences contain {bad} symbol(s) outside the A/C/G/T alphabet")
