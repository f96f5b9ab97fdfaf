"""Background (non-motif) nucleotide distribution."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from motifem.alphabet import ALPHABET_SIZE
from motifem.distributions import uniform_column
from motifem.errors import InvalidConfiguration
from motifem.ragged import RaggedData


@dataclass(frozen=True, eq=False)
class BackgroundModel:
    """Fixed categorical distribution used for every non-motif position.

    Attributes
    ----------
    probabilities : np.ndarray
        Probability of A, C, G and T.  All entries must be strictly positive so
        that every observed sequence has a finite likelihood.
    """

    probabilities: np.ndarray = field(default_factory=uniform_column)

    def __post_init__(self):
        probs = np.asarray(self.probabilities, dtype=np.float64)
        if probs.shape != (ALPHABET_SIZE,):
            raise InvalidConfiguration(f"Background must have {ALPHABET_SIZE} entries, got shape {probs.shape}")
        if not np.all(np.isfinite(probs)) or np.any(probs <= 0):
            raise InvalidConfiguration(f"Background probabilities must be positive, got {probs}")
        if abs(probs.sum() - 1.0) > 1e-6:
            raise InvalidConfiguration(f"Background probabilities must sum to 1, got {probs.sum():.6f}")
        probs = probs / probs.sum()
        probs.setflags(write=False)
        object.__setattr__(self, "probabilities", probs)

    @classmethod
    def uniform(cls) -> "BackgroundModel":
        return cls(uniform_column())

    @classmethod
    def from_sequences(cls, sequences: RaggedData, pseudocount: float = 1.0) -> "BackgroundModel":
        """Estimate nucleotide composition from observed sequences."""
        if pseudocount <= 0:
            raise InvalidConfiguration(f"pseudocount must be positive, got {pseudocount}")
        codes = sequences.data[(sequences.data >= 0) & (sequences.data < ALPHABET_SIZE)]
        counts = np.bincount(codes.astype(np.int64), minlength=ALPHABET_SIZE).astype(np.float64)
        counts += pseudocount
        return cls(counts / counts.sum())

    @property
    def log_probabilities(self) -> np.ndarray:
        return np.log(self.probabilities)

    def sample(self, length: int, rng: np.random.Generator) -> np.ndarray:
        """Draw ``length`` independent background symbols."""
        return rng.choice(ALPHABET_SIZE, size=length, p=self.probabilities).astype(np.int8)

    def log_likelihood(self, codes: np.ndarray) -> float:
        """Log-probability of a whole sequence under the background."""
        return float(self.log_probabilities[np.asarray(codes, dtype=np.int64)].sum())
