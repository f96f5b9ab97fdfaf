"""
Categorical and Dirichlet primitives over the nucleotide alphabet.

A column distribution is a float64 vector of length 4 (A, C, G, T).  A
position frequency matrix (PFM) stacks M columns into an array of shape
``(4, M)`` so that ``pfm[:, i]`` is the distribution of motif offset ``i``.
Dirichlet posteriors are stored as pseudo-count arrays of the same shape.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

from motifem.alphabet import ALPHABET_SIZE
from motifem.errors import InvalidConfiguration, NumericalDegenerate

MIN_PSEUDOCOUNT = 1e-6
SUM_TOLERANCE = 1e-9


def column_distribution(a: float, c: float, g: float, t: float) -> np.ndarray:
    """Build a normalised column distribution from (possibly unnormalised) weights."""
    weights = np.array([a, c, g, t], dtype=np.float64)
    if np.any(weights < 0) or weights.sum() <= 0:
        raise InvalidConfiguration(f"Column weights must be non-negative with a positive sum, got {weights}")
    return weights / weights.sum()


def uniform_column() -> np.ndarray:
    """Return the uniform distribution over the alphabet."""
    return np.full(ALPHABET_SIZE, 1.0 / ALPHABET_SIZE, dtype=np.float64)


def pfm_from_columns(columns: Iterable[Sequence[float]]) -> np.ndarray:
    """Stack column distributions into a ``(4, M)`` PFM."""
    stacked = [np.asarray(col, dtype=np.float64) for col in columns]
    if not stacked:
        raise InvalidConfiguration("A PFM needs at least one column")
    pfm = np.stack(stacked, axis=1)
    check_pfm(pfm)
    return pfm


def check_pfm(pfm: np.ndarray, motif_length: int | None = None, tolerance: float = 1e-6) -> None:
    """Raise InvalidConfiguration unless ``pfm`` is a valid ``(4, M)`` matrix."""
    if pfm.ndim != 2 or pfm.shape[0] != ALPHABET_SIZE:
        raise InvalidConfiguration(f"PFM must have shape (4, M), got {pfm.shape}")
    if motif_length is not None and pfm.shape[1] != motif_length:
        raise InvalidConfiguration(f"PFM has {pfm.shape[1]} columns, expected {motif_length}")
    if not np.all(np.isfinite(pfm)) or np.any(pfm < 0):
        raise InvalidConfiguration("PFM entries must be finite and non-negative")
    sums = pfm.sum(axis=0)
    if np.any(np.abs(sums - 1.0) > tolerance):
        raise InvalidConfiguration(f"PFM columns must sum to 1, got column sums {sums}")


def normalize_pseudocounts(pseudocounts: np.ndarray) -> np.ndarray:
    """
    Return the mean of a Dirichlet posterior given as pseudo-counts.

    Every pseudo-count is floored at ``MIN_PSEUDOCOUNT`` first, so the result
    has strictly positive entries and a finite logarithm.

    Raises
    ------
    NumericalDegenerate
        If a column sum is zero or not finite.
    """
    floored = np.maximum(pseudocounts, MIN_PSEUDOCOUNT)
    sums = floored.sum(axis=0)
    if not np.all(np.isfinite(sums)) or np.any(sums <= 0):
        raise NumericalDegenerate(f"Column pseudo-counts sum to {sums}; cannot normalise")
    return floored / sums


def posterior_pseudocounts(expected_counts: np.ndarray, prior_strength: float) -> np.ndarray:
    """Add the symmetric Dirichlet prior to expected symbol counts."""
    return expected_counts + prior_strength


def sample_dirichlet_pfm(prior_strength: float, motif_length: int, rng: np.random.Generator) -> np.ndarray:
    """Draw every column independently from Dirichlet(alpha, alpha, alpha, alpha)."""
    concentration = np.full(ALPHABET_SIZE, prior_strength, dtype=np.float64)
    draws = rng.dirichlet(concentration, size=motif_length).T
    return normalize_pseudocounts(draws)


def l1_distance(pfm_1: np.ndarray, pfm_2: np.ndarray) -> float:
    """Sum of absolute differences over all columns and symbols."""
    return float(np.abs(pfm_1 - pfm_2).sum())


def is_normalized(pfm: np.ndarray, tolerance: float = SUM_TOLERANCE) -> bool:
    """True if every column is non-negative and sums to 1 within ``tolerance``."""
    return bool(np.all(pfm >= 0) and np.all(np.abs(pfm.sum(axis=0) - 1.0) <= tolerance))
