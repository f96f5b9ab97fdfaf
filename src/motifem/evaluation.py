"""
evaluation
==========

Comparison of an inferred PFM with a ground-truth PFM of the same length.

The similarity of one column is the inferred probability mass placed on the
symbols that dominate the truth column; the overall score is the mean over
columns and always lies in [0, 1].
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from motifem.alphabet import ALPHABET, ALPHABET_SIZE
from motifem.errors import InvalidConfiguration

DEFAULT_DOMINANCE_THRESHOLD = 0.4
_TIE_TOLERANCE = 1e-12


@dataclass(frozen=True, eq=False)
class Evaluation:
    """Similarity score, per-column scores and consensus of an inferred PFM."""

    score: float
    column_scores: np.ndarray
    consensus: str


def _check_pair(inferred: np.ndarray, truth: np.ndarray) -> None:
    if inferred.ndim != 2 or truth.ndim != 2 or inferred.shape[0] != ALPHABET_SIZE or truth.shape[0] != ALPHABET_SIZE:
        raise InvalidConfiguration(f"PFMs must have shape (4, M), got {inferred.shape} and {truth.shape}")
    if inferred.shape[1] != truth.shape[1]:
        raise InvalidConfiguration(
            f"Inferred PFM has {inferred.shape[1]} columns but the truth has {truth.shape[1]}"
        )


def dominant_symbols(truth_column: np.ndarray, threshold: Optional[float] = DEFAULT_DOMINANCE_THRESHOLD) -> np.ndarray:
    """
    Boolean mask of the symbols that dominate a truth column.

    Symbols at or above ``threshold`` are dominant.  When the threshold is None
    or no symbol reaches it, the symbols tied at the column maximum are used.
    """
    if threshold is not None:
        mask = truth_column >= threshold
        if mask.any():
            return mask
    return truth_column >= truth_column.max() - _TIE_TOLERANCE


def column_similarities(
    inferred: np.ndarray, truth: np.ndarray, dominance_threshold: Optional[float] = DEFAULT_DOMINANCE_THRESHOLD
) -> np.ndarray:
    """Inferred mass on the dominant truth symbols, per column."""
    inferred = np.asarray(inferred, dtype=np.float64)
    truth = np.asarray(truth, dtype=np.float64)
    _check_pair(inferred, truth)

    scores = np.empty(truth.shape[1], dtype=np.float64)
    for i in range(truth.shape[1]):
        mask = dominant_symbols(truth[:, i], dominance_threshold)
        scores[i] = inferred[mask, i].sum()
    return np.clip(scores, 0.0, 1.0)


def similarity_score(
    inferred: np.ndarray, truth: np.ndarray, dominance_threshold: Optional[float] = DEFAULT_DOMINANCE_THRESHOLD
) -> float:
    """Mean column similarity, in [0, 1]."""
    return float(column_similarities(inferred, truth, dominance_threshold).mean())


def consensus(pfm: np.ndarray, ambiguity_threshold: Optional[float] = None) -> str:
    """Most probable symbol per column; ``N`` where the maximum is below ``ambiguity_threshold``."""
    pfm = np.asarray(pfm)
    if pfm.ndim != 2 or pfm.shape[0] != ALPHABET_SIZE:
        raise InvalidConfiguration(f"PFM must have shape (4, M), got {pfm.shape}")
    best = np.argmax(pfm, axis=0)
    chars = []
    for i, idx in enumerate(best):
        if ambiguity_threshold is not None and pfm[idx, i] < ambiguity_threshold:
            chars.append("N")
        else:
            chars.append(ALPHABET[idx])
    return "".join(chars)


def information_content(pfm: np.ndarray) -> np.ndarray:
    """Information content of each column in bits (2 minus the column entropy)."""
    pfm = np.asarray(pfm, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        entropy = -np.where(pfm > 0, pfm * np.log2(pfm), 0.0).sum(axis=0)
    return np.log2(ALPHABET_SIZE) - entropy


def evaluate(
    inferred: np.ndarray,
    truth: np.ndarray,
    dominance_threshold: Optional[float] = DEFAULT_DOMINANCE_THRESHOLD,
    ambiguity_threshold: Optional[float] = None,
) -> Evaluation:
    """Score an inferred PFM against the truth and derive its consensus."""
    scores = column_similarities(inferred, truth, dominance_threshold)
    return Evaluation(
        score=float(scores.mean()),
        column_scores=scores,
        consensus=consensus(inferred, ambiguity_threshold),
    )
