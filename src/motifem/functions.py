import numpy as np
from numba import njit, prange

from motifem.ragged import RaggedData


@njit
def score_window(data, start, log_odds):
    """Sum of per-column log-odds for the window beginning at ``start``."""
    score = 0.0
    for j in range(log_odds.shape[1]):
        score += log_odds[data[start + j], j]
    return score


@njit(parallel=True, cache=True)
def _window_log_odds_jit(data, offsets, log_odds):
    """Compute motif-vs-background log-odds of every window in every sequence."""
    n_seq = len(offsets) - 1
    m = log_odds.shape[1]

    new_offsets = np.zeros(n_seq + 1, dtype=np.int64)
    for i in range(n_seq):
        seq_len = offsets[i + 1] - offsets[i]
        if seq_len >= m:
            new_offsets[i + 1] = seq_len - m + 1

    for i in range(n_seq):
        new_offsets[i + 1] += new_offsets[i]

    results = np.zeros(new_offsets[n_seq], dtype=np.float64)

    for i in prange(n_seq):
        start = offsets[i]
        out_start = new_offsets[i]
        n_scores = new_offsets[i + 1] - out_start
        for k in range(n_scores):
            results[out_start + k] = score_window(data, start + k, log_odds)

    return results, new_offsets


@njit(parallel=True, cache=True)
def _responsibilities_jit(scores, score_offsets, log_absent, log_present):
    """
    Normalise hypothesis weights per sequence with a stable log-sum-exp.

    ``log_absent`` may be ``-inf`` (presence prior of 1); window scores are
    always finite because every PFM entry is floored above zero.
    """
    n_seq = len(score_offsets) - 1
    resp = np.zeros(scores.size, dtype=np.float64)
    absent = np.zeros(n_seq, dtype=np.float64)
    log_norm = np.zeros(n_seq, dtype=np.float64)

    for i in prange(n_seq):
        start = score_offsets[i]
        n_pos = score_offsets[i + 1] - start
        log_prior = log_present - np.log(n_pos)

        peak = log_absent
        for k in range(n_pos):
            value = scores[start + k] + log_prior
            if value > peak:
                peak = value

        total = 0.0
        if log_absent > -np.inf:
            total += np.exp(log_absent - peak)
        for k in range(n_pos):
            total += np.exp(scores[start + k] + log_prior - peak)
        lse = peak + np.log(total)

        if log_absent > -np.inf:
            absent[i] = np.exp(log_absent - lse)
        for k in range(n_pos):
            resp[start + k] = np.exp(scores[start + k] + log_prior - lse)
        log_norm[i] = lse

    return resp, absent, log_norm


@njit(parallel=True, cache=True)
def _expected_counts_jit(data, offsets, resp, resp_offsets, m, n_symbols):
    """Per-sequence expected symbol counts for every motif column."""
    n_seq = len(offsets) - 1
    partial = np.zeros((n_seq, n_symbols, m), dtype=np.float64)

    for i in prange(n_seq):
        start = offsets[i]
        r_start = resp_offsets[i]
        n_pos = resp_offsets[i + 1] - r_start
        for k in range(n_pos):
            weight = resp[r_start + k]
            if weight == 0.0:
                continue
            for j in range(m):
                partial[i, data[start + k + j], j] += weight

    return partial


def window_log_odds(sequences: RaggedData, pfm: np.ndarray, log_background: np.ndarray) -> RaggedData:
    """Score every window of every sequence against the background."""
    log_odds = np.log(pfm) - log_background[:, None]
    data, offsets = _window_log_odds_jit(sequences.data, sequences.offsets, np.ascontiguousarray(log_odds))
    return RaggedData(data, offsets)


def hypothesis_responsibilities(
    scores: RaggedData, log_absent: float, log_present: float
) -> tuple[RaggedData, np.ndarray, np.ndarray]:
    """
    Turn window log-odds into responsibilities.

    Returns
    -------
    tuple
        ``(present, absent, log_norm)``: present-at-k weights with the same
        layout as ``scores``, the absent weight per sequence, and the per
        sequence log normaliser (log evidence relative to the background).
    """
    resp, absent, log_norm = _responsibilities_jit(scores.data, scores.offsets, log_absent, log_present)
    return RaggedData(resp, scores.offsets), absent, log_norm


def expected_counts(sequences: RaggedData, responsibilities: RaggedData, motif_length: int) -> np.ndarray:
    """Expected symbol counts per motif column, reduced over all sequences."""
    partial = _expected_counts_jit(
        sequences.data, sequences.offsets, responsibilities.data, responsibilities.offsets, motif_length, 4
    )
    return partial.sum(axis=0)


def background_log_likelihoods(sequences: RaggedData, log_background: np.ndarray) -> np.ndarray:
    """Log-likelihood of each whole sequence under the background alone."""
    per_symbol = log_background[sequences.data.astype(np.int64)]
    return np.add.reduceat(per_symbol, sequences.offsets[:-1]) if per_symbol.size else np.zeros(0)
