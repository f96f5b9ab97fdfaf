"""
Inference engine
================

Expectation-maximisation over the latent (presence x position) assignment of
every sequence, with Dirichlet posteriors over the motif columns.

One call of :meth:`InferenceEngine.run` is one restart: it owns a fresh
:class:`InferenceState`, iterates responsibility / aggregation / update passes
until the PFM stops moving or the iteration cap is hit, and returns an
immutable :class:`InferenceResult`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np
import pandas as pd

from motifem.alphabet import ALPHABET_SIZE, decode
from motifem.background import BackgroundModel
from motifem.config import MotifConfig, validate_sequences
from motifem.distributions import (
    check_pfm,
    l1_distance,
    normalize_pseudocounts,
    posterior_pseudocounts,
)
from motifem.functions import (
    background_log_likelihoods,
    expected_counts,
    hypothesis_responsibilities,
    window_log_odds,
)
from motifem.model import GenerativeModel
from motifem.ragged import RaggedData

SEED_SITE_WEIGHT = 3.0


@dataclass
class InferenceState:
    """Mutable working state of one restart."""

    pfm: np.ndarray
    responsibilities: Optional[RaggedData] = None
    absent: Optional[np.ndarray] = None
    log_likelihood: float = -np.inf
    iteration: int = 0

    def hypothesis_weights(self, index: int) -> np.ndarray:
        """Responsibilities of sequence ``index``: absent first, then each offset."""
        return np.concatenate([[self.absent[index]], self.responsibilities.get_slice(index)])


@dataclass(frozen=True, eq=False)
class InferenceResult:
    """
    Outcome of one restart.

    Attributes
    ----------
    pfm : np.ndarray
        Posterior-mean PFM of shape (4, M).
    pseudocounts : np.ndarray
        Dirichlet posterior pseudo-counts the PFM was normalised from.
    responsibilities : RaggedData
        Present-at-offset weights per sequence for the returned PFM.
    absent : np.ndarray
        Weight of the motif-absent hypothesis per sequence.
    log_likelihood : float
        Training-data log-likelihood under the returned PFM.
    converged : bool
        False when the iteration cap was reached first.
    iterations : int
        Number of update passes performed.
    log_likelihood_trace : tuple
        Log-likelihood observed at every responsibility step.
    """

    pfm: np.ndarray
    pseudocounts: np.ndarray
    responsibilities: RaggedData
    absent: np.ndarray
    log_likelihood: float
    converged: bool
    iterations: int
    log_likelihood_trace: tuple = field(default_factory=tuple)

    @property
    def motif_length(self) -> int:
        return self.pfm.shape[1]

    @property
    def presence_probabilities(self) -> np.ndarray:
        return 1.0 - self.absent

    def hypothesis_weights(self, index: int) -> np.ndarray:
        """Responsibilities of sequence ``index``: absent first, then each offset."""
        return np.concatenate([[self.absent[index]], self.responsibilities.get_slice(index)])

    def best_positions(self) -> np.ndarray:
        """Most probable motif start per sequence, given the motif is present."""
        return np.array([int(np.argmax(self.responsibilities.get_slice(i))) for i in range(self.absent.size)])

    def sites(self, sequences: RaggedData) -> pd.DataFrame:
        """Tabulate the most probable site of every sequence."""
        positions = self.best_positions()
        rows = []
        for seq_idx, pos in enumerate(positions):
            window = sequences.get_slice(seq_idx)[pos : pos + self.motif_length]
            rows.append(
                {
                    "seq_index": seq_idx,
                    "start": int(pos),
                    "end": int(pos + self.motif_length),
                    "presence": float(self.presence_probabilities[seq_idx]),
                    "position_probability": float(self.responsibilities.get_slice(seq_idx)[pos]),
                    "site": decode(window),
                }
            )
        return pd.DataFrame(rows)


class InferenceEngine:
    """
    EM solver for the single-motif generative model.

    Parameters
    ----------
    config : MotifConfig
        Inference parameters.
    background : BackgroundModel, optional
        Distribution of non-motif positions; uniform when omitted.
    """

    def __init__(self, config: MotifConfig, background: Optional[BackgroundModel] = None):
        self.config = config
        self.model = GenerativeModel(
            motif_length=config.motif_length,
            presence_prior=config.presence_prior,
            prior_strength=config.prior_strength,
            background=background or BackgroundModel.uniform(),
        )
        self.logger = logging.getLogger(__name__)

    @property
    def background(self) -> BackgroundModel:
        return self.model.background

    def e_step(self, sequences: RaggedData, pfm: np.ndarray) -> tuple[RaggedData, np.ndarray, float]:
        """Responsibilities of every hypothesis and the data log-likelihood."""
        log_bg = self.background.log_probabilities
        scores = window_log_odds(sequences, pfm, log_bg)
        present, absent, log_norm = hypothesis_responsibilities(
            scores, self.model.log_absent_prior, self.model.log_presence_prior
        )
        log_likelihood = float(background_log_likelihoods(sequences, log_bg).sum() + log_norm.sum())
        return present, absent, log_likelihood

    def m_step(self, sequences: RaggedData, responsibilities: RaggedData) -> tuple[np.ndarray, np.ndarray]:
        """Dirichlet posterior pseudo-counts and their normalised mean."""
        counts = expected_counts(sequences, responsibilities, self.config.motif_length)
        pseudocounts = posterior_pseudocounts(counts, self.config.prior_strength)
        return normalize_pseudocounts(pseudocounts), pseudocounts

    def log_likelihood(self, sequences: RaggedData, pfm: np.ndarray) -> float:
        """Training-data log-likelihood of ``pfm``."""
        return self.e_step(sequences, pfm)[2]

    def initial_pfm(self, sequences: RaggedData, rng: np.random.Generator) -> np.ndarray:
        """Draw the starting PFM according to the configured strategy."""
        if self.config.init_strategy == "sites":
            return self._seed_from_sites(sequences, rng)
        return self.model.sample_pfm(rng)

    def _seed_from_sites(self, sequences: RaggedData, rng: np.random.Generator) -> np.ndarray:
        """Seed from the best-scoring window of one randomly chosen sequence."""
        m = self.config.motif_length
        seq_idx = int(rng.integers(sequences.num_sequences))
        seq = sequences.get_slice(seq_idx)
        columns = np.arange(m)

        best_pfm = None
        best_ll = -np.inf
        for start in range(seq.size - m + 1):
            pseudocounts = np.full((ALPHABET_SIZE, m), self.config.prior_strength, dtype=np.float64)
            pseudocounts[seq[start : start + m], columns] += SEED_SITE_WEIGHT
            candidate = normalize_pseudocounts(pseudocounts)
            ll = self.log_likelihood(sequences, candidate)
            if ll > best_ll:
                best_ll = ll
                best_pfm = candidate

        self.logger.debug(f"Seeded PFM from sequence {seq_idx} (log-likelihood {best_ll:.4f})")
        return best_pfm

    def run(
        self,
        sequences: RaggedData,
        rng: Optional[np.random.Generator] = None,
        initial_pfm: Optional[np.ndarray] = None,
        callback: Optional[Callable[[InferenceState], None]] = None,
    ) -> InferenceResult:
        """
        Run EM to convergence or the iteration cap.

        Parameters
        ----------
        sequences : RaggedData
            Integer-encoded observed sequences.
        rng : np.random.Generator, optional
            Random stream for initialisation; seeded from the configuration
            when omitted.
        initial_pfm : np.ndarray, optional
            Starting PFM of shape (4, M); replaces the random draw.
        callback : callable, optional
            Called with the state after every responsibility step.

        Returns
        -------
        InferenceResult
        """
        validate_sequences(self.config, sequences)
        m = self.config.motif_length

        if initial_pfm is not None:
            initial_pfm = np.asarray(initial_pfm, dtype=np.float64)
            check_pfm(initial_pfm, m)
            pfm = normalize_pseudocounts(initial_pfm)
        else:
            if rng is None:
                rng = np.random.default_rng(self.config.random_seed)
            pfm = self.initial_pfm(sequences, rng)

        state = InferenceState(pfm=pfm)
        pseudocounts = pfm.copy()
        trace = []
        converged = False

        for iteration in range(1, self.config.iteration_cap + 1):
            state.responsibilities, state.absent, state.log_likelihood = self.e_step(sequences, state.pfm)
            trace.append(state.log_likelihood)
            if callback is not None:
                callback(state)

            new_pfm, pseudocounts = self.m_step(sequences, state.responsibilities)
            delta = l1_distance(new_pfm, state.pfm)
            state.pfm = new_pfm
            state.iteration = iteration

            self.logger.debug(f"Iteration {iteration}: log-likelihood {state.log_likelihood:.4f}, delta {delta:.3e}")

            if delta < self.config.convergence_tolerance:
                converged = True
                break

        state.responsibilities, state.absent, state.log_likelihood = self.e_step(sequences, state.pfm)
        trace.append(state.log_likelihood)
        if callback is not None:
            callback(state)

        if converged:
            self.logger.info(f"Converged after {state.iteration} iterations (log-likelihood {state.log_likelihood:.4f})")
        else:
            self.logger.warning(
                f"No convergence within {self.config.iteration_cap} iterations "
                f"(log-likelihood {state.log_likelihood:.4f})"
            )

        return InferenceResult(
            pfm=state.pfm,
            pseudocounts=pseudocounts,
            responsibilities=state.responsibilities,
            absent=state.absent,
            log_likelihood=state.log_likelihood,
            converged=converged,
            iterations=state.iteration,
            log_likelihood_trace=tuple(trace),
        )
