"""
Restart controller
==================

Runs the inference engine several times from independent initialisations and
keeps the run with the highest training log-likelihood.  Restart ``i`` draws
from ``numpy.random.default_rng([entropy, i])`` so every restart is
reproducible on its own and restarts can run in any order or in parallel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from motifem.background import BackgroundModel
from motifem.config import MotifConfig, validate_sequences
from motifem.inference import InferenceEngine, InferenceResult
from motifem.ragged import RaggedData


@dataclass(frozen=True, eq=False)
class RestartOutcome:
    """Best restart plus every individual result."""

    best: InferenceResult
    results: tuple
    best_index: int
    entropy: int

    @property
    def pfm(self) -> np.ndarray:
        return self.best.pfm

    @property
    def log_likelihoods(self) -> np.ndarray:
        return np.array([result.log_likelihood for result in self.results])

    def summary(self) -> pd.DataFrame:
        """One row per restart with its objective and convergence status."""
        return pd.DataFrame(
            {
                "restart": np.arange(len(self.results)),
                "log_likelihood": self.log_likelihoods,
                "converged": [result.converged for result in self.results],
                "iterations": [result.iterations for result in self.results],
                "selected": np.arange(len(self.results)) == self.best_index,
            }
        )


def restart_rng(entropy: int, restart_index: int) -> np.random.Generator:
    """Independent random stream of one restart."""
    return np.random.default_rng([entropy, restart_index])


def _run_single_restart(
    engine: InferenceEngine,
    sequences: RaggedData,
    entropy: int,
    restart_index: int,
    initial_pfm: Optional[np.ndarray],
) -> InferenceResult:
    """Worker executed once per restart."""
    return engine.run(sequences, rng=restart_rng(entropy, restart_index), initial_pfm=initial_pfm)


class RestartController:
    """
    Run ``restart_count`` independent EM restarts and select the best.

    Parameters
    ----------
    config : MotifConfig
        Inference parameters, including ``restart_count``, ``random_seed`` and
        ``n_jobs``.
    background : BackgroundModel, optional
        Background distribution passed to every engine.
    """

    def __init__(self, config: MotifConfig, background: Optional[BackgroundModel] = None):
        self.config = config
        self.engine = InferenceEngine(config, background)
        self.logger = logging.getLogger(__name__)

    def resolve_entropy(self) -> int:
        """Return the configured seed, or fresh entropy when none is set."""
        if self.config.random_seed is not None:
            return int(self.config.random_seed)
        entropy = int(np.random.SeedSequence().entropy)
        self.logger.info(f"No random seed configured; using entropy {entropy}")
        return entropy

    def run(self, sequences: RaggedData, initial_pfms: Optional[Sequence[np.ndarray]] = None) -> RestartOutcome:
        """
        Execute all restarts.

        Parameters
        ----------
        sequences : RaggedData
            Observed sequences.
        initial_pfms : sequence of np.ndarray, optional
            One starting PFM per restart, replacing the random draws.

        Returns
        -------
        RestartOutcome
        """
        validate_sequences(self.config, sequences)
        n_restarts = self.config.restart_count
        if initial_pfms is not None and len(initial_pfms) != n_restarts:
            raise ValueError(f"Expected {n_restarts} initial PFMs, got {len(initial_pfms)}")

        entropy = self.resolve_entropy()
        starts = list(initial_pfms) if initial_pfms is not None else [None] * n_restarts

        results = Parallel(n_jobs=self.config.n_jobs, backend="loky")(
            delayed(_run_single_restart)(self.engine, sequences, entropy, i, starts[i]) for i in range(n_restarts)
        )

        log_likelihoods = np.array([result.log_likelihood for result in results])
        best_index = int(np.argmax(log_likelihoods))

        if n_restarts > 1:
            spread = float(log_likelihoods.max() - log_likelihoods.min())
            self.logger.debug(f"Log-likelihood spread across restarts: {spread:.4f}")
        self.logger.info(
            f"Selected restart {best_index + 1}/{n_restarts} (log-likelihood {log_likelihoods[best_index]:.4f})"
        )

        return RestartOutcome(best=results[best_index], results=tuple(results), best_index=best_index, entropy=entropy)
