"""
Generative model definition
===========================

Declarative description of how the observed sequences are assumed to arise:

* each motif column is drawn independently from Dirichlet(alpha, ..., alpha);
* each sequence draws a presence flag from Bernoulli(p);
* when present, the motif start is uniform over ``{0, ..., L - M}``;
* symbols inside ``[start, start + M)`` come from the motif column at the
  matching offset, every other symbol comes from the background.

Hypotheses for a sequence of length ``L`` are indexed as in
:func:`GenerativeModel.hypothesis_log_priors`: index 0 is "motif absent",
index ``1 + k`` is "motif present at offset k".

The helpers here evaluate one sequence at a time with plain numpy and are the
reference for the compiled kernels in :mod:`motifem.functions`; the sampler
uses the same model to generate synthetic data.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from scipy.special import logsumexp

from motifem.background import BackgroundModel
from motifem.distributions import check_pfm, sample_dirichlet_pfm
from motifem.errors import InvalidConfiguration


@dataclass(frozen=True, eq=False)
class GenerativeModel:
    """Single-motif, at-most-one-occurrence sequence model."""

    motif_length: int
    presence_prior: float = 0.8
    prior_strength: float = 1.0
    background: BackgroundModel = field(default_factory=BackgroundModel.uniform)

    def __post_init__(self):
        if self.motif_length <= 0:
            raise InvalidConfiguration(f"motif_length must be positive, got {self.motif_length}")
        if not 0.0 < self.presence_prior <= 1.0:
            raise InvalidConfiguration(f"presence_prior must be in (0, 1], got {self.presence_prior}")
        if self.prior_strength <= 0:
            raise InvalidConfiguration(f"prior_strength must be positive, got {self.prior_strength}")

    def num_positions(self, sequence_length: int) -> int:
        """Number of possible motif starts in a sequence of the given length."""
        if sequence_length < self.motif_length:
            raise InvalidConfiguration(
                f"Sequence length {sequence_length} is shorter than motif length {self.motif_length}"
            )
        return sequence_length - self.motif_length + 1

    @property
    def log_absent_prior(self) -> float:
        with np.errstate(divide="ignore"):
            return float(np.log1p(-self.presence_prior))

    @property
    def log_presence_prior(self) -> float:
        return float(np.log(self.presence_prior))

    def hypothesis_log_priors(self, sequence_length: int) -> np.ndarray:
        """Log prior of every hypothesis: absent first, then each start offset."""
        n_pos = self.num_positions(sequence_length)
        log_priors = np.empty(n_pos + 1, dtype=np.float64)
        log_priors[0] = self.log_absent_prior
        log_priors[1:] = self.log_presence_prior - np.log(n_pos)
        return log_priors

    def hypothesis_log_likelihoods(self, codes: np.ndarray, pfm: np.ndarray) -> np.ndarray:
        """Log-likelihood of one sequence under every hypothesis (priors excluded)."""
        check_pfm(pfm, self.motif_length)
        codes = np.asarray(codes, dtype=np.int64)
        n_pos = self.num_positions(codes.size)

        log_bg = self.background.log_probabilities[codes]
        with np.errstate(divide="ignore"):
            log_motif = np.log(pfm)
        total_bg = log_bg.sum()

        loglik = np.empty(n_pos + 1, dtype=np.float64)
        loglik[0] = total_bg
        columns = np.arange(self.motif_length)
        for k in range(n_pos):
            window = codes[k : k + self.motif_length]
            loglik[1 + k] = total_bg - log_bg[k : k + self.motif_length].sum() + log_motif[window, columns].sum()
        return loglik

    def log_evidence(self, codes: np.ndarray, pfm: np.ndarray) -> float:
        """Marginal log-likelihood of one sequence, summed over hypotheses."""
        joint = self.hypothesis_log_likelihoods(codes, pfm) + self.hypothesis_log_priors(len(codes))
        return float(logsumexp(joint))

    def responsibilities(self, codes: np.ndarray, pfm: np.ndarray) -> np.ndarray:
        """Posterior over hypotheses for one sequence; sums to 1."""
        joint = self.hypothesis_log_likelihoods(codes, pfm) + self.hypothesis_log_priors(len(codes))
        return np.exp(joint - logsumexp(joint))

    def sample_pfm(self, rng: np.random.Generator) -> np.ndarray:
        """Draw a motif from the Dirichlet prior."""
        return sample_dirichlet_pfm(self.prior_strength, self.motif_length, rng)

    def sample_sequence(self, pfm: np.ndarray, sequence_length: int, rng: np.random.Generator) -> tuple[np.ndarray, int]:
        """
        Draw one sequence from the model.

        Returns
        -------
        tuple
            ``(codes, position)`` where ``position`` is the motif start or -1
            when the motif is absent.
        """
        check_pfm(pfm, self.motif_length)
        n_pos = self.num_positions(sequence_length)

        if rng.random() >= self.presence_prior:
            return self.background.sample(sequence_length, rng), -1

        position = int(rng.integers(n_pos))
        codes = self.background.sample(sequence_length, rng)
        motif = pfm / pfm.sum(axis=0)
        for offset in range(self.motif_length):
            codes[position + offset] = rng.choice(motif.shape[0], p=motif[:, offset])
        return codes, position
