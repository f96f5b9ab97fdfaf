"""Synthetic sequences drawn from the generative model with a known motif."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from motifem.background import BackgroundModel
from motifem.distributions import check_pfm
from motifem.errors import InvalidConfiguration
from motifem.model import GenerativeModel
from motifem.ragged import RaggedData, ragged_from_list

SeedLike = Union[None, int, np.random.Generator]


@dataclass(frozen=True, eq=False)
class SampledData:
    """Sampled sequences together with the ground truth that produced them."""

    sequences: RaggedData
    positions: np.ndarray
    pfm: np.ndarray

    @property
    def presence(self) -> np.ndarray:
        return self.positions >= 0


def sample_motif_data(
    sequence_count: int,
    sequence_length: int,
    true_pfm: np.ndarray,
    presence_prior: float = 0.8,
    background: Optional[BackgroundModel] = None,
    seed: SeedLike = None,
) -> SampledData:
    """
    Generate sequences with the true motif planted in a random subset.

    Parameters
    ----------
    sequence_count : int
        Number of sequences N.
    sequence_length : int
        Length L of every sequence.
    true_pfm : np.ndarray
        Ground-truth motif of shape (4, M).
    presence_prior : float
        Probability that a sequence carries the motif.
    background : BackgroundModel, optional
        Distribution of non-motif positions; uniform when omitted.
    seed : int or np.random.Generator, optional
        Seed or generator for reproducible sampling.

    Returns
    -------
    SampledData
        Sequences, motif start per sequence (-1 when absent) and the truth.
    """
    true_pfm = np.asarray(true_pfm, dtype=np.float64)
    check_pfm(true_pfm)
    if sequence_count <= 0:
        raise InvalidConfiguration(f"sequence_count must be positive, got {sequence_count}")
    if sequence_length < true_pfm.shape[1]:
        raise InvalidConfiguration(
            f"sequence_length ({sequence_length}) is shorter than the motif ({true_pfm.shape[1]})"
        )

    model = GenerativeModel(
        motif_length=true_pfm.shape[1],
        presence_prior=presence_prior,
        background=background or BackgroundModel.uniform(),
    )
    rng = seed if isinstance(seed, np.random.Generator) else np.random.default_rng(seed)

    sequences = []
    positions = np.empty(sequence_count, dtype=np.int64)
    for i in range(sequence_count):
        codes, positions[i] = model.sample_sequence(true_pfm, sequence_length, rng)
        sequences.append(codes)

    return SampledData(sequences=ragged_from_list(sequences, dtype=np.int8), positions=positions, pfm=true_pfm)
