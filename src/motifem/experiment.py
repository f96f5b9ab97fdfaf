"""
Experiment harness: sample synthetic data with a known motif, run discovery
and score the result.  Sweeps vary sequence length or sequence count and
return one pandas row per setting.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from motifem.background import BackgroundModel
from motifem.config import create_config
from motifem.distributions import column_distribution, pfm_from_columns
from motifem.evaluation import DEFAULT_DOMINANCE_THRESHOLD, evaluate
from motifem.restarts import RestartController
from motifem.sampler import sample_motif_data

# A, C, G/T, noise, T, G, A, A/C
DEFAULT_TRUE_MOTIF = pfm_from_columns(
    [
        column_distribution(a=0.8, c=0.1, g=0.05, t=0.05),
        column_distribution(a=0.0, c=0.9, g=0.05, t=0.05),
        column_distribution(a=0.0, c=0.0, g=0.5, t=0.5),
        column_distribution(a=0.25, c=0.25, g=0.25, t=0.25),
        column_distribution(a=0.1, c=0.1, g=0.1, t=0.7),
        column_distribution(a=0.0, c=0.0, g=0.9, t=0.1),
        column_distribution(a=0.9, c=0.05, g=0.0, t=0.05),
        column_distribution(a=0.5, c=0.5, g=0.0, t=0.0),
    ]
)

DEFAULT_LENGTHS = (25, 100, 500, 1000)
DEFAULT_COUNTS = (5, 10, 20, 50)
FIXED_COUNT = 30
FIXED_LENGTH = 50


@dataclass(frozen=True)
class ExperimentResult:
    """Summary of one sample-discover-evaluate run."""

    sequence_count: int
    sequence_length: int
    score: float
    consensus: str
    log_likelihood: float
    converged: bool
    iterations: int
    seed: Optional[int]


def _split_seed(seed: Optional[int]) -> tuple[np.random.Generator, int]:
    """Independent streams for data sampling and inference from one base seed."""
    seq = np.random.SeedSequence(seed)
    data_seq, inference_seq = seq.spawn(2)
    return np.random.default_rng(data_seq), int(inference_seq.generate_state(1)[0])


def run_experiment(
    sequence_count: int,
    sequence_length: int,
    true_pfm: np.ndarray = DEFAULT_TRUE_MOTIF,
    presence_prior: float = 0.8,
    seed: Optional[int] = None,
    background: Optional[BackgroundModel] = None,
    dominance_threshold: Optional[float] = DEFAULT_DOMINANCE_THRESHOLD,
    **config_kwargs,
) -> ExperimentResult:
    """
    Sample data from ``true_pfm``, infer the motif and score it.

    Extra keyword arguments are forwarded to :func:`motifem.config.create_config`.
    """
    logger = logging.getLogger(__name__)
    data_rng, inference_seed = _split_seed(seed)

    sampled = sample_motif_data(
        sequence_count,
        sequence_length,
        true_pfm,
        presence_prior=presence_prior,
        background=background,
        seed=data_rng,
    )
    config = create_config(
        motif_length=true_pfm.shape[1],
        presence_prior=presence_prior,
        sequence_count=sequence_count,
        sequence_length=sequence_length,
        random_seed=inference_seed,
        dominance_threshold=dominance_threshold,
        **config_kwargs,
    )
    outcome = RestartController(config, background).run(sampled.sequences)
    evaluation = evaluate(outcome.pfm, true_pfm, dominance_threshold=config.dominance_threshold)

    logger.info(
        f"N={sequence_count} L={sequence_length}: score {evaluation.score:.2f}, consensus {evaluation.consensus}"
    )

    return ExperimentResult(
        sequence_count=sequence_count,
        sequence_length=sequence_length,
        score=evaluation.score,
        consensus=evaluation.consensus,
        log_likelihood=outcome.best.log_likelihood,
        converged=outcome.best.converged,
        iterations=outcome.best.iterations,
        seed=seed,
    )


def sweep(
    vary: str,
    values: Optional[Iterable[int]] = None,
    fixed: Optional[int] = None,
    seed: Optional[int] = None,
    **kwargs,
) -> pd.DataFrame:
    """
    Run one experiment per value of sequence length or sequence count.

    Parameters
    ----------
    vary : str
        "length" (sequence count held at ``fixed``, default 30) or "count"
        (sequence length held at ``fixed``, default 50).
    values : iterable of int, optional
        Settings to try; defaults to 25, 100, 500, 1000 for lengths and
        5, 10, 20, 50 for counts.
    fixed : int, optional
        Value of the parameter that is not varied.
    seed : int, optional
        Base seed; setting ``i`` uses ``seed + i``.
    **kwargs
        Forwarded to :func:`run_experiment`.

    Returns
    -------
    pd.DataFrame
        One row per setting with the fields of :class:`ExperimentResult`.
    """
    if vary == "length":
        values = DEFAULT_LENGTHS if values is None else values
        fixed = FIXED_COUNT if fixed is None else fixed
    elif vary == "count":
        values = DEFAULT_COUNTS if values is None else values
        fixed = FIXED_LENGTH if fixed is None else fixed
    else:
        raise ValueError(f"vary must be 'length' or 'count', got {vary!r}")

    rows = []
    for i, value in enumerate(values):
        run_seed = None if seed is None else seed + i
        if vary == "length":
            result = run_experiment(fixed, int(value), seed=run_seed, **kwargs)
        else:
            result = run_experiment(int(value), fixed, seed=run_seed, **kwargs)
        rows.append(asdict(result))

    return pd.DataFrame(rows)
