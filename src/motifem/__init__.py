"""
motifem
=======

Discovery of a single, partially conserved nucleotide motif hidden at an
unknown position in a subset of noisy sequences.  The motif is modelled as a
position frequency matrix (PFM) with Dirichlet priors on its columns; every
sequence either carries one occurrence at a uniformly random offset or is pure
background.  Inference is expectation-maximisation over the latent
presence/position of each sequence, repeated from independent random starts.

The top level modules expose the following key components:

``distributions`` / ``background``
    Column distributions, Dirichlet pseudo-count helpers and the fixed
    background model.

``model``
    The generative model shared by inference and the synthetic sampler.

``inference``
    :class:`InferenceEngine`, the EM loop over RaggedData sequences, backed
    by the compiled kernels in ``functions``.

``restarts``
    :class:`RestartController`, independent seeded restarts run through
    joblib and selected by training log-likelihood.

``evaluation``
    Similarity score against a known motif and consensus strings.

``sampler`` / ``experiment``
    Synthetic data generation and parameter sweeps.

``io``
    FASTA, PFM and MEME readers and writers.

``cli``
    Command line interface exposing discovery, sampling and sweeps.
"""

from motifem.api import discover_motif
from motifem.background import BackgroundModel
from motifem.config import MotifConfig, create_config
from motifem.errors import InvalidConfiguration, MotifError, NumericalDegenerate
from motifem.evaluation import consensus, evaluate, similarity_score
from motifem.inference import InferenceEngine, InferenceResult
from motifem.model import GenerativeModel
from motifem.restarts import RestartController, RestartOutcome
from motifem.sampler import sample_motif_data

__all__ = [
    "BackgroundModel",
    "GenerativeModel",
    "InferenceEngine",
    "InferenceResult",
    "InvalidConfiguration",
    "MotifConfig",
    "MotifError",
    "NumericalDegenerate",
    "RestartController",
    "RestartOutcome",
    "consensus",
    "create_config",
    "discover_motif",
    "evaluate",
    "sample_motif_data",
    "similarity_score",
]
