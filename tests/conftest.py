"""
Pytest configuration and common fixtures for motifem tests.
"""
import tempfile
from pathlib import Path

import numpy as np
import pytest

from motifem.experiment import DEFAULT_TRUE_MOTIF
from motifem.sampler import sample_motif_data


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def true_motif():
    """The 8 column demo motif (A, C, G/T, noise, T, G, A, A/C)."""
    return DEFAULT_TRUE_MOTIF.copy()


@pytest.fixture
def sampled_data(true_motif):
    """Small synthetic data set with the demo motif planted."""
    return sample_motif_data(20, 40, true_motif, presence_prior=0.8, seed=7)


@pytest.fixture
def rng():
    return np.random.default_rng(2024)
