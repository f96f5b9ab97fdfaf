"""High-level public API for motif discovery."""

from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from motifem.background import BackgroundModel
from motifem.config import create_config
from motifem.io import read_fasta
from motifem.ragged import RaggedData, ragged_from_strings
from motifem.restarts import RestartController, RestartOutcome

SequenceRef = Union[RaggedData, str, Path, Sequence[str]]


def discover_motif(
    sequences: SequenceRef,
    motif_length: int,
    background: Optional[Union[BackgroundModel, str]] = None,
    initial_pfms: Optional[Sequence[np.ndarray]] = None,
    **config_kwargs,
) -> RestartOutcome:
    """
    Single-call entry point: resolve sequences, configure and run all restarts.

    Parameters
    ----------
    sequences : RaggedData, path or list of str
        Encoded sequences, a FASTA file, or plain ACGT strings.
    motif_length : int
        Number of motif columns.
    background : BackgroundModel or "estimate", optional
        Background distribution; "estimate" derives it from the sequences.
        Uniform when omitted.
    initial_pfms : sequence of np.ndarray, optional
        One starting PFM per restart.
    **config_kwargs
        Any other :class:`motifem.config.MotifConfig` field.
    """
    config = create_config(motif_length=motif_length, **config_kwargs)
    resolved = _resolve_sequences(sequences)
    resolved_background = _resolve_background(background, resolved)
    return RestartController(config, resolved_background).run(resolved, initial_pfms=initial_pfms)


def _resolve_sequences(source: SequenceRef) -> RaggedData:
    """Resolve a sequence source to RaggedData."""
    if isinstance(source, RaggedData):
        return source
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Sequence file not found: {path}")
        return read_fasta(path)
    if isinstance(source, Sequence) and all(isinstance(seq, str) for seq in source):
        return ragged_from_strings(source)
    raise TypeError(f"Unsupported sequence source type: {type(source)!r}")


def _resolve_background(background: Optional[Union[BackgroundModel, str]], sequences: RaggedData) -> BackgroundModel:
    """Convert a background reference to a BackgroundModel."""
    if background is None:
        return BackgroundModel.uniform()
    if isinstance(background, BackgroundModel):
        return background
    if background == "estimate":
        return BackgroundModel.from_sequences(sequences)
    raise ValueError(f"Unknown background: {background!r}. Use a BackgroundModel or 'estimate'.")
