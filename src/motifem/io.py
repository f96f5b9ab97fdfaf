from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from motifem.alphabet import ALPHABET, decode, encode
from motifem.distributions import check_pfm
from motifem.errors import InvalidConfiguration
from motifem.ragged import RaggedData, ragged_from_list


def read_fasta(path: str | Path) -> RaggedData:
    """Read a FASTA file and return integer-encoded sequences."""
    return read_fasta_records(path)[1]


def read_fasta_records(path: str | Path) -> Tuple[List[str], RaggedData]:
    """Read a FASTA file and return record names alongside encoded sequences."""
    names: List[str] = []
    sequences: List[np.ndarray] = []

    with open(path, "r") as handle:
        current: List[str] = []
        for line in handle:
            line = line.strip()
            if not line:
                continue
            if line.startswith(">"):
                if names:
                    sequences.append(encode("".join(current)))
                    current = []
                names.append(line[1:].strip())
            else:
                if not names:
                    names.append(f"seq_{len(sequences)}")
                current.append(line)

        if names:
            sequences.append(encode("".join(current)))

    return names, ragged_from_list(sequences, dtype=np.int8)


def write_fasta(
    sequences: Union[RaggedData, Iterable[np.ndarray]], path: str | Path, names: Optional[Sequence[str]] = None
) -> None:
    """Write integer-encoded sequences to a FASTA file."""
    with open(path, "w") as out:
        for idx, seq_int in enumerate(sequences):
            name = names[idx] if names is not None else str(idx)
            out.write(f">{name}\n")
            out.write(f"{decode(seq_int)}\n")


def read_pfm(path: str | Path) -> np.ndarray:
    """Read a PFM file (one row per position, A C G T columns) as a (4, M) matrix."""
    rows = np.loadtxt(path, comments=">", ndmin=2)
    pfm = rows.T.astype(np.float64)
    sums = pfm.sum(axis=0, keepdims=True)
    if not np.all(np.isfinite(sums)) or np.any(sums <= 0):
        bad = np.flatnonzero(~(np.isfinite(sums[0]) & (sums[0] > 0))).tolist()
        raise InvalidConfiguration(f"PFM file {path} has positions {bad} without a finite positive weight")
    pfm = pfm / sums
    check_pfm(pfm)
    return pfm


def write_pfm(pfm: np.ndarray, path: str | Path, name: str = "motif") -> None:
    """Write a (4, M) PFM with a ``>name`` header and one tab separated row per position."""
    with open(path, "w") as f:
        f.write(f">{name}\n")
        np.savetxt(f, np.asarray(pfm)[:4, :].T, fmt="%.8f", delimiter="\t")


def write_meme(motifs: List[np.ndarray], names: List[str], path: str | Path, background: Optional[np.ndarray] = None) -> None:
    """Write a list of (4, M) motifs to a MEME formatted file."""
    bg = np.full(4, 0.25) if background is None else np.asarray(background)
    with open(path, "w") as out:
        out.write("MEME version 4\n\n")
        out.write(f"ALPHABET= {''.join(ALPHABET)}\n\n")
        out.write("strands: +\n\n")
        out.write("Background letter frequencies\n")
        out.write(" ".join(f"{sym} {val:.4f}" for sym, val in zip(ALPHABET, bg)) + "\n\n")
        for motif, name in zip(motifs, names):
            out.write(f"MOTIF {name}\n")
            out.write(f"letter-probability matrix: alength= 4 w= {motif.shape[1]}\n")
            for row in motif[:4].T:
                out.write(" " + " ".join(f"{val:.6f}" for val in row) + "\n")
            out.write("\n")


def read_meme(path: str | Path, index: int = 0) -> Tuple[np.ndarray, str]:
    """Read one motif from a MEME formatted file as a (4, M) matrix and its name."""
    motif_count = 0

    with open(path) as handle:
        line = handle.readline()
        while line:
            if line.startswith("MOTIF"):
                name = line.strip().split()[1]
                header = handle.readline().strip().split()
                try:
                    length = int(header[header.index("w=") + 1])
                except (ValueError, IndexError):
                    raise ValueError(f"Malformed letter-probability header for motif {name} in {path}") from None

                rows = [handle.readline().strip().split() for _ in range(length)]
                if motif_count == index:
                    return np.array(rows, dtype=np.float64).T, name
                motif_count += 1

            line = handle.readline()

    if motif_count == 0:
        raise ValueError(f"No motifs found in {path}")
    raise IndexError(f"Motif index {index} out of range. File contains {motif_count} motifs.")
