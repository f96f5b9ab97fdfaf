"""Nucleotide alphabet and integer encoding shared by the whole package."""

from typing import Iterable

import numpy as np

ALPHABET = ("A", "C", "G", "T")
ALPHABET_SIZE = len(ALPHABET)
UNKNOWN_CODE = 4

_DECODER = np.array(["A", "C", "G", "T", "N"], dtype="U1")


def _build_translation_table() -> bytes:
    """Map every byte to its code; anything outside ACGTacgt becomes UNKNOWN_CODE."""
    table = bytearray([UNKNOWN_CODE] * 256)
    for char, code in zip(b"ACGTacgt", [0, 1, 2, 3] * 2):
        table[char] = code
    return bytes(table)


_TRANSLATION_TABLE = _build_translation_table()


def encode(sequence: str) -> np.ndarray:
    """Convert an ACGT string to an int8 code array."""
    raw = sequence.encode("ascii", errors="replace")
    return np.frombuffer(raw.translate(_TRANSLATION_TABLE), dtype=np.int8).copy()


def decode(codes: Iterable[int]) -> str:
    """Convert an integer-encoded sequence back to an ACGT string."""
    safe = np.clip(np.asarray(codes, dtype=np.int64), 0, UNKNOWN_CODE)
    return "".join(_DECODER[safe])


def symbol_index(symbol: str) -> int:
    """Return the code of a single nucleotide symbol."""
    try:
        return ALPHABET.index(symbol.upper())
    except ValueError:
        raise ValueError(f"Unknown nucleotide symbol: {symbol!r}. Expected one of {ALPHABET}") from None
