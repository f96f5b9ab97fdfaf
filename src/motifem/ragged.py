from typing import Iterable, List

import numpy as np

from motifem.alphabet import decode, encode


class RaggedData:
    """
    Variable-length rows stored as one flat array plus offsets.

    Row ``i`` occupies ``data[offsets[i]:offsets[i + 1]]``.  Observed
    sequences are int8 symbol codes; the E-step reuses the same layout for
    per-window log-odds and responsibilities, where a sequence of length
    ``L_i`` owns ``L_i - M + 1`` entries.  Numba kernels take ``data`` and
    ``offsets`` directly.
    """

    def __init__(self, data: np.ndarray, offsets: np.ndarray):
        self.data = data
        self.offsets = offsets

    def get_length(self, i: int) -> int:
        """Number of symbols (or windows) in row ``i``."""
        return int(self.offsets[i + 1] - self.offsets[i])

    def get_slice(self, i: int) -> np.ndarray:
        """Row ``i`` as a view into ``data``; writes go through to the store."""
        return self.data[self.offsets[i] : self.offsets[i + 1]]

    def lengths(self) -> np.ndarray:
        """Per-row lengths, used to check sequences against the motif length."""
        return np.diff(self.offsets)

    def total_elements(self) -> int:
        return self.data.size

    @property
    def num_sequences(self) -> int:
        return self.offsets.size - 1

    def __len__(self) -> int:
        return self.num_sequences

    def __iter__(self):
        for i in range(self.num_sequences):
            yield self.get_slice(i)


def ragged_from_list(data_list: List[np.ndarray], dtype=None) -> RaggedData:
    """Pack encoded sequences into one store; an empty list gives zero int8 rows."""
    if len(data_list) == 0:
        return RaggedData(np.empty(0, dtype=dtype if dtype else np.int8), np.zeros(1, dtype=np.int64))

    if dtype is None:
        dtype = data_list[0].dtype

    offsets = np.zeros(len(data_list) + 1, dtype=np.int64)
    offsets[1:] = np.cumsum([len(item) for item in data_list])
    data = np.concatenate([np.asarray(item, dtype=dtype) for item in data_list])

    return RaggedData(data, offsets)


def ragged_from_strings(sequences: Iterable[str]) -> RaggedData:
    """Encode ACGT strings into int8 RaggedData."""
    return ragged_from_list([encode(seq) for seq in sequences], dtype=np.int8)


def ragged_to_strings(sequences: RaggedData) -> List[str]:
    """Decode int8 RaggedData back to ACGT strings."""
    return [decode(seq) for seq in sequences]
