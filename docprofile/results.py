# results.py: coordinator-owned result matrix and the CSV writer
import numpy as np
import pandas as pd

from .errors import ProtocolError
from .protocol import COUNTER_DTYPE


class ResultMatrix:
    """ordinal -> profile vector. Each ordinal is written exactly once."""

    def __init__(self, document_count: int, dict_size: int):
        self.document_count = document_count
        self.dict_size = dict_size
        self._vectors = {}

    def record(self, ordinal: int, vector):
        if not 0 <= ordinal < self.document_count:
            raise ProtocolError(f"Ordinal {ordinal} outside [0, {self.document_count})")
        if ordinal in self._vectors:
            raise ProtocolError(f"Profile for ordinal {ordinal} received twice")
        if len(vector) != self.dict_size:
            raise ProtocolError(
                f"Profile for ordinal {ordinal} has {len(vector)} counters, expected {self.dict_size}"
            )
        # copy: the transport reuses its receive buffer
        self._vectors[ordinal] = np.array(vector, dtype=COUNTER_DTYPE, copy=True)

    def __getitem__(self, ordinal):
        return self._vectors[ordinal]

    def __len__(self):
        return len(self._vectors)

    def is_complete(self):
        return len(self._vectors) == self.document_count

    def missing(self):
        return [i for i in range(self.document_count) if i not in self._vectors]

    def as_array(self):
        """Dense (document_count, dict_size) array in ordinal order."""
        if not self.is_complete():
            raise ValueError(f"Result matrix incomplete, missing ordinals {self.missing()}")
        out = np.zeros((self.document_count, self.dict_size), dtype=COUNTER_DTYPE)
        for ordinal, vec in self._vectors.items():
            out[ordinal] = vec
        return out


def to_frame(documents, matrix: ResultMatrix) -> pd.DataFrame:
    columns = [f"t{i}" for i in range(matrix.dict_size)]
    df = pd.DataFrame(matrix.as_array(), columns=columns)
    df.insert(0, "document", [doc.name for doc in sorted(documents, key=lambda d: d.ordinal)])
    df.insert(0, "ordinal", np.arange(matrix.document_count))
    return df


def write_profiles(path, documents, matrix: ResultMatrix):
    """Persist one row per document in ordinal order."""
    if len(documents) != matrix.document_count:
        raise ValueError(
            f"{len(documents)} documents but the matrix holds {matrix.document_count} rows"
        )
    df = to_frame(documents, matrix)
    # names from os.walk may carry surrogate escapes; write them back as the original bytes
    df.to_csv(path, index=False, encoding="utf-8", errors="surrogateescape")
    return df


def read_profiles(path) -> pd.DataFrame:
    return pd.read_csv(
        path, dtype={"document": "string"}, encoding="utf-8", encoding_errors="surrogateescape"
    )
