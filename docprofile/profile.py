# profile.py: per-document profile vector
import numpy as np

from .documents import open_document
from .errors import DocumentReadError
from .hashtable import NOT_FOUND, tokenize
from .protocol import COUNTER_DTYPE


def compute(document_path, table, dict_size, encoding="utf-8"):
    """
    Count occurrences of every dictionary word in the document.
    Returns a COUNTER_DTYPE vector of length dict_size; words outside the table are ignored.
    Raises DocumentReadError if the document cannot be read.
    """
    if dict_size < len(table):
        raise ValueError(f"dict_size {dict_size} is smaller than the table ({len(table)} words)")

    profile = np.zeros(dict_size, dtype=COUNTER_DTYPE)
    with open_document(document_path, encoding) as fh:
        try:
            for line in fh:
                for word in tokenize(line):
                    idx = table.lookup(word)
                    if idx != NOT_FOUND:
                        profile[idx] += 1
        except OSError as e:
            raise DocumentReadError(document_path, e) from e
    return profile
