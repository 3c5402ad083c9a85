# documents.py: enumerate documents, read the dictionary, open documents
import os
from typing import List, NamedTuple

from .errors import ConfigurationError, DictionaryReadError, DocumentReadError


class Document(NamedTuple):
    name: str
    ordinal: int


def list_documents(directory, suffixes=()) -> List[Document]:
    """
    Recursively collect regular files under `directory`.
    Directories and names are walked in sorted order so ordinals are reproducible.
    `suffixes` (lower-case, with the dot) keeps only matching files when non-empty.
    """
    if not os.path.isdir(directory):
        raise ConfigurationError(f"Document directory '{directory}' does not exist.")

    names = []
    for root, dirs, files in os.walk(directory):
        dirs.sort()
        for fname in sorted(files):
            path = os.path.join(root, fname)
            if not os.path.isfile(path):
                continue
            if suffixes and os.path.splitext(fname)[1].lower() not in suffixes:
                continue
            names.append(path)

    return [Document(name, i) for i, name in enumerate(names)]


def read_dictionary(path):
    """Returns (raw bytes, byte length)."""
    try:
        with open(path, "rb") as fh:
            data = fh.read()
    except OSError as e:
        raise DictionaryReadError(f"Cannot read dictionary '{path}': {e}") from e
    return data, len(data)


def open_document(path, encoding="utf-8"):
    try:
        return open(path, "r", encoding=encoding, errors="replace")
    except OSError as e:
        raise DocumentReadError(path, e) from e
