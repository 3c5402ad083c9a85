# hashtable.py: word -> index dictionary shared by every worker
from types import MappingProxyType
from typing import Iterable, List

NOT_FOUND = -1


def tokenize(text: str) -> List[str]:
    """Split on any whitespace, newlines included. Used for dictionary and documents alike."""
    return text.split()


class HashTable:
    """
    Read-only word -> index mapping.

    Indices are handed out in first-seen order during one scan of the text, so
    two workers that build from the same bytes always agree on every index.
    """

    def __init__(self, words: Iterable[str] = ()):
        index = {}
        for word in words:
            if word not in index:
                index[word] = len(index)
        self._index = MappingProxyType(index)
        self._words = tuple(index)

    @classmethod
    def build(cls, text: bytes, encoding: str = "utf-8") -> "HashTable":
        if not text:
            return cls()
        return cls(tokenize(text.decode(encoding, errors="replace")))

    def lookup(self, word: str) -> int:
        return self._index.get(word, NOT_FOUND)

    @property
    def words(self):
        """Words in index order."""
        return self._words

    def __len__(self):
        return len(self._words)

    def __eq__(self, other):
        if not isinstance(other, HashTable):
            return NotImplemented
        return self._words == other._words

    def __repr__(self):
        return f"HashTable(size={len(self)})"


def build(text: bytes, encoding: str = "utf-8"):
    """Returns (table, size)."""
    table = HashTable.build(text, encoding)
    return table, len(table)
