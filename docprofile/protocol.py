# protocol.py: message kinds exchanged between coordinator (rank 0) and workers
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional

import numpy as np

COORDINATOR = 0

# one counter per dictionary word; MPI.UNSIGNED on the wire
COUNTER_DTYPE = np.uint32


class MessageKind(IntEnum):
    """Values double as MPI tags."""

    DICT_SIZE = 0  # loader -> coordinator, once
    FILE_NAME = 1  # coordinator -> worker, empty payload means stop
    VECTOR = 2  # worker -> coordinator, profile of the last assigned document
    EMPTY = 3  # worker -> coordinator, initial request for work


@dataclass(frozen=True)
class Message:
    kind: MessageKind
    payload: Any = None
    source: Optional[int] = None

    def __post_init__(self):
        kind = MessageKind(self.kind)
        object.__setattr__(self, "kind", kind)
        p = self.payload
        if kind is MessageKind.DICT_SIZE:
            ok = isinstance(p, (int, np.integer)) and p >= 0
        elif kind is MessageKind.FILE_NAME:
            ok = isinstance(p, str)
        elif kind is MessageKind.VECTOR:
            ok = isinstance(p, np.ndarray) and p.ndim == 1
        else:
            ok = p is None
        if not ok:
            raise ValueError(f"Bad payload for {kind.name}: {p!r}")

    @classmethod
    def dict_size(cls, size, source=None):
        return cls(MessageKind.DICT_SIZE, int(size), source)

    @classmethod
    def file_name(cls, name):
        return cls(MessageKind.FILE_NAME, name)

    @classmethod
    def terminate(cls):
        return cls(MessageKind.FILE_NAME, "")

    @classmethod
    def vector(cls, counts, source=None):
        return cls(MessageKind.VECTOR, np.asarray(counts, dtype=COUNTER_DTYPE), source)

    @classmethod
    def empty(cls, source=None):
        return cls(MessageKind.EMPTY, None, source)

    @property
    def is_terminate(self):
        return self.kind is MessageKind.FILE_NAME and self.payload == ""
