# worker.py: join, share the dictionary, then profile documents on demand
import logging
from enum import Enum

from . import profile
from .documents import read_dictionary
from .errors import ProtocolError
from .hashtable import HashTable
from .protocol import Message, MessageKind

logger = logging.getLogger(__name__)


class WorkerRole(Enum):
    LOADER = "loader"  # reads the dictionary file and reports its size
    FOLLOWER = "follower"


class WorkerState(Enum):
    JOINING = "joining"
    DICT_SYNC = "dict_sync"
    READY = "ready"
    PROFILING = "profiling"
    DONE = "done"


class Worker:
    """
    One worker process.

    `transport` must provide send_ready(), broadcast_dictionary(data),
    send_dict_size(message), recv_file_name(), send_vector(v) and finish().
    Only the LOADER touches the dictionary file; every worker builds its
    table from the broadcast bytes.
    """

    def __init__(self, transport, role: WorkerRole, dictionary_path=None, encoding="utf-8"):
        if role is WorkerRole.LOADER and not dictionary_path:
            raise ValueError("The loader needs a dictionary path")
        self.transport = transport
        self.role = role
        self.dictionary_path = dictionary_path
        self.encoding = encoding
        self.state = WorkerState.JOINING
        self.table = None
        self.dict_size = 0
        self.profiled = 0

    def _set_state(self, state):
        logger.debug("%s -> %s", self.state.name, state.name)
        self.state = state

    def _sync_dictionary(self):
        self._set_state(WorkerState.DICT_SYNC)
        data = None
        if self.role is WorkerRole.LOADER:
            data, length = read_dictionary(self.dictionary_path)
            logger.info("Read %d dictionary bytes from %s", length, self.dictionary_path)

        data = self.transport.broadcast_dictionary(data)
        self.table = HashTable.build(data, self.encoding)
        self.dict_size = len(self.table)
        logger.info("Dictionary ready (%s, %d words)", self.role.value, self.dict_size)

        if self.role is WorkerRole.LOADER:
            self.transport.send_dict_size(Message.dict_size(self.dict_size))

    def run(self):
        """Runs to completion. Returns the number of documents profiled."""
        self.transport.send_ready()
        self._sync_dictionary()

        while True:
            self._set_state(WorkerState.READY)
            msg = self.transport.recv_file_name()
            if msg.kind is not MessageKind.FILE_NAME:
                raise ProtocolError(f"Worker expected FILE_NAME, got {msg.kind.name}")
            if msg.is_terminate:
                break

            self._set_state(WorkerState.PROFILING)
            logger.debug("Profiling %s", msg.payload)
            vector = profile.compute(msg.payload, self.table, self.dict_size, self.encoding)
            self.transport.send_vector(vector)
            self.profiled += 1

        self._set_state(WorkerState.DONE)
        self.transport.finish()
        logger.info("Done after %d documents", self.profiled)
        return self.profiled
