# coordinator.py: rank 0 hands out documents on demand and collects profiles
import logging
import time
from collections import Counter

from .errors import ProtocolError
from .protocol import Message, MessageKind
from .results import ResultMatrix

logger = logging.getLogger(__name__)


class Coordinator:
    """
    Self-scheduling distribution loop.

    Every message a worker sends (its initial EMPTY, or a VECTOR) doubles as a
    request for the next document. The worker gets the next unassigned ordinal,
    or an empty FILE_NAME once everything has been handed out.

    `transport` must provide worker_count, post_dict_size_recv(),
    wait_dict_size() (a DICT_SIZE Message), recv_any(dict_size) and send_file_name(dest, message).
    `enumerate_documents` is called once, after the dictionary size receive is posted.
    """

    def __init__(self, transport, enumerate_documents):
        self.transport = transport
        self.enumerate_documents = enumerate_documents
        self.worker_count = transport.worker_count
        self.documents = []
        self.dict_size = None
        self.assign_count = 0
        self.terminated = 0
        self.assignments = {}  # worker -> ordinal in flight
        self.per_worker = Counter()
        self.elapsed = 0.0
        self._joined = set()
        self._stopped = set()

    def _handle(self, msg, matrix):
        src = msg.source
        if src in self._stopped:
            raise ProtocolError(f"Worker {src} sent {msg.kind.name} after termination")

        if msg.kind is MessageKind.VECTOR:
            if src not in self.assignments:
                raise ProtocolError(f"Worker {src} sent a profile with no document assigned")
            matrix.record(self.assignments.pop(src), msg.payload)
        elif msg.kind is MessageKind.EMPTY:
            if src in self._joined:
                raise ProtocolError(f"Worker {src} sent a second EMPTY message")
            self._joined.add(src)
        else:
            raise ProtocolError(f"Coordinator cannot handle {msg.kind.name} from worker {src}")

        if self.assign_count < len(self.documents):
            doc = self.documents[self.assign_count]
            self.transport.send_file_name(src, Message.file_name(doc.name))
            self.assignments[src] = doc.ordinal
            self.assign_count += 1
            self.per_worker[src] += 1
            logger.debug("Assigned #%d %s to worker %d", doc.ordinal, doc.name, src)
        else:
            self.transport.send_file_name(src, Message.terminate())
            self._stopped.add(src)
            self.terminated += 1
            logger.debug("Terminated worker %d (%d/%d)", src, self.terminated, self.worker_count)

    def run(self) -> ResultMatrix:
        t0 = time.time()

        # the size arrives whenever the loader is done; enumerate meanwhile
        self.transport.post_dict_size_recv()
        self.documents = list(self.enumerate_documents())
        size_msg = self.transport.wait_dict_size()
        if size_msg.kind is not MessageKind.DICT_SIZE:
            raise ProtocolError(f"Expected DICT_SIZE, got {size_msg.kind.name}")
        self.dict_size = size_msg.payload
        logger.info(
            "%d documents, dictionary of %d words, %d workers",
            len(self.documents), self.dict_size, self.worker_count,
        )

        matrix = ResultMatrix(len(self.documents), self.dict_size)
        while self.terminated < self.worker_count:
            self._handle(self.transport.recv_any(self.dict_size), matrix)

        if not matrix.is_complete():
            raise ProtocolError(f"Run finished with missing profiles: {matrix.missing()}")

        self.elapsed = time.time() - t0
        logger.info("All %d profiles received in %.3fs", len(matrix), self.elapsed)
        return matrix

    def summary(self):
        return {
            "documents": len(self.documents),
            "dictSize": self.dict_size,
            "documentsPerWorker": [self.per_worker[w] for w in range(1, self.worker_count + 1)],
            "totalTimeTaken": self.elapsed,
        }
