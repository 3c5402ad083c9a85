# tests/conftest.py: in-memory transports so coordinator and workers run without MPI
import queue
import random
import threading

import pytest

from docprofile.documents import Document
from docprofile.protocol import Message, MessageKind

TIMEOUT = 10


class SimulatedCoordinatorTransport:
    """
    Plays W well-behaved workers against a Coordinator in a single thread.

    Each worker has at most one message in flight; recv_any picks one of the
    in-flight messages at random (seeded), so arrival order across workers varies.
    `profile_for(name)` gives the vector a worker returns for a document.
    """

    def __init__(self, worker_count, dict_size, profile_for, seed=0):
        self.worker_count = worker_count
        self.dict_size = dict_size
        self.profile_for = profile_for
        self.rng = random.Random(seed)
        self.in_flight = [Message.empty(source=w) for w in range(1, worker_count + 1)]
        self.sent = []  # (dest, message)
        self.events = []
        self.processed_by = {}  # document name -> worker

    def post_dict_size_recv(self):
        self.events.append("post_dict_size_recv")

    def wait_dict_size(self):
        self.events.append("wait_dict_size")
        return Message.dict_size(self.dict_size, source=1)

    def recv_any(self, dict_size):
        assert self.in_flight, "coordinator waits on a message nobody will send"
        return self.in_flight.pop(self.rng.randrange(len(self.in_flight)))

    def send_file_name(self, dest, message):
        self.sent.append((dest, message))
        if not message.is_terminate:
            self.processed_by[message.payload] = dest
            self.in_flight.append(Message.vector(self.profile_for(message.payload), source=dest))

    def terminations(self):
        return [dest for dest, msg in self.sent if msg.is_terminate]


class ScriptedCoordinatorTransport:
    """Feeds the coordinator a fixed list of messages, for protocol-violation tests."""

    def __init__(self, worker_count, dict_size, messages):
        self.worker_count = worker_count
        self.dict_size = dict_size
        self.messages = list(messages)
        self.sent = []

    def post_dict_size_recv(self):
        pass

    def wait_dict_size(self):
        return Message.dict_size(self.dict_size, source=1)

    def recv_any(self, dict_size):
        return self.messages.pop(0)

    def send_file_name(self, dest, message):
        self.sent.append((dest, message))


class ScriptedWorkerTransport:
    """Records what a single Worker sends; hands it a fixed list of FILE_NAME messages."""

    def __init__(self, file_names, dictionary=None):
        self.incoming = [Message.file_name(n) for n in file_names] + [Message.terminate()]
        self.dictionary = dictionary
        self.sent = []
        self.broadcast_input = "unset"

    def send_ready(self):
        self.sent.append(Message.empty())

    def broadcast_dictionary(self, data=None):
        self.broadcast_input = data
        return data if data is not None else self.dictionary

    def send_dict_size(self, message):
        self.sent.append(message)

    def recv_file_name(self):
        return self.incoming.pop(0)

    def send_vector(self, vector):
        self.sent.append(Message.vector(vector))

    def finish(self):
        self.sent.append("finish")

    def kinds(self):
        return [m.kind for m in self.sent if isinstance(m, Message)]


class ThreadFabric:
    """Queues and a barrier standing in for MPI between one coordinator and W worker threads."""

    def __init__(self, worker_count):
        self.worker_count = worker_count
        self.coordinator_inbox = queue.Queue()
        self.worker_inbox = {w: queue.Queue() for w in range(1, worker_count + 1)}
        self.dict_size_box = queue.Queue()
        self.barrier = threading.Barrier(worker_count, timeout=TIMEOUT)
        self.shared_dictionary = None
        self.dict_size_messages = 0

    def coordinator(self):
        return _FabricCoordinatorSide(self)

    def worker(self, rank):
        return _FabricWorkerSide(self, rank)


class _FabricCoordinatorSide:
    def __init__(self, fabric):
        self.fabric = fabric
        self.worker_count = fabric.worker_count
        self.sent = []

    def post_dict_size_recv(self):
        pass

    def wait_dict_size(self):
        return self.fabric.dict_size_box.get(timeout=TIMEOUT)

    def recv_any(self, dict_size):
        msg = self.fabric.coordinator_inbox.get(timeout=TIMEOUT)
        assert msg.kind in (MessageKind.EMPTY, MessageKind.VECTOR)
        return msg

    def send_file_name(self, dest, message):
        self.sent.append((dest, message))
        self.fabric.worker_inbox[dest].put(message)


class _FabricWorkerSide:
    def __init__(self, fabric, rank):
        self.fabric = fabric
        self.rank = rank

    def send_ready(self):
        self.fabric.coordinator_inbox.put(Message.empty(source=self.rank))

    def broadcast_dictionary(self, data=None):
        if self.rank == 1:
            self.fabric.shared_dictionary = bytes(data)
        self.fabric.barrier.wait()
        return self.fabric.shared_dictionary

    def send_dict_size(self, message):
        self.fabric.dict_size_messages += 1
        self.fabric.dict_size_box.put(Message.dict_size(message.payload, source=self.rank))

    def recv_file_name(self):
        return self.fabric.worker_inbox[self.rank].get(timeout=TIMEOUT)

    def send_vector(self, vector):
        self.fabric.coordinator_inbox.put(Message.vector(vector.copy(), source=self.rank))

    def finish(self):
        pass


@pytest.fixture
def corpus(tmp_path):
    """dictionary {a, b, c}; d0 = 'a a b', d1 = 'c'."""
    dictionary = tmp_path / "dict.txt"
    dictionary.write_text("a\nb\nc\n")
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "d0.txt").write_text("a a b")
    (docs / "d1.txt").write_text("c")
    return dictionary, docs


def make_documents(names):
    return [Document(name, i) for i, name in enumerate(names)]
