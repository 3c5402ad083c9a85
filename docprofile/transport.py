# transport.py: mpi4py framing of the coordinator/worker protocol
#
# Rank 0 of the world communicator is the coordinator. Ranks 1..N-1 are workers
# and additionally share a workers-only communicator for the dictionary broadcast.
import logging
import os

import numpy as np
from mpi4py import MPI

from .errors import ProtocolError
from .protocol import COORDINATOR, COUNTER_DTYPE, Message, MessageKind
from .worker import WorkerRole

logger = logging.getLogger(__name__)

_NO_DATA = bytearray()


def form_worker_group(comm):
    """
    Collective over `comm`. Returns (worker_comm, role) on workers and
    (None, None) on the coordinator, which is left out of the subgroup.
    """
    rank = comm.Get_rank()
    if rank == COORDINATOR:
        comm.Split(MPI.UNDEFINED, rank)
        return None, None

    worker_comm = comm.Split(0, rank)
    role = WorkerRole.LOADER if worker_comm.Get_rank() == 0 else WorkerRole.FOLLOWER
    return worker_comm, role


class CoordinatorTransport:
    def __init__(self, comm):
        self.comm = comm
        self.worker_count = comm.Get_size() - 1
        self._dict_size_buf = np.zeros(1, dtype=np.int64)
        self._dict_size_req = None

    def post_dict_size_recv(self):
        self._dict_size_req = self.comm.Irecv(
            [self._dict_size_buf, MPI.INT64_T], source=MPI.ANY_SOURCE, tag=MessageKind.DICT_SIZE
        )

    def wait_dict_size(self):
        if self._dict_size_req is None:
            raise RuntimeError("post_dict_size_recv() was never called")
        status = MPI.Status()
        self._dict_size_req.Wait(status)
        self._dict_size_req = None
        msg = Message.dict_size(int(self._dict_size_buf[0]), source=status.Get_source())
        logger.debug("Dictionary size %d from rank %d", msg.payload, msg.source)
        return msg

    def recv_any(self, dict_size):
        """Probe for a message from any worker, check its kind and length, then receive it."""
        status = MPI.Status()
        self.comm.Probe(source=MPI.ANY_SOURCE, tag=MPI.ANY_TAG, status=status)
        src = status.Get_source()
        tag = status.Get_tag()

        if tag == MessageKind.VECTOR:
            count = status.Get_count(MPI.UNSIGNED)
            if count != dict_size:
                raise ProtocolError(
                    f"Rank {src} sent a profile of {count} counters, expected {dict_size}"
                )
            buf = np.empty(dict_size, dtype=COUNTER_DTYPE)
            self.comm.Recv([buf, MPI.UNSIGNED], source=src, tag=tag)
            return Message.vector(buf, source=src)

        if tag == MessageKind.EMPTY:
            if status.Get_count(MPI.BYTE) != 0:
                raise ProtocolError(f"Rank {src} sent a non-empty EMPTY message")
            self.comm.Recv([_NO_DATA, MPI.BYTE], source=src, tag=tag)
            return Message.empty(source=src)

        raise ProtocolError(f"Unexpected message tag {tag} from rank {src}")

    def send_file_name(self, dest, message):
        # paths go as raw filesystem bytes; os.walk names need not be valid UTF-8
        data = os.fsencode(message.payload)
        self.comm.Send([data, MPI.CHAR], dest=dest, tag=MessageKind.FILE_NAME)


class WorkerTransport:
    def __init__(self, comm, worker_comm):
        self.comm = comm
        self.worker_comm = worker_comm
        self._ready_req = None

    def send_ready(self):
        self._ready_req = self.comm.Isend(
            [_NO_DATA, MPI.BYTE], dest=COORDINATOR, tag=MessageKind.EMPTY
        )

    def broadcast_dictionary(self, data=None):
        """
        Subgroup rank 0 passes the dictionary bytes, everyone else passes None.
        Length goes first so followers can size their buffer. Returns the bytes on every worker.
        """
        is_root = self.worker_comm.Get_rank() == 0
        length = np.array([len(data) if is_root else 0], dtype=np.int64)
        self.worker_comm.Bcast([length, MPI.INT64_T], root=0)

        buf = bytearray(data) if is_root else bytearray(int(length[0]))
        self.worker_comm.Bcast([buf, MPI.CHAR], root=0)
        return bytes(buf)

    def send_dict_size(self, message):
        buf = np.array([message.payload], dtype=np.int64)
        self.comm.Send([buf, MPI.INT64_T], dest=COORDINATOR, tag=MessageKind.DICT_SIZE)

    def recv_file_name(self):
        status = MPI.Status()
        self.comm.Probe(source=COORDINATOR, tag=MessageKind.FILE_NAME, status=status)
        n = status.Get_count(MPI.CHAR)
        buf = bytearray(n)
        self.comm.Recv([buf, MPI.CHAR], source=COORDINATOR, tag=MessageKind.FILE_NAME)
        return Message.file_name(os.fsdecode(bytes(buf)))

    def send_vector(self, vector):
        vector = np.ascontiguousarray(vector, dtype=COUNTER_DTYPE)
        self.comm.Send([vector, MPI.UNSIGNED], dest=COORDINATOR, tag=MessageKind.VECTOR)

    def finish(self):
        if self._ready_req is not None:
            self._ready_req.Wait()
            self._ready_req = None
