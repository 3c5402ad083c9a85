# cli.py: entry point: mpiexec -n <P> python -m docprofile <dir> <dict> <results>
import argparse
import logging
import os
import sys
from functools import partial

from mpi4py import MPI

from .config import Settings
from .coordinator import Coordinator
from .documents import list_documents
from .errors import ConfigurationError
from .log import setup_logging
from .protocol import COORDINATOR
from .results import write_profiles
from .transport import CoordinatorTransport, WorkerTransport, form_worker_group
from .worker import Worker

logger = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise ConfigurationError(message)


def build_parser():
    parser = _ArgumentParser(
        prog="docprofile",
        description="Profile every document under a directory against a dictionary, using MPI workers.",
    )
    parser.add_argument("directory", help="directory holding the documents (searched recursively)")
    parser.add_argument("dictionary", help="dictionary file, whitespace separated words")
    parser.add_argument("results", help="output CSV, one row per document")
    return parser


def _check_arguments(parser, argv, comm):
    """Same answer on every rank, so every rank can bail out without talking to the others."""
    args = parser.parse_args(argv)
    if comm.Get_size() < 2:
        raise ConfigurationError("Program needs at least two processes (mpiexec -n >= 2)")
    return args


def _check_paths(args, comm):
    """Rank 0 checks the inputs exist and shares the verdict so every rank stops together."""
    problem = None
    if comm.Get_rank() == COORDINATOR:
        if not os.path.isdir(args.directory):
            problem = f"document directory '{args.directory}' does not exist"
        elif not os.path.isfile(args.dictionary):
            problem = f"dictionary file '{args.dictionary}' does not exist"
    problem = comm.bcast(problem, root=COORDINATOR)
    if problem:
        raise ConfigurationError(problem)


def run_coordinator(comm, args, settings):
    coordinator = Coordinator(
        CoordinatorTransport(comm),
        partial(list_documents, args.directory, settings.suffixes),
    )
    matrix = coordinator.run()
    write_profiles(args.results, coordinator.documents, matrix)
    logger.info("Wrote %d profiles to %s", len(matrix), args.results)
    print(coordinator.summary())


def run_worker(comm, worker_comm, role, args, settings):
    worker = Worker(
        WorkerTransport(comm, worker_comm),
        role,
        dictionary_path=args.dictionary,
        encoding=settings.encoding,
    )
    worker.run()


def main(argv=None, comm=None):
    if comm is None:
        comm = MPI.COMM_WORLD
    rank = comm.Get_rank()
    parser = build_parser()

    try:
        settings = Settings.from_env()
        args = _check_arguments(parser, argv, comm)
        _check_paths(args, comm)
    except ConfigurationError as err:
        if rank == COORDINATOR:
            parser.print_usage(sys.stderr)
            print(f"{parser.prog}: error: {err}", file=sys.stderr)
        return 1

    worker_comm, role = form_worker_group(comm)
    setup_logging(
        settings,
        rank=rank,
        role="coordinator" if rank == COORDINATOR else f"worker-{worker_comm.Get_rank()}",
    )

    try:
        if rank == COORDINATOR:
            run_coordinator(comm, args, settings)
        else:
            run_worker(comm, worker_comm, role, args, settings)
            worker_comm.Free()
    except Exception as e:
        logger.critical("Fatal error, aborting all ranks: %s", e, exc_info=True)
        comm.Abort(1)
        return 1
    return 0
