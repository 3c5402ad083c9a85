"""Manager/worker document profiling over MPI."""

__version__ = "0.1.0"
