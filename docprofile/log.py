import logging

LOG_FORMAT = "%(asctime)s - [rank %(rank)s %(role)s] - %(name)s - %(levelname)s - %(message)s"


class _RankFilter(logging.Filter):
    """Stamps every record with the MPI rank and role of this process."""

    def __init__(self, rank, role):
        super().__init__()
        self.rank = rank
        self.role = role

    def filter(self, record):
        record.rank = self.rank
        record.role = self.role
        return True


def setup_logging(settings, rank=0, role="coordinator"):
    handlers = [logging.StreamHandler()]
    if settings.log_file:
        # one file per rank, otherwise processes interleave writes
        handlers.append(logging.FileHandler(f"{settings.log_file}.{rank}"))

    rank_filter = _RankFilter(rank, role)
    for handler in handlers:
        handler.addFilter(rank_filter)

    logging.basicConfig(
        level=settings.log_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
