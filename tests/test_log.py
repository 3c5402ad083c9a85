import logging

from docprofile.config import Settings
from docprofile.log import setup_logging


def test_records_carry_rank_and_role(tmp_path):
    settings = Settings(log_level="DEBUG", log_file=str(tmp_path / "run.log"))
    setup_logging(settings, rank=3, role="worker-2")
    try:
        logging.getLogger("docprofile.test").debug("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()
        text = (tmp_path / "run.log.3").read_text()
        assert "[rank 3 worker-2]" in text
        assert "DEBUG - hello" in text
    finally:
        for handler in logging.getLogger().handlers[:]:
            handler.close()
            logging.getLogger().removeHandler(handler)
        logging.getLogger().setLevel(logging.WARNING)
