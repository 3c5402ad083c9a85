# config.py: runtime settings, read from the environment (and .env if present)
import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigurationError


def _split_suffixes(raw):
    if not raw:
        return ()
    return tuple(s.strip().lower() for s in raw.split(",") if s.strip())


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    log_file: Optional[str] = None
    encoding: str = "utf-8"
    suffixes: Tuple[str, ...] = ()

    @classmethod
    def from_env(cls, env_file=None):
        """
        Load .env (explicit path, DOCPROFILE_ENV_FILE, or the usual search from CWD)
        and build Settings from DOCPROFILE_* variables. Existing env vars win.
        """
        env_file = env_file or os.getenv("DOCPROFILE_ENV_FILE")
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv(find_dotenv(usecwd=True))

        level = (os.getenv("DOCPROFILE_LOG_LEVEL") or "INFO").strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigurationError(f"Unknown log level '{level}'")

        encoding = (os.getenv("DOCPROFILE_ENCODING") or "utf-8").strip()
        try:
            "".encode(encoding)
        except LookupError:
            raise ConfigurationError(f"Unknown encoding '{encoding}'")

        return cls(
            log_level=level,
            log_file=os.getenv("DOCPROFILE_LOG_FILE") or None,
            encoding=encoding,
            suffixes=_split_suffixes(os.getenv("DOCPROFILE_SUFFIXES")),
        )
