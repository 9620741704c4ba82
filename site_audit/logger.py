# site_audit/logger.py
"""Logging setup shared by every SiteAudit module.

All records go through one named logger, ``SiteAudit``. Modules ask for a
child with :func:`get_logger` (``SiteAudit.crawler``, ``SiteAudit.fetcher``
...) so a single :func:`configure` call controls the whole package. Records do
not propagate to the root logger, which keeps the host application's logging
untouched.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Iterable, Optional, Union

LOGGER_NAME: Final[str] = "SiteAudit"
DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# libraries that log every connection at INFO/DEBUG
THIRD_PARTY_LOGGERS: Final[tuple[str, ...]] = ("aiohttp", "asyncio", "charset_normalizer")

LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
LOG_FILE_BACKUPS: Final[int] = 3

Level = Union[int, str]
PathLike = Union[str, Path]


def _handlers(log_file: Optional[PathLike]) -> Iterable[logging.Handler]:
    yield logging.StreamHandler(sys.stdout)
    if log_file is None:
        return
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    yield RotatingFileHandler(
        path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )


def _normalize_level(level: Level) -> Level:
    return level.upper() if isinstance(level, str) else level


def configure(
    level: Level = "INFO",
    log_file: Optional[PathLike] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Install fresh handlers on the ``SiteAudit`` logger and return it.

    Handlers left by an earlier call are closed first, so calling this twice
    never duplicates output. Console output always goes to stdout; *log_file*
    adds a size-rotated file next to it.
    """
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(_normalize_level(level))
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()

    formatter = logging.Formatter(log_format)
    for handler in _handlers(log_file):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    root.propagate = False
    return root


def init_logging(
    level: Level = "INFO",
    log_file: Optional[PathLike] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Entry point for the CLI options ``--log-level/--log-file/--log-format``."""
    return configure(level, log_file, log_format)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if not name:
        return logger
    return logger.getChild(name)


logger: logging.Logger = configure()

__all__ = ["LOGGER_NAME", "configure", "get_logger", "init_logging", "logger"]
