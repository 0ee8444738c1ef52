"""
Logging setup shared by the table engine, the API and the sample data.

Each named logger gets one stdout handler; the level follows ``LOG_LEVEL``.
"""
from __future__ import annotations

import logging
import sys

from src.core.config import get_settings

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _level() -> int:
    return getattr(logging, get_settings().log_level.upper(), logging.INFO)


def _stdout_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
    return handler


def get_logger(name: str) -> logging.Logger:
    """Named logger writing ``time | level | name | message`` lines to stdout."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(_stdout_handler())
        logger.propagate = False
    logger.setLevel(_level())
    return logger
