"""Logging for loadtest.

Every worker is a thread named ``loadtest-worker-<id>``, so both formats
carry the thread name. Failed attempts are only ever reported here.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

_ROOT_LOGGER = "loadtest"
_TEXT_FORMAT = "%(asctime)s [%(levelname)-8s] %(threadName)s %(name)s: %(message)s"
_TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _JsonFormatter(logging.Formatter):
    """Render a record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return _JsonFormatter()
    return logging.Formatter(_TEXT_FORMAT, datefmt=_TEXT_DATEFMT)


def setup_logging(
    level: int = logging.INFO,
    *,
    json_format: bool = False,
) -> logging.Logger:
    """Point the ``loadtest`` logger at stderr and return it.

    A repeated call reuses the installed handler, updating its level and
    format in place.
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    handler = logger.handlers[0] if logger.handlers else None
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        logger.addHandler(handler)

    handler.setLevel(level)
    handler.setFormatter(_formatter(json_format))
    return logger


def teardown_logging() -> None:
    """Remove the stderr handler and hand records back to the root logger."""
    logger = logging.getLogger(_ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def get_logger(name: str) -> logging.Logger:
    """``get_logger("engine.worker")`` is the ``loadtest.engine.worker`` logger."""
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")
