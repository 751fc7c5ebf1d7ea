"""
GE Flip Tracker — Logging configuration.

The package itself only ever calls ``logging.getLogger(__name__)``; the host
application calls ``configure_logging()`` once at startup to decide where
those records go.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO, Optional


_CONFIGURED = False

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are chatty at INFO (one line per HTTP request).
_QUIET_LOGGERS = ("httpx", "httpcore", "anthropic", "sqlalchemy.engine")


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.environ.get("LOG_LEVEL", "INFO")).strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(
    level: Optional[str] = None,
    stream: Optional[IO[str]] = None,
    fmt: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
) -> None:
    """Configure the root logger exactly once.

    Parameters
    ----------
    level:
        Log level name (DEBUG, INFO, WARNING, …).  Falls back to the
        ``LOG_LEVEL`` environment variable, then ``INFO``.
    stream:
        Where to write records; defaults to stdout.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    root = logging.getLogger()
    root.setLevel(_resolve_level(level))

    # Leave handlers alone when the host application installed its own.
    if not root.handlers:
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _CONFIGURED = True


def reset_logging_for_tests() -> None:
    global _CONFIGURED
    _CONFIGURED = False
