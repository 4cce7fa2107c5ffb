"""Logging setup for the TutorHub server process."""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger("tutorhub.server")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that flood INFO with per-request or per-poll lines
NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "hypercorn.access", "temporalio")


def resolve_level(level: Optional[str]) -> int:
    """Map a LOG_LEVEL name to its numeric value; unknown names mean INFO."""
    value = getattr(logging, (level or "INFO").strip().upper(), None)
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: Optional[str] = None) -> int:
    """Install the root handler once and apply `level` to the tutorhub loggers.

    Calling again only adjusts levels, so the app and the worker can both
    call it without duplicating handlers. Returns the numeric level used.
    """
    numeric_level = resolve_level(level)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=numeric_level, format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    logging.getLogger("tutorhub").setLevel(numeric_level)
    logger.setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))
    return numeric_level
