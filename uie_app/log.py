"""Loguru sink setup."""

from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}"


def configure_logging(level: str = "INFO", sink=sys.stderr) -> int:
    """Replace loguru's default handler with a single sink at ``level``.

    Returns the handler id so callers can remove it again.
    """

    logger.remove()
    return logger.add(sink, level=level.upper(), format=LOG_FORMAT)


__all__ = ["configure_logging"]
