"""Shared logging utilities for consistent observability across layers.

Usage example:
    from catalog_browser.observability.logging import get_logger

    logger = get_logger("catalog_browser.infrastructure.http")
    logger.warning("Retrying %s in %.2fs", url, delay)
"""

from __future__ import annotations

import logging
import time

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
_ROOT_NAME = "catalog_browser"

_level = logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Return a standard logger configured for UTC timestamps.

    Args:
        name: Logger name (use a stable module-qualified name).

    Returns:
        A logger with a single stream handler and a consistent UTC format.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(_level)
        logger.propagate = False
    return logger


def set_log_level(level: str | int) -> int:
    """Apply a level to every catalog_browser logger, including ones created later.

    Raises:
        ValueError: If `level` is not a known logging level name.
    """
    global _level
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    _level = level
    for name, logger in logging.Logger.manager.loggerDict.items():
        if isinstance(logger, logging.Logger) and (
            name == _ROOT_NAME or name.startswith(f"{_ROOT_NAME}.")
        ):
            logger.setLevel(level)
    return level
