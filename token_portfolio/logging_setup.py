"""Package logger configuration for runtime entrypoints."""

from __future__ import annotations

import logging
import sys
from datetime import datetime

_PACKAGE_LOGGER_NAME = "token_portfolio"
_installed_handler: logging.Handler | None = None


class MillisecondFormatter(logging.Formatter):
    """Formatter rendering record timestamps with millisecond precision."""

    def formatTime(self, record, datefmt=None):
        created_at = datetime.fromtimestamp(record.created)
        return f"{created_at.strftime(datefmt or '%Y-%m-%d %H:%M:%S')}.{int(record.msecs):03d}"


def logging_configure(level: str = "INFO") -> logging.Logger:
    """Attach one stream handler to the package logger.

    Repeated calls replace the previously installed handler instead of
    stacking duplicates.

    Args:
        level: Log level name.

    Returns:
        logging.Logger: Configured package logger.

    Raises:
        ValueError: Raised when level is not a known log level name.
    """

    resolved_level = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved_level, int):
        raise ValueError(f"unsupported log level={level}")

    logger = logging.getLogger(_PACKAGE_LOGGER_NAME)
    logger.setLevel(resolved_level)

    global _installed_handler
    if _installed_handler is not None:
        logger.removeHandler(_installed_handler)

    _installed_handler = logging.StreamHandler(sys.stderr)
    _installed_handler.setFormatter(MillisecondFormatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(_installed_handler)
    return logger


__all__ = ["MillisecondFormatter", "logging_configure"]
