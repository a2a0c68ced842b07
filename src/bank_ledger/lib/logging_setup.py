"""Logging setup — one place that attaches handlers for the package.

Library modules call ``get_logger("bank_ledger.<module>")`` and never add
handlers themselves. CLI entry points call ``configure_logging`` once.
"""

from __future__ import annotations

import logging
import os
import sys

_PKG_LOGGER_NAME = "bank_ledger"
_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_configured = False


def _level_from_name(name: str) -> int | None:
    name = name.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = getattr(logging, name, None)
    return numeric if isinstance(numeric, int) else None


def resolve_level(level: int | str | None) -> int:
    """Explicit level, else ``LEDGER_LOG_LEVEL``, else INFO. Unknown names are skipped."""
    if isinstance(level, int):
        return level
    for candidate in (level, os.getenv("LEDGER_LOG_LEVEL")):
        if candidate:
            parsed = _level_from_name(candidate)
            if parsed is not None:
                return parsed
    return logging.INFO


def configure_logging(level: int | str | None = None) -> None:
    """Send package log records to stderr, leaving stdout for command output.

    Only the first call has any effect.
    """
    global _configured
    if _configured:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    logger.handlers = [h for h in logger.handlers if not isinstance(h, logging.NullHandler)]

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolve_level(level))
    logger.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _configured and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
