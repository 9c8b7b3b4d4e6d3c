"""Logging configuration for the ``commission_tracker`` package.

Entrypoints (the CLI, a host web app) call ``configure_logging()`` once; it
installs a single ``StreamHandler`` on the ``"commission_tracker"`` logger.
Library modules only ever call ``get_logger("commission_tracker.<module>")``
and never attach handlers themselves. Until an entrypoint configures logging,
the package logger carries a ``NullHandler`` so library use stays silent.

The level comes from the ``level`` argument, else from the
``COMMISSION_TRACKER_LOG_LEVEL`` environment variable, else ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PKG_LOGGER_NAME = "commission_tracker"
LOG_LEVEL_ENV = "COMMISSION_TRACKER_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_configured_handler: logging.Handler | None = None


def resolve_level(level: int | str | None) -> int:
    """Turn an int, a level name or a numeric string into a logging level."""

    if level is None:
        level = os.getenv(LOG_LEVEL_ENV)
        if not level:
            return logging.INFO
    if isinstance(level, int):
        return level
    text = level.strip().upper()
    if text.isdigit():
        return int(text)
    numeric = logging.getLevelName(text)
    # getLevelName returns "Level X" for unknown names.
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach the package's single stream handler; later calls are no-ops."""

    global _configured_handler
    logger = logging.getLogger(PKG_LOGGER_NAME)
    if _configured_handler is not None:
        return logger

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    # The package handler is the only emitter; keep records off the root logger.
    logger.propagate = False

    _configured_handler = handler
    return logger


def reset_logging() -> None:
    """Undo ``configure_logging`` (tests and long-lived hosts that reconfigure)."""

    global _configured_handler
    logger = logging.getLogger(PKG_LOGGER_NAME)
    if _configured_handler is not None:
        logger.removeHandler(_configured_handler)
        _configured_handler = None
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``, keeping the package logger quiet until configured."""

    pkg_logger = logging.getLogger(PKG_LOGGER_NAME)
    if _configured_handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "reset_logging", "resolve_level"]
