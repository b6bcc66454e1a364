"""
Structured logging setup.

Usage:
    from lectureqa.utils.logging import get_logger
    logger = get_logger("lectureqa.pipeline.router")
    logger.info("[ROUTER] Routed", extra={"topic": "nodejs"})
"""

from __future__ import annotations

import logging
import sys

ROOT_LOGGER = "lectureqa"

_configured = False
_handler: logging.Handler | None = None


def setup_logging(level: int | str | None = None) -> None:
    """
    Configure structured logging for the entire application.

    The handler is installed once.  A later call with an explicit level
    (e.g. settings.log_level at startup) updates the level in place.
    """
    global _configured, _handler

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger(ROOT_LOGGER)

    if _configured:
        if level is not None:
            root.setLevel(level)
            if _handler is not None:
                _handler.setLevel(level)
        return

    if level is None:
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    root.setLevel(level)
    root.addHandler(handler)
    root.propagate = False

    _handler = handler
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger under the ``lectureqa`` namespace.

    Automatically calls ``setup_logging()`` on first use to ensure
    the root handler is attached.
    """
    setup_logging()
    return logging.getLogger(name)


def preview(text: str, limit: int = 80) -> str:
    """Truncate user text for log lines."""
    text = (text or "").strip()
    return text[:limit] + ("..." if len(text) > limit else "")
