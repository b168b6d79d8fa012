"""Logging setup driven by the ``DEBUG`` environment variable.

``DEBUG=clipai`` (or ``*`` / ``true``) logs at INFO, ``DEBUG=clipai:verbose``
and ``DEBUG=clipai:debug`` log at DEBUG. Without it only warnings show.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "clip_cli"

INFO, VERBOSE, DEBUG = 1, 2, 3


def debug_level(value: Optional[str] = None) -> int:
    """Return 0 (off), 1 (info), 2 (verbose) or 3 (debug) for a ``DEBUG`` value."""
    if value is None:
        value = os.getenv("DEBUG", "")
    if not value or not ("clipai" in value or "*" in value or value == "true"):
        return 0
    if ":debug" in value:
        return DEBUG
    if ":verbose" in value:
        return VERBOSE
    return INFO


def configure_logging(value: Optional[str] = None) -> int:
    """Attach a rich stderr handler to the package logger; return the debug level."""
    level = debug_level(value)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel({0: logging.WARNING, INFO: logging.INFO}.get(level, logging.DEBUG))

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=level >= DEBUG,
        rich_tracebacks=level >= DEBUG,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    # The SDK's own request logging is only useful at the deepest level.
    logging.getLogger("openai").setLevel(logging.DEBUG if level >= DEBUG else logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.DEBUG if level >= DEBUG else logging.WARNING)
    return level
