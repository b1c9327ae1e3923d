"""Logging setup for the gh-feedback command line."""

from __future__ import annotations

import logging
import sys

_LOGGER_NAME = "ghfeedback"
_FORMAT = "%(message)s"
_DEBUG_FORMAT = "%(asctime)s %(levelname)7s %(name)s %(message)s"


def configure_logging(*, verbose: bool = False, debug: bool = False) -> None:
    """Send ``ghfeedback.*`` log records to stderr.

    WARNING and above by default, progress lines with *verbose*, everything
    (including each gh invocation) with *debug*. Safe to call more than once.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.propagate = False
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    if debug:
        handler.setFormatter(logging.Formatter(_DEBUG_FORMAT, datefmt="%H:%M:%S"))
        level = logging.DEBUG
    else:
        handler.setFormatter(logging.Formatter(_FORMAT))
        level = logging.INFO if verbose else logging.WARNING
    logger.addHandler(handler)
    logger.setLevel(level)

    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)
