"""Logging setup for the host process.

stdout carries protocol frames, so every log record goes to stderr.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

_ROOT_LOGGER = "exthost"


def configure_logging(
    level: str = "WARNING",
    fmt: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    *,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Attach a single stderr handler to the ``exthost`` logger.

    Calling it again replaces the previous handler instead of stacking one.
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level.upper())
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
