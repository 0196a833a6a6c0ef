from __future__ import annotations

import logging
import sys
from typing import Optional

ROOT_LOGGER_NAME = "oklchify"

_handler: Optional[logging.Handler] = None


class _StdoutHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stdout`` is at emit time."""

    @property
    def stream(self):
        return sys.stdout

    @stream.setter
    def stream(self, _value):
        pass


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``oklchify`` namespace."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Install a single plain stdout handler on the package logger.

    Safe to call more than once; later calls only adjust the level.
    """
    global _handler
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if _handler is None:
        _handler = _StdoutHandler()
        _handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(_handler)
    return logger
