"""Logging for kitepipe.

Every module logs through ``get_logger("<tag>")``, a child of the
``kitepipe`` logger. Output goes to stderr as ``[tag] message`` so it never
mixes with the JSON a command prints on stdout.
"""

from __future__ import annotations

import logging
import sys

ROOT_LOGGER = "kitepipe"

_handler: logging.Handler | None = None


class _TagFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        tag = record.name.removeprefix(f"{ROOT_LOGGER}.")
        return f"[{tag}] {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Install the stderr handler on first call; ``verbose`` switches to DEBUG.

    Later calls never add a handler and never lower the level, so the lazy
    call made by :func:`get_logger` cannot undo ``--verbose``.
    """
    global _handler
    logger = logging.getLogger(ROOT_LOGGER)
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(_TagFormatter())
        logger.addHandler(_handler)
        logger.propagate = False
        logger.setLevel(logging.WARNING)
    if verbose:
        logger.setLevel(logging.DEBUG)


def get_logger(name: str) -> logging.Logger:
    setup_logging()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
