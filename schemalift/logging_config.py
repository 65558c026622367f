"""Logging setup shared by the CLI, the API and the pipeline.

Core functions never configure logging themselves; they accept an optional
``logger`` argument and otherwise write to their module logger.
"""

from __future__ import annotations

import logging
import sys

_DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int | str = logging.INFO, log_format: str | None = None) -> logging.Logger:
    """Configure a stdout handler for the ``schemalift`` logger tree.

    Args:
        level: Logging level, either a number or a name such as ``"DEBUG"``.
        log_format: Custom format string (optional).

    Returns:
        The configured ``schemalift`` logger.
    """
    logging.basicConfig(
        level=level,
        format=log_format or _DEFAULT_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logger = logging.getLogger("schemalift")
    logger.setLevel(level)
    return logger


def get_logger(name: str = "schemalift") -> logging.Logger:
    """Return a logger by name."""
    return logging.getLogger(name)


def null_logger() -> logging.Logger:
    """Return a logger that discards every record."""
    logger = logging.getLogger("schemalift.null")
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.propagate = False
    logger.disabled = True
    return logger
