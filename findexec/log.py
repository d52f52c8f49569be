"""
findexec Logging - Package-wide logging configuration.

Responsibilities:
- NullHandler on the package logger so library use stays quiet
- Stream handler setup for the CLI (--verbose)

Forbidden:
- No user-facing diagnostics (see findexec.messages)
"""

from __future__ import annotations

import logging
import sys

PACKAGE_LOGGER_NAME = "findexec"

logging.getLogger(PACKAGE_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a named logger scoped to findexec."""
    return logging.getLogger(name or PACKAGE_LOGGER_NAME)


def configure_logging(
    *,
    level: int | str = logging.WARNING,
    stream=None,
    fmt: str | None = None,
) -> logging.Logger:
    """
    Configure a single stream handler on the package logger.
    
    Args:
        level: Logging level or level name.
        stream: Target stream; defaults to sys.stderr.
        fmt: Log format string.
    
    Returns:
        The package logger.
    
    Note:
        Calling this twice does not stack handlers; a handler whose stream
        was closed (e.g., by a test harness) is pointed at the new stream.
    """
    logger = get_logger()
    
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)
    logger.setLevel(level)
    
    if stream is None:
        stream = sys.stderr
    if fmt is None:
        fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler):
            if getattr(handler.stream, "closed", False):
                handler.stream = stream
            return logger
    
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt=fmt))
    logger.addHandler(handler)
    return logger
