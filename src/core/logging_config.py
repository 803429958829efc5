"""Structured logging configuration.

This module initializes structlog loggers with a stable JSON format.
Log lines go to stderr so CLI payloads on stdout stay parseable.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_CONFIGURED = False


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    global _CONFIGURED
    if not _CONFIGURED:
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
            logger_factory=_stderr_logger,
            cache_logger_on_first_use=False,
        )
        _CONFIGURED = True
    return structlog.get_logger(name)


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # Resolve stderr per call; it may be swapped after import.
    return structlog.PrintLogger(file=sys.stderr)
