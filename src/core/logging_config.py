"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
Events carry an ISO timestamp, the level, and keyword fields,
and go to stderr so command output on stdout stays parseable.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from core.constants import DEFAULT_LOG_LEVEL


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure structlog processors and the minimum event level.

    Args:
        level: Level name such as ``INFO`` or ``DEBUG``.
    """
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )


def _stderr_logger_factory(*_args: Any) -> structlog.PrintLogger:
    # Resolve stderr per logger so redirected streams are honored.
    return structlog.PrintLogger(file=sys.stderr)


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A lazily-bound structlog logger.
    """
    return structlog.get_logger(name)
