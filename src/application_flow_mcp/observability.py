"""
Structured logging setup.

structlog always renders JSON through stdlib logging to stderr, so CLI and
MCP stdio output on stdout stays machine-readable. Until ``setup_logging``
runs, stdlib's default WARNING threshold applies.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.stdlib import LoggerFactory


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def setup_logging(log_level: str = "WARNING") -> None:
    """
    Configure stdlib logging for structured output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper(), logging.WARNING),
        force=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.get_logger(name)


_configure_structlog()
