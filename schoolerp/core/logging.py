"""Logging utilities for the application.

Provides a configured structlog logger for consistent, structured logging
across routers, services and scripts.
"""

import logging
import sys

import structlog
from structlog.stdlib import BoundLogger

from schoolerp.core.config import settings


def configure_logging() -> None:
    """Configure structlog with JSON output and the level from settings.

    Processors, in order:
    - context variables merging
    - log level addition
    - stack info rendering
    - exception info
    - ISO timestamp
    - JSON rendering
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> BoundLogger:
    """Get a structlog logger.

    Args:
        name: The name of the logger, typically __name__

    Returns:
        A structlog BoundLogger bound to ``name``
    """
    return structlog.get_logger(name)
