"""
Structured Logging Configuration

structlog for the service's own events (JSON outside development). The
stdlib loggers of the libraries a sync run drives are tuned here too: a
popular or export sync issues thousands of TMDB requests and upserts, so
per-request and per-statement INFO lines are kept out of the output unless
asked for.
"""

import logging
import sys
from typing import Dict, Optional

import structlog
from structlog.types import Processor

from ..config import get_settings


def library_log_levels(database_echo: bool = False) -> Dict[str, int]:
    """Stdlib logger levels for third-party libraries."""
    return {
        # One INFO line per request otherwise
        "httpx": logging.WARNING,
        "httpcore": logging.WARNING,
        # Every job execution is logged at INFO
        "apscheduler": logging.WARNING,
        "sqlalchemy.engine": logging.INFO if database_echo else logging.WARNING,
        "aiosqlite": logging.WARNING,
    }


def setup_logging(log_level: Optional[str] = None):
    """
    Configure structured logging for the service and the CLI.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
    """
    settings = get_settings()

    if log_level is None:
        log_level = "DEBUG" if settings.debug else "INFO"
    level = getattr(logging, log_level.upper())

    # uvicorn and library output still goes through stdlib logging
    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=level,
    )
    for name, library_level in library_log_levels(settings.database_echo).items():
        logging.getLogger(name).setLevel(library_level)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.environment == "development":
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True)
        ]
    else:
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(sort_keys=True)
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "catalog_sync") -> structlog.BoundLogger:
    """Get a structured logger bound to a module name."""
    return structlog.get_logger(name)
