"""Core infrastructure modules."""

from .exceptions import (
    CatalogSyncException,
    InvalidRequestError,
    NotFoundError,
    UnauthorizedError,
)
from .logging import setup_logging, get_logger

__all__ = [
    "CatalogSyncException",
    "InvalidRequestError",
    "NotFoundError",
    "UnauthorizedError",
    "setup_logging",
    "get_logger",
]
