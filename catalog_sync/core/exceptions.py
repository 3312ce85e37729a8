"""
Global Exception Handlers

Custom exceptions and FastAPI exception handlers.
"""

from fastapi import Request
from fastapi.responses import JSONResponse


class CatalogSyncException(Exception):
    """Base exception for catalog sync errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(CatalogSyncException):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} not found: {resource_id}",
            status_code=404
        )


class UnauthorizedError(CatalogSyncException):
    """Authentication/authorization failed."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message, status_code=401)


class InvalidRequestError(CatalogSyncException):
    """Request parameters are well-formed but not acceptable."""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=400)


async def catalog_exception_handler(
    request: Request,
    exc: CatalogSyncException
) -> JSONResponse:
    """Handle CatalogSyncException and return JSON response."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "message": exc.message,
            "status_code": exc.status_code,
        }
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(CatalogSyncException, catalog_exception_handler)
