"""
Domain exceptions and global exception handlers.

Every error response follows the same JSON envelope::

    {
        "error": true,
        "message": "<human-readable description>"
    }

The service layer raises the domain exceptions below without importing
FastAPI, so business logic stays framework-agnostic.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────────────────────
# Domain exceptions  (raised by service layer, caught by handlers below)
# ────────────────────────────────────────────────────────────────────────────


class AppException(Exception):
    """Base exception for all application-level errors."""

    def __init__(self, status_code: int, message: str, details: Any = None):
        self.status_code = status_code
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationException(AppException):
    """Input violates a business rule (400).  Never retried, no partial effect."""

    def __init__(self, message: str):
        super().__init__(status_code=400, message=message)


class NotFoundException(AppException):
    """
    Resource not found (404).

    Also used when the resource exists but belongs to another user, so the
    response never reveals whether a foreign id exists.
    """

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            status_code=404,
            message=f"{resource} with id '{identifier}' not found",
        )


class ConflictException(AppException):
    """Unique-constraint clash, e.g. a taken username (400)."""

    def __init__(self, message: str):
        super().__init__(status_code=400, message=message)


class AuthenticationException(AppException):
    """Bad credentials or an invalid / expired bearer token (401)."""

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(status_code=401, message=message)


# ────────────────────────────────────────────────────────────────────────────
# FastAPI exception handler registration
# ────────────────────────────────────────────────────────────────────────────


def add_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI application instance."""

    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request, exc: AppException
    ) -> JSONResponse:
        headers = None
        if isinstance(exc, AuthenticationException):
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": True, "message": exc.message},
            headers=headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle standard HTTP exceptions (404 for unknown paths, 401 from OAuth2)."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": True, "message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """
        Handle malformed request bodies and query parameters.

        Reported as 400 like every other validation failure, with a list of
        the offending fields.
        """
        errors = []
        for err in exc.errors():
            loc = " -> ".join(str(part) for part in err["loc"])
            errors.append({"field": loc, "message": err["msg"]})
        return JSONResponse(
            status_code=400,
            content={"error": True, "message": "Validation failed", "details": errors},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception(
            "Unhandled exception on %s %s", request.method, request.url.path
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": True,
                "message": "Internal Server Error. Please contact support.",
            },
        )
