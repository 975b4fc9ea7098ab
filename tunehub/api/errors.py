"""
Error taxonomy and the exception handlers that turn errors into `{"error": ...}` bodies.

Handlers are installed by `install_error_handlers(app)`. Database constraint
violations are translated here so no driver-specific error shape reaches clients.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class AuthError(AppError):
    status_code = 401
    default_message = "Not authenticated"


class AuthorizationError(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Resource already exists"


class PayloadTooLargeError(AppError):
    status_code = 413
    default_message = "File too large"


class ServiceUnavailableError(AppError):
    status_code = 503
    default_message = "Service unavailable"


# SQLSTATE codes reported by PostgreSQL drivers.
_PG_UNIQUE_VIOLATION = "23505"
_PG_FOREIGN_KEY_VIOLATION = "23503"
_PG_NOT_NULL_VIOLATION = "23502"


# PUBLIC_INTERFACE
def translate_integrity_error(exc: IntegrityError) -> AppError:
    """Map a database constraint violation onto a 409 or 400 error."""
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    message = str(orig) if orig is not None else str(exc)

    if code == _PG_UNIQUE_VIOLATION or "UNIQUE constraint failed" in message:
        return ConflictError("Resource already exists")
    if code == _PG_FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in message:
        return ValidationError("Referenced resource does not exist")
    if code == _PG_NOT_NULL_VIOLATION or "NOT NULL constraint failed" in message:
        return ValidationError("Required field is missing")
    return ConflictError("Constraint violation")


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    message = first.get("msg", "Invalid value")
    if location:
        return f"{'.'.join(location)}: {message}"
    return message


# PUBLIC_INTERFACE
def install_error_handlers(app: FastAPI) -> None:
    """Register the JSON error handlers on `app`."""

    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("app_error: path=%s status=%s error=%s", request.url.path, exc.status_code, exc.message)
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(IntegrityError)
    async def _integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
        translated = translate_integrity_error(exc)
        logger.info(
            "integrity_error: path=%s status=%s orig=%s",
            request.url.path,
            translated.status_code,
            exc.orig.__class__.__name__ if exc.orig is not None else None,
        )
        return _error_response(translated.status_code, translated.message)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(400, _first_validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == 404 and message == "Not Found":
            message = "Route not found"
        return _error_response(exc.status_code, message)

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error: method=%s path=%s", request.method, request.url.path)
        return _error_response(500, "Internal server error")
