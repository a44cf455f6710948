"""
Global exception handling for the application.
Every error leaves the API as a flat JSON envelope:
{"success": false, "error": <CODE>, "message": ..., **details, "path": ...}
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from registry.config import get_settings

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    code = "APP_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        if code:
            self.code = code
        super().__init__(self.message)


class ValidationFailed(AppError):
    """Missing or invalid input."""
    code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class ConflictError(AppError):
    """Duplicate unique key (code, email, certificate number)."""
    code = "DUPLICATE_ENTRY"

    def __init__(self, message: str = "Duplicate entry found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class EntityNotFoundException(AppError):
    """Resource not found error."""
    code = "NOT_FOUND"

    def __init__(self, message: str = "Entity not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class StoredFileNotFound(EntityNotFoundException):
    """Blob missing from the active storage backend."""
    code = "FILE_NOT_FOUND"

    def __init__(self, filename: str, available_files: Optional[list] = None):
        super().__init__(
            f"File not found: {filename}",
            {"filename": filename, "availableFiles": available_files or []},
        )
        self.filename = filename


class CapacityExceeded(AppError):
    """Member or certificate ceiling reached."""

    def __init__(self, message: str, code: str, current_count: int, limit: int):
        super().__init__(
            message,
            status.HTTP_429_TOO_MANY_REQUESTS,
            {"currentCount": current_count, "limit": limit},
            code=code,
        )


class UnauthorizedException(AppError):
    """Authentication failure error."""
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, details)


class StorageError(AppError):
    """A storage backend failed to persist or fetch a blob."""
    code = "STORAGE_ERROR"

    def __init__(self, message: str = "File storage failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


def conflict_from_integrity_error(exc: IntegrityError, fields: tuple = ("code", "email", "number")) -> ConflictError:
    """Map a duplicate-key error onto the offending field."""
    raw = str(getattr(exc, "orig", exc)).lower()
    for field in fields:
        if field in raw:
            return ConflictError(f"{field.capitalize()} already exists", {"field": field})
    return ConflictError()


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.code,
            "message": exc.message,
            **exc.details,
            "path": request.url.path,
        },
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form")]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": "VALIDATION_ERROR",
            "message": ", ".join(f"{e['field']}: {e['message']}" for e in errors) or "Validation error",
            "errors": errors,
            "path": request.url.path,
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""
    if isinstance(exc, AppError):
        return await app_error_handler(request, exc)

    logger.exception("Unhandled error", path=request.url.path, error=str(exc))

    content = {
        "success": False,
        "error": "INTERNAL_SERVER_ERROR",
        "message": "Something went wrong on the server",
        "path": request.url.path,
    }
    if not get_settings().is_production:
        content["detail"] = str(exc)

    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)
