"""
Error handling middleware that renders every failure as a JSON error body.
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as SQLTimeoutError
from pydantic import ValidationError as PydanticValidationError

from ..utils.exceptions import (
    BookingPlatformError,
    BookingPartiallyCommittedError,
    ConcurrencyError,
    ErrorCode,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_MAP = {
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.INSUFFICIENT_POINTS: 422,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.SEAT_ALREADY_BOOKED: status.HTTP_409_CONFLICT,
    ErrorCode.PARKING_SPOT_TAKEN: status.HTTP_409_CONFLICT,
    ErrorCode.CONCURRENCY_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.OPTIMISTIC_LOCK_FAILURE: status.HTTP_409_CONFLICT,
    ErrorCode.EXTERNAL_SERVICE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.BOOKING_PARTIALLY_COMMITTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_code_for(exc: BookingPlatformError) -> int:
    """Map an error code to its HTTP status."""
    return STATUS_MAP.get(exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_body(exc: BookingPlatformError, error_id: Optional[str] = None) -> Dict[str, Any]:
    """Flat error body: the message under ``error`` plus code and context."""
    body = exc.to_dict()
    body["error_id"] = error_id or str(uuid4())
    body["timestamp"] = datetime.now(timezone.utc).isoformat()
    return body


def error_response(exc: BookingPlatformError, error_id: Optional[str] = None) -> JSONResponse:
    headers = {}
    if exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(
        status_code=status_code_for(exc),
        content=error_body(exc, error_id),
        headers=headers
    )


def validation_error_from(errors) -> ValidationError:
    """Collapse pydantic error entries into a single field-keyed ValidationError."""
    field_errors: Dict[str, list] = {}
    for error in errors:
        field_path = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        field_errors.setdefault(field_path or "body", []).append(error["msg"])

    return ValidationError("Missing or invalid fields", field_errors=field_errors)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI request validation failures in the platform error shape."""
    error = validation_error_from(exc.errors())
    logger.warning(
        f"Request validation failed: {request.method} {request.url.path}",
        extra={"details": error.details}
    )
    return error_response(error)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware turning unhandled exceptions into JSON error responses."""

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            error_id = str(uuid4())
            self._log_error(request, exc, error_id)
            return self._handle_exception(exc, error_id)

    def _handle_exception(self, exc: Exception, error_id: str) -> JSONResponse:
        if isinstance(exc, BookingPlatformError):
            return error_response(exc, error_id)
        elif isinstance(exc, PydanticValidationError):
            return error_response(validation_error_from(exc.errors()), error_id)
        elif isinstance(exc, IntegrityError):
            return error_response(
                ConcurrencyError(
                    "The request conflicts with a concurrent change",
                    details={"constraint": "integrity"}
                ),
                error_id
            )
        elif isinstance(exc, (OperationalError, SQLTimeoutError)):
            return error_response(
                ExternalServiceError(
                    "database",
                    "Database service temporarily unavailable",
                    details={"error_type": type(exc).__name__},
                    retry_after=30
                ),
                error_id
            )
        return self._handle_unexpected_error(exc, error_id)

    def _handle_unexpected_error(self, exc: Exception, error_id: str) -> JSONResponse:
        error = BookingPlatformError(
            "An unexpected error occurred",
            error_code=ErrorCode.INTERNAL_ERROR,
            details={"error_type": type(exc).__name__} if self.debug else None
        )
        content = error_body(error, error_id)

        if self.debug:
            content["debug"] = {
                "exception": str(exc),
                "traceback": traceback.format_exc()
            }

        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)

    def _log_error(self, request: Request, exc: Exception, error_id: str):
        request_info = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
        }

        if isinstance(exc, BookingPlatformError):
            extra = {
                "error_id": error_id,
                "error_code": exc.error_code.value,
                "request": request_info,
                "details": exc.details
            }
            if isinstance(exc, (ValidationError, NotFoundError)):
                logger.warning(f"Client error [{error_id}]: {exc.message}", extra=extra)
            elif isinstance(exc, (BookingPartiallyCommittedError, ExternalServiceError)):
                logger.error(f"System error [{error_id}]: {exc.message}", extra=extra)
            else:
                logger.info(f"Conflict [{error_id}]: {exc.message}", extra=extra)
        else:
            logger.error(
                f"Unexpected error [{error_id}]: {exc}",
                extra={
                    "error_id": error_id,
                    "error_type": type(exc).__name__,
                    "request": request_info
                },
                exc_info=True
            )
