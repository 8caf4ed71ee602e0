"""
Error handling for the Train Reservation Platform API.

Platform errors and request validation errors are turned into the common
error envelope by exception handlers; anything else escaping a route is
caught by ``ErrorHandlerMiddleware``.
"""

import logging
import traceback
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, TimeoutError as SQLTimeoutError
from starlette.middleware.base import BaseHTTPMiddleware

from ..utils.exceptions import (
    ErrorCode,
    InvalidRequestError,
    ReservationPlatformError,
    StorageFailureError,
)

logger = logging.getLogger(__name__)

STATUS_MAP = {
    ErrorCode.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.POLICY_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.UNKNOWN_SEAT: status.HTTP_404_NOT_FOUND,
    ErrorCode.NOT_FOUND_OR_FORBIDDEN: status.HTTP_404_NOT_FOUND,
    ErrorCode.SEAT_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.STORAGE_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def error_response(exc: ReservationPlatformError, error_id: str) -> JSONResponse:
    """Render a platform error as the common error envelope."""
    headers = {}
    if exc.error_code == ErrorCode.UNAUTHORIZED:
        headers["WWW-Authenticate"] = "Bearer"

    return JSONResponse(
        status_code=STATUS_MAP.get(exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content={
            "error": exc.to_dict(),
            "error_id": error_id,
            "timestamp": _timestamp()
        },
        headers=headers
    )


async def platform_error_handler(request: Request, exc: ReservationPlatformError) -> JSONResponse:
    error_id = str(uuid4())
    level = logging.ERROR if exc.error_code == ErrorCode.STORAGE_FAILURE else logging.WARNING
    logger.log(
        level,
        "Request %s %s failed [%s]: %s %s",
        request.method, request.url.path, error_id, exc.error_code.value, exc.message
    )
    return error_response(exc, error_id)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors = {}
    for error in exc.errors():
        field_path = ".".join(str(loc) for loc in error["loc"])
        field_errors.setdefault(field_path, []).append(error["msg"])

    return await platform_error_handler(
        request,
        InvalidRequestError("Request validation failed", field_errors=field_errors)
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the platform's exception handlers on ``app``."""
    app.add_exception_handler(ReservationPlatformError, platform_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware turning unhandled exceptions into error responses."""

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except ReservationPlatformError as exc:
            return await platform_error_handler(request, exc)
        except (OperationalError, SQLTimeoutError) as exc:
            error_id = str(uuid4())
            logger.error("Database error [%s]: %s", error_id, exc)
            return error_response(
                StorageFailureError("Database service temporarily unavailable"),
                error_id
            )
        except Exception as exc:
            return self._handle_unexpected_error(request, exc)

    def _handle_unexpected_error(self, request: Request, exc: Exception) -> JSONResponse:
        error_id = str(uuid4())
        logger.error(
            "Unexpected error [%s] on %s %s: %s",
            error_id, request.method, request.url.path, exc,
            exc_info=True
        )

        platform_error = ReservationPlatformError(
            "An unexpected error occurred",
            error_code=ErrorCode.INTERNAL_ERROR,
            details={"error_type": type(exc).__name__} if self.debug else None
        )
        content = {
            "error": platform_error.to_dict(),
            "error_id": error_id,
            "timestamp": _timestamp()
        }
        if self.debug:
            content["debug"] = {
                "exception": str(exc),
                "traceback": traceback.format_exc()
            }

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content
        )
