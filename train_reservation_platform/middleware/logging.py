"""
Request logging middleware with request-id tracing.
"""

import contextvars
import logging
import time
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Read by the logging filters so every record carries the request id
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar('request_id', default='no-request-id')

_QUIET_PATHS = {"/", "/health", "/docs", "/redoc", "/openapi.json"}


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware tagging each request with an id and logging its outcome."""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.time()
        try:
            response = await call_next(request)
            process_time = time.time() - start_time

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{process_time:.4f}"

            self._log_response(request, response.status_code, process_time)
            return response
        except Exception:
            logger.exception(
                "Request exception: %s %s (%.4fs)",
                request.method, request.url.path, time.time() - start_time
            )
            raise
        finally:
            request_id_var.reset(token)

    def _log_response(self, request: Request, status_code: int, process_time: float) -> None:
        message = "%s %s -> %d (%.4fs)"
        args = (request.method, request.url.path, status_code, process_time)

        if request.url.path in _QUIET_PATHS:
            logger.debug(message, *args)
        elif status_code >= 500:
            logger.error(message, *args)
        elif status_code >= 400:
            logger.warning(message, *args)
        else:
            logger.info(message, *args)

        if process_time > self.slow_request_threshold:
            logger.warning(
                "Slow request detected: %s %s took %.4fs",
                request.method, request.url.path, process_time
            )
