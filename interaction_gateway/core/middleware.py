"""Middleware for request logging with correlation IDs."""

import logging
import time
import uuid
from typing import Optional, Callable
from contextvars import ContextVar

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

request_id_context: ContextVar[Optional[str]] = ContextVar("request_id_context", default=None)


def get_current_request_id() -> Optional[str]:
    """Get current request correlation ID from context."""
    return request_id_context.get()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log request and response details with correlation ID.

    Logs:
    - Request method, path, correlation_id
    - Response status code and duration
    - Errors with stack traces
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Log request and response."""
        correlation_id = str(uuid.uuid4())
        token = request_id_context.set(correlation_id)

        start_time = time.time()

        logger.info(
            f"Request started: method={request.method} path={request.url.path} "
            f"correlation_id={correlation_id}"
        )

        try:
            response = await call_next(request)

            duration_ms = (time.time() - start_time) * 1000

            logger.info(
                f"Request completed: method={request.method} path={request.url.path} "
                f"status={response.status_code} duration_ms={duration_ms:.2f} "
                f"correlation_id={correlation_id}"
            )

            # Error responses already set it
            response.headers.setdefault("X-Correlation-ID", correlation_id)

            return response

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000

            logger.error(
                f"Request failed: method={request.method} path={request.url.path} "
                f"duration_ms={duration_ms:.2f} correlation_id={correlation_id} error={str(e)}",
                exc_info=True
            )

            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "internal_server_error",
                    "message": "The interaction handler failed.",
                    "correlation_id": correlation_id
                },
                headers={"X-Correlation-ID": correlation_id}
            )
        finally:
            request_id_context.reset(token)
