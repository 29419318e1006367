"""
Access Logging Middleware

One log line per request through the 'shortener' logger hierarchy:

    METHOD PATH STATUS TIME_MS user:<caller id> ip:<client>

Server errors are logged at WARNING so they stand out from normal traffic.
The processing time is also returned in the X-Process-Time header.

Added after the identity middleware, so it wraps it and can read the caller
identity from the shared request state once the response is ready.
"""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

PROCESS_TIME_HEADER = "X-Process-Time"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that logs every request with its outcome and duration."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        user_id = getattr(request.state, "user_id", None)
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} {response.status_code} "
            f"{process_time * 1000:.2f}ms user:{user_id} ip:{self._client_ip(request)}"
        )

        response.headers[PROCESS_TIME_HEADER] = f"{process_time:.6f}"
        return response

    @staticmethod
    def _client_ip(request: Request) -> str:
        # first hop of X-Forwarded-For when behind a proxy
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        return request.client.host if request.client else "unknown"


def add_logging_middleware(app):
    """
    Add logging middleware to FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(LoggingMiddleware)
