"""
Request logging middleware.

Every request gets a short request id (taken from ``x-request-id`` when the
dashboard sends one) that is bound into structlog's context, so the custody
client's own log lines can be correlated with the route that triggered them.
Health checks are logged at DEBUG so they do not drown out wallet traffic.
"""

import logging
import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("walletdesk.http")

REQUEST_ID_HEADER = "x-request-id"
HEALTH_CHECK_PATHS = frozenset({"/", "/healthz"})


def log_level_for(path: str, status_code: int) -> int:
    """Level for the per-request line: by status, with successful health checks demoted."""
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    if path in HEALTH_CHECK_PATHS:
        return logging.DEBUG
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind a request id and log one line per completed request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        path = request.url.path

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, route=path)

        started = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            logger.log(
                log_level_for(path, status_code),
                "request_completed",
                method=request.method,
                status=status_code,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
                client=request.client.host if request.client else None,
            )
