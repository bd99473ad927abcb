"""
Request correlation for log lines and error bodies.

Headers:
- X-Correlation-ID: client session id, kept across requests
- X-Request-ID: one id per request

Both are generated when the client does not send them, stored in context
variables for the lifetime of the request and echoed on the response.
"""

import logging
import time
import uuid
from contextvars import ContextVar
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")


def generate_id() -> str:
    """Short random id, long enough to grep for."""
    return uuid.uuid4().hex[:12]


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind correlation/request ids to the request and log its outcome."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or generate_id()
        request_id = request.headers.get("X-Request-ID") or generate_id()

        correlation_token = correlation_id_ctx.set(correlation_id)
        request_token = request_id_ctx.set(request_id)
        request.state.correlation_id = correlation_id
        request.state.request_id = request_id

        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                "%s %s -> %d (%.1fms)",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
            )
            response.headers["X-Correlation-ID"] = correlation_id
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{elapsed_ms:.1f}ms"
            return response
        finally:
            correlation_id_ctx.reset(correlation_token)
            request_id_ctx.reset(request_token)


def get_correlation_id() -> str:
    return correlation_id_ctx.get() or "unknown"


def get_request_id() -> str:
    return request_id_ctx.get() or "unknown"


class CorrelationLogFilter(logging.Filter):
    """
    Inject correlation ids into every log record.

    Usage:
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationLogFilter())
        handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(correlation_id)s] [%(request_id)s] %(message)s'
        ))
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        record.request_id = get_request_id()
        return True
