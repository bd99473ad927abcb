"""
Request middleware.

- Correlation ID tracking, exposed to logging through CorrelationLogFilter
"""

from .correlation import (
    CorrelationIdMiddleware,
    CorrelationLogFilter,
    correlation_id_ctx,
    request_id_ctx,
)

__all__ = [
    "CorrelationIdMiddleware",
    "CorrelationLogFilter",
    "correlation_id_ctx",
    "request_id_ctx",
]
