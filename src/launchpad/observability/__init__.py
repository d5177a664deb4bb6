"""Structured logging and Prometheus metrics."""

from .logging import configure_logging, get_logger, request_id_ctx
from .metrics import metrics_text
from .middleware import RequestIdMiddleware, RequestLoggingMiddleware

__all__ = [
    "configure_logging",
    "get_logger",
    "metrics_text",
    "RequestIdMiddleware",
    "RequestLoggingMiddleware",
    "request_id_ctx",
]
