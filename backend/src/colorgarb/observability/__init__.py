"""Observability: structured logging, request correlation, metrics, health."""

from .correlation import bind_caller, get_request_id, start_request
from .logging_config import configure_logging, get_logger
from .middleware import CorrelationMiddleware

__all__ = [
    "bind_caller",
    "get_request_id",
    "start_request",
    "configure_logging",
    "get_logger",
    "CorrelationMiddleware",
]
