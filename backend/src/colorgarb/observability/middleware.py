"""Request correlation and timing middleware."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .correlation import start_request
from .logging_config import get_logger
from .metrics import http_request_duration_seconds

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Assign a request id, echo it back and time the request.

    Durations are labelled by route template (/api/v1/orders/{order_id})
    rather than raw path so order ids do not explode metric cardinality.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = start_request(request.headers.get(REQUEST_ID_HEADER))
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"{request.method} {request.url.path} raised after "
                             f"{(time.perf_counter() - started) * 1000:.1f}ms")
            raise

        elapsed = time.perf_counter() - started
        route = request.scope.get("route")
        http_request_duration_seconds.labels(
            method=request.method,
            route=getattr(route, "path", "unmatched"),
            status=str(response.status_code),
        ).observe(elapsed)
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed * 1000:.1f}ms")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
