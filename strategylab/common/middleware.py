"""HTTP middleware for StrategyLab.

Three layers, registered in strategylab/main.py (outermost first):
- RequestIdMiddleware: tags the request/response cycle with an ID
- RequestLoggingMiddleware: one access log line per request
- PrometheusMiddleware: request count, latency and in-flight gauge

Usage:
    from strategylab.common.middleware import request_id_var
    rid = request_id_var.get("")  # Current request ID, "" outside a request
"""

from __future__ import annotations

import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from strategylab.common.logging import get_logger
from strategylab.common.metrics import (
    HTTP_REQUEST_DURATION_SECONDS,
    HTTP_REQUESTS_IN_PROGRESS,
    HTTP_REQUESTS_TOTAL,
)

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

logger = get_logger("SYSTEM")

# Liveness probes and Prometheus scrapes are neither logged nor counted
_SKIP_PATHS = frozenset({"/health", "/metrics"})


def route_template(request: Request) -> str:
    """Template of the route that handled the request, e.g. ``/items/{item_id}``.

    Only available once routing has run (after ``call_next``). Requests that
    matched no route report their raw path.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Propagate ``X-Request-ID``, generating a hex UUID4 when the client sent none.

    The ID is stored in ``request_id_var`` for the structured logger and
    echoed back in the response header.
    """

    async def dispatch(self, request: Request, call_next) -> Response:  # noqa: ANN001
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex
        request_id_var.set(rid)

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Emit ``METHOD /path STATUS`` with route and duration as structured data."""

    async def dispatch(self, request: Request, call_next) -> Response:  # noqa: ANN001
        path = request.url.path
        if path in _SKIP_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)

        logger.info(
            f"{request.method} {path} {response.status_code}",
            extra={
                "data": {
                    "method": request.method,
                    "path": path,
                    "route": route_template(request),
                    "status": response.status_code,
                    "duration_ms": elapsed_ms,
                    "request_id": request_id_var.get(""),
                }
            },
        )
        return response


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Record HTTP request metrics labelled by route template.

    A handler that raises is counted with status 500.
    """

    async def dispatch(self, request: Request, call_next) -> Response:  # noqa: ANN001
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        method = request.method
        in_progress = HTTP_REQUESTS_IN_PROGRESS.labels(method=method)
        in_progress.inc()
        started = time.perf_counter()
        status_code = "500"

        try:
            response = await call_next(request)
            status_code = str(response.status_code)
            return response
        finally:
            in_progress.dec()
            template = route_template(request)
            HTTP_REQUESTS_TOTAL.labels(
                method=method, path_template=template, status_code=status_code
            ).inc()
            HTTP_REQUEST_DURATION_SECONDS.labels(method=method, path_template=template).observe(
                time.perf_counter() - started
            )
