"""
HTTP observability middleware.

CorrelationMiddleware binds the caller's X-Correlation-ID (or a new one) for
the request and echoes it on the response. RequestLoggingMiddleware logs each
request with status and duration, skipping liveness checks and warning on
slow requests. When the application state carries a MetricsStore, each
logged request is also recorded as an api.request timing.

Dependencies: fastapi, starlette, buddy.observability
System role: Request/response observability injection
"""

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from buddy.observability.correlation import correlation_scope
from buddy.observability.metrics import MetricsStore

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
QUIET_PATHS = frozenset({"/api/v1/health/live"})
SLOW_REQUEST_MS = 5000.0


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of each request."""

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        method = request.method
        metrics: MetricsStore | None = getattr(request.app.state, "metrics", None)
        started_at = time.time()
        start = time.perf_counter()
        logger.info(
            f"{method} {path}",
            extra={
                "method": method,
                "path": path,
                "query_string": request.url.query or None,
                "client_host": request.client.host if request.client else None,
            },
        )

        try:
            response: Response = await call_next(request)
        except Exception as e:
            logger.exception(
                f"{method} {path} - Unhandled {type(e).__name__}",
                extra={
                    "method": method,
                    "path": path,
                    "process_time_ms": _elapsed_ms(start),
                    "error_type": type(e).__name__,
                },
            )
            _record(metrics, method, path, 500, start, started_at)
            raise

        elapsed = _record(metrics, method, path, response.status_code, start, started_at)
        level = logging.WARNING if elapsed >= SLOW_REQUEST_MS else logging.INFO
        logger.log(
            level,
            f"{method} {path} - {response.status_code}",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "process_time_ms": elapsed,
            },
        )
        return response


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Bind a correlation ID per request and return it in a response header."""

    async def dispatch(self, request: Request, call_next):
        with correlation_scope(request.headers.get(CORRELATION_HEADER)) as correlation_id:
            response: Response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def _record(
    metrics: MetricsStore | None,
    method: str,
    path: str,
    status_code: int,
    start: float,
    started_at: float,
) -> float:
    elapsed = _elapsed_ms(start)
    if metrics is not None:
        metrics.record(
            "api.request",
            elapsed,
            {"method": method, "path": path, "status": str(status_code)},
            timestamp=started_at,
        )
    return elapsed
