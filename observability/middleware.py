"""
FastAPI middleware for observability.

Provides:
- Request correlation ID injection
- Automatic HTTP metrics collection
- Request/response logging
"""

import time
from typing import Callable, Iterable, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .logging import get_logger, correlation_id_context
from .metrics import (
    http_requests_total,
    http_request_duration_seconds,
    http_requests_in_progress,
)

logger = get_logger(__name__)

SLOW_REQUEST_SECONDS = 30.0


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Adds a correlation ID to every request, records RED metrics and logs
    request start/completion. Health and metrics probes are not logged.
    """

    def __init__(
        self,
        app: ASGIApp,
        enable_request_logging: bool = True,
        known_paths: Optional[Iterable[str]] = None,
    ):
        super().__init__(app)
        self.enable_request_logging = enable_request_logging
        self.known_paths = set(known_paths or ())

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Request-ID") or request.headers.get("X-Correlation-ID")

        with correlation_id_context(correlation_id) as req_id:
            request.state.correlation_id = req_id

            path = self._metric_path(request.url.path)
            method = request.method
            quiet = self._is_probe(request) or not self.enable_request_logging

            http_requests_in_progress.labels(method=method, endpoint=path).inc()
            start_time = time.time()

            try:
                if not quiet:
                    logger.info(
                        "Request started",
                        extra={
                            "method": method,
                            "path": path,
                            "client_host": request.client.host if request.client else None,
                        },
                    )

                response = await call_next(request)
                duration = time.time() - start_time

                http_requests_total.labels(method=method, endpoint=path, status=response.status_code).inc()
                http_request_duration_seconds.labels(method=method, endpoint=path).observe(duration)
                response.headers["X-Request-ID"] = req_id

                if not quiet:
                    logger.info(
                        "Request completed",
                        extra={
                            "method": method,
                            "path": path,
                            "status_code": response.status_code,
                            "duration_seconds": round(duration, 3),
                        },
                    )
                # Full fetches legitimately take up to one source timeout
                if duration > SLOW_REQUEST_SECONDS and not self._is_probe(request):
                    logger.warning(
                        "Slow request detected",
                        extra={"method": method, "path": path, "duration_seconds": round(duration, 3)},
                    )

                return response

            except Exception as exc:
                duration = time.time() - start_time
                http_requests_total.labels(method=method, endpoint=path, status=500).inc()
                http_request_duration_seconds.labels(method=method, endpoint=path).observe(duration)
                logger.error(
                    "Request failed",
                    extra={
                        "method": method,
                        "path": path,
                        "duration_seconds": round(duration, 3),
                        "error_type": type(exc).__name__,
                    },
                    exc_info=True,
                )
                raise

            finally:
                http_requests_in_progress.labels(method=method, endpoint=path).dec()

    def _metric_path(self, path: str) -> str:
        """Collapse unknown paths into one label to bound metric cardinality."""
        if not self.known_paths or path in self.known_paths:
            return path
        return "other"

    def _is_probe(self, request: Request) -> bool:
        path = request.url.path
        return path.startswith("/health") or path.startswith("/metrics") or path == "/api/health"
