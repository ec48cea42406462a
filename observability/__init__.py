"""
Observability infrastructure for the search API.

Provides:
- Structured logging with correlation IDs
- Sentry error tracking
- Prometheus metrics
- Health check utilities
"""

from .logging import get_logger, correlation_id_context, get_correlation_id, setup_logging
from .metrics import (
    metrics_registry,
    http_requests_total,
    http_request_duration_seconds,
    http_requests_in_progress,
    search_provider_duration_seconds,
    cache_hits_total,
    cache_misses_total,
)

__all__ = [
    "get_logger",
    "correlation_id_context",
    "get_correlation_id",
    "setup_logging",
    "metrics_registry",
    "http_requests_total",
    "http_request_duration_seconds",
    "http_requests_in_progress",
    "search_provider_duration_seconds",
    "cache_hits_total",
    "cache_misses_total",
]
