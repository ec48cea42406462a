"""
Prometheus metrics for the search API.

RED metrics for HTTP plus per-source fetch and cache-tier metrics.
"""

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    REGISTRY,
)

metrics_registry = REGISTRY

# HTTP Metrics (RED - Rate, Errors, Duration)
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=metrics_registry,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 15.0, 30.0, 60.0],
    registry=metrics_registry,
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests in progress",
    ["method", "endpoint"],
    registry=metrics_registry,
)

# Source fetch metrics
search_provider_duration_seconds = Histogram(
    "search_provider_duration_seconds",
    "Source adapter fetch duration in seconds",
    ["provider"],
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 45.0, 60.0],
    registry=metrics_registry,
)

search_provider_errors_total = Counter(
    "search_provider_errors_total",
    "Total source fetches that failed or timed out",
    ["provider", "error_type"],
    registry=metrics_registry,
)

search_results_count = Histogram(
    "search_results_count",
    "Number of listings returned per source fetch",
    ["provider"],
    buckets=[0, 1, 2, 5, 10, 20],
    registry=metrics_registry,
)

# Cache metrics
cache_hits_total = Counter(
    "cache_hits_total",
    "Total cache hits",
    ["cache_type"],  # memory, persistent
    registry=metrics_registry,
)

cache_misses_total = Counter(
    "cache_misses_total",
    "Total cache misses",
    ["cache_type"],
    registry=metrics_registry,
)

search_singleflight_joins_total = Counter(
    "search_singleflight_joins_total",
    "Requests that attached to an already running fetch for the same query",
    registry=metrics_registry,
)

cache_pruned_records_total = Counter(
    "cache_pruned_records_total",
    "Persistent cache records deleted by retention pruning",
    registry=metrics_registry,
)
