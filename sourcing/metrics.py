"""Search aggregation observability metrics.

Structured logging for the fetch pipeline. Tracked per fetch:
- which sources were fetched and which were carried over from the cache
- per-source status, result count and latency
- end-to-end latency and the resulting record size
"""

import logging
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

logger = logging.getLogger("sourcing.metrics")


@dataclass
class ProviderMetrics:
    """Metrics for a single source fetch."""
    provider_id: str
    status: str  # ok, empty, error, timeout
    result_count: int
    latency_ms: float
    error_message: Optional[str] = None


@dataclass
class SearchMetrics:
    """Aggregated metrics for a single fetch or partial refresh."""
    query: str = ""
    resolution: str = "full"
    carried_over: List[str] = field(default_factory=list)
    total_results: int = 0
    providers_called: int = 0
    providers_succeeded: int = 0
    providers_failed: int = 0
    total_latency_ms: float = 0.0
    provider_metrics: List[ProviderMetrics] = field(default_factory=list)
    persisted: bool = False

    def success_rate(self) -> float:
        """Share of fetched sources that returned at least one listing."""
        if self.providers_called == 0:
            return 0.0
        return self.providers_succeeded / self.providers_called

    def has_results(self) -> bool:
        return self.total_results > 0


_current_metrics: ContextVar[Optional[SearchMetrics]] = ContextVar("search_metrics", default=None)


class SearchMetricsCollector:
    """Collector for search operation metrics.

    The metrics being collected live in a context variable, so concurrent
    fetches running as separate tasks never see each other's numbers.
    """

    @contextmanager
    def track_search(self, query: str = "", resolution: str = "full") -> Iterator[SearchMetrics]:
        metrics = SearchMetrics(query=query, resolution=resolution)
        token = _current_metrics.set(metrics)
        started = time.time()
        try:
            yield metrics
        finally:
            metrics.total_latency_ms = (time.time() - started) * 1000
            _current_metrics.reset(token)
            self._log_metrics(metrics)

    def record_provider(self, provider_id: str, status: str, result_count: int,
                        latency_ms: float, error_message: Optional[str] = None):
        metrics = _current_metrics.get()
        if not metrics:
            return

        metrics.provider_metrics.append(
            ProviderMetrics(
                provider_id=provider_id,
                status=status,
                result_count=result_count,
                latency_ms=latency_ms,
                error_message=error_message,
            )
        )
        metrics.providers_called += 1
        if status == "ok":
            metrics.providers_succeeded += 1
        else:
            metrics.providers_failed += 1

    def record_carried_over(self, sources: List[str]):
        metrics = _current_metrics.get()
        if metrics:
            metrics.carried_over = list(sources)

    def record_results(self, total: int, persisted: bool):
        metrics = _current_metrics.get()
        if not metrics:
            return
        metrics.total_results = total
        metrics.persisted = persisted

    def _log_metrics(self, m: SearchMetrics):
        provider_summary = [
            {
                "id": pm.provider_id,
                "status": pm.status,
                "results": pm.result_count,
                "latency_ms": round(pm.latency_ms, 1),
            }
            for pm in m.provider_metrics
        ]

        log_data = {
            "event": "search_complete",
            "query_length": len(m.query),
            "resolution": m.resolution,
            "carried_over": m.carried_over,
            "total_results": m.total_results,
            "providers": {
                "called": m.providers_called,
                "succeeded": m.providers_succeeded,
                "failed": m.providers_failed,
                "success_rate": round(m.success_rate(), 2),
                "details": provider_summary,
            },
            "persisted": m.persisted,
            "latency_ms": round(m.total_latency_ms, 1),
        }

        if m.providers_called > 0 and m.providers_failed == m.providers_called:
            logger.error("Search failed - all sources returned nothing", extra=log_data)
        elif m.providers_failed > 0:
            logger.warning("Search completed with source failures", extra=log_data)
        else:
            logger.info("Search completed successfully", extra=log_data)


_metrics_collector = SearchMetricsCollector()


def get_metrics_collector() -> SearchMetricsCollector:
    """Get the global metrics collector instance."""
    return _metrics_collector


def log_search_start(query: str, resolution: str, sources: List[str]):
    logger.info(
        "Search started",
        extra={
            "event": "search_start",
            "query_length": len(query),
            "resolution": resolution,
            "sources_requested": sources,
        },
    )


def log_provider_result(provider_id: str, status: str, result_count: int, latency_ms: float):
    logger.info(
        f"Source {provider_id} completed",
        extra={
            "event": "provider_complete",
            "provider_id": provider_id,
            "status": status,
            "result_count": result_count,
            "latency_ms": round(latency_ms, 1),
        },
    )
