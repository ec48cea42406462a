"""Tests for search pipeline observability metrics."""

import asyncio
import logging

import pytest
from sourcing.metrics import (
    SearchMetrics,
    ProviderMetrics,
    SearchMetricsCollector,
    get_metrics_collector,
    log_search_start,
    log_provider_result,
)


class TestSearchMetrics:
    """Tests for SearchMetrics dataclass."""

    def test_success_rate_with_all_succeeded(self):
        metrics = SearchMetrics(providers_called=3, providers_succeeded=3)
        assert metrics.success_rate() == 1.0

    def test_success_rate_with_partial_failure(self):
        metrics = SearchMetrics(providers_called=4, providers_succeeded=2, providers_failed=2)
        assert metrics.success_rate() == 0.5

    def test_success_rate_with_no_providers(self):
        assert SearchMetrics(providers_called=0).success_rate() == 0.0

    def test_has_results(self):
        assert SearchMetrics(total_results=5).has_results() is True
        assert SearchMetrics(total_results=0).has_results() is False


class TestSearchMetricsCollector:
    """Tests for SearchMetricsCollector."""

    def test_track_search_context_manager(self):
        collector = SearchMetricsCollector()

        with collector.track_search(query="phone holder", resolution="partial") as metrics:
            collector.record_carried_over(["thingiverse", "makerworld"])
            collector.record_provider("printables", "ok", 5, 100.0)
            collector.record_results(total=15, persisted=True)

        assert metrics.query == "phone holder"
        assert metrics.resolution == "partial"
        assert metrics.carried_over == ["thingiverse", "makerworld"]
        assert metrics.providers_called == 1
        assert metrics.providers_succeeded == 1
        assert metrics.total_results == 15
        assert metrics.persisted is True
        assert metrics.total_latency_ms >= 0

    def test_non_ok_statuses_count_as_failures(self):
        collector = SearchMetricsCollector()

        with collector.track_search(query="q") as metrics:
            collector.record_provider("thingiverse", "ok", 3, 10.0)
            collector.record_provider("printables", "timeout", 0, 45000.0, "Search timed out after 45s")
            collector.record_provider("makerworld", "empty", 0, 20.0)

        assert metrics.providers_failed == 2
        assert isinstance(metrics.provider_metrics[1], ProviderMetrics)
        assert metrics.provider_metrics[1].error_message == "Search timed out after 45s"

    def test_record_outside_tracking_is_ignored(self):
        collector = SearchMetricsCollector()
        collector.record_provider("thingiverse", "ok", 1, 1.0)
        collector.record_results(total=1, persisted=False)

    @pytest.mark.asyncio
    async def test_concurrent_tracking_is_isolated(self):
        collector = get_metrics_collector()

        async def track(query, count):
            with collector.track_search(query=query) as metrics:
                await asyncio.sleep(0)
                collector.record_provider("thingiverse", "ok", count, 1.0)
                await asyncio.sleep(0)
                collector.record_results(total=count, persisted=True)
            return metrics

        a, b = await asyncio.gather(track("a", 1), track("b", 2))

        assert (a.providers_called, a.total_results) == (1, 1)
        assert (b.providers_called, b.total_results) == (1, 2)

    def test_all_failed_logs_error(self, caplog):
        collector = SearchMetricsCollector()

        with caplog.at_level(logging.INFO, logger="sourcing.metrics"):
            with collector.track_search(query="q"):
                collector.record_provider("thingiverse", "error", 0, 5.0, "boom")

        assert any(r.levelno == logging.ERROR for r in caplog.records)


def test_log_helpers_emit_structured_events(caplog):
    with caplog.at_level(logging.INFO, logger="sourcing.metrics"):
        log_search_start("phone holder", "full", ["thingiverse"])
        log_provider_result("thingiverse", "ok", 10, 250.0)

    events = [getattr(r, "event", None) for r in caplog.records]
    assert events == ["search_start", "provider_complete"]
