"""Tests for the per-source timeout boundary."""

import pytest

from sourcing.executors import run_adapter_with_status


@pytest.mark.asyncio
async def test_ok_status_with_results(make_adapter):
    results, status = await run_adapter_with_status(
        "printables", make_adapter("printables", 3), "clip", timeout_seconds=1.0
    )

    assert len(results) == 3
    assert status.status == "ok"
    assert status.result_count == 3
    assert status.latency_ms is not None


@pytest.mark.asyncio
async def test_empty_status_without_results(make_adapter):
    results, status = await run_adapter_with_status(
        "printables", make_adapter("printables", 0), "clip", timeout_seconds=1.0
    )

    assert results == []
    assert status.status == "empty"


@pytest.mark.asyncio
async def test_timeout_reported_as_empty(make_adapter):
    results, status = await run_adapter_with_status(
        "makerworld", make_adapter("makerworld", 2, delay=5.0), "clip", timeout_seconds=0.05
    )

    assert results == []
    assert status.status == "timeout"
    assert status.message == "Search timed out after 0.05s"


@pytest.mark.asyncio
async def test_exception_reported_as_empty(make_adapter):
    adapter = make_adapter("thingiverse", 2, error=ConnectionError("reset by peer"))

    results, status = await run_adapter_with_status("thingiverse", adapter, "clip", timeout_seconds=1.0)

    assert results == []
    assert status.status == "error"
    assert "reset by peer" in status.message
