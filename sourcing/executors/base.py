"""Source executor with timeout boundary and status instrumentation."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Tuple, TYPE_CHECKING

from observability.metrics import (
    search_provider_duration_seconds,
    search_provider_errors_total,
    search_results_count,
)
from sourcing.constants import SOURCE_TIMEOUT_SECONDS
from sourcing.metrics import log_provider_result
from sourcing.models import RawListing, SourceStatusSnapshot

if TYPE_CHECKING:
    from sourcing.adapters.base import SourceAdapter

logger = logging.getLogger(__name__)


def _record(status: SourceStatusSnapshot, elapsed: float) -> None:
    search_provider_duration_seconds.labels(provider=status.source).observe(elapsed)
    search_results_count.labels(provider=status.source).observe(status.result_count)
    if status.status in ("error", "timeout"):
        search_provider_errors_total.labels(provider=status.source, error_type=status.status).inc()
    log_provider_result(status.source, status.status, status.result_count, status.latency_ms or 0)


async def run_adapter_with_status(
    source: str,
    adapter: "SourceAdapter",
    query: str,
    *,
    timeout_seconds: float = SOURCE_TIMEOUT_SECONDS,
) -> Tuple[List[RawListing], SourceStatusSnapshot]:
    """Run one adapter call under its time budget. Never raises.

    A timeout or an exception leaking past the adapter is reported exactly
    like an adapter-reported empty result.
    """
    started = time.monotonic()
    try:
        results = await asyncio.wait_for(adapter.fetch(query), timeout=timeout_seconds)
        results = list(results or [])
        status = SourceStatusSnapshot(
            source=source,
            status="ok" if results else "empty",
            result_count=len(results),
        )
    except asyncio.TimeoutError:
        results = []
        status = SourceStatusSnapshot(
            source=source,
            status="timeout",
            message=f"Search timed out after {timeout_seconds:g}s",
        )
    except Exception as e:
        error_msg = str(e)
        logger.warning(f"[{source}] Search error: {type(e).__name__}: {error_msg}")
        results = []
        status = SourceStatusSnapshot(
            source=source,
            status="error",
            message=f"Search failed: {error_msg[:100]}",
        )

    elapsed = time.monotonic() - started
    status.latency_ms = int(elapsed * 1000)
    _record(status, elapsed)
    return results, status
