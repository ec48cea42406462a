"""
Data retention utilities.

Search cache records are pruned by age (last update), not by count: once at
startup and then periodically while the process runs.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Optional

from observability.metrics import cache_pruned_records_total
from sourcing.constants import CACHE_PRUNE_INTERVAL_SECONDS, CACHE_RETENTION_DAYS
from sourcing.repository import PersistentSearchCache

logger = logging.getLogger(__name__)


async def prune_search_cache(
    cache: PersistentSearchCache,
    retention_days: int = CACHE_RETENTION_DAYS,
) -> int:
    """Delete search cache records not updated within the retention window.

    Storage errors are logged and reported as zero deletions.
    """
    try:
        deleted = await cache.prune(timedelta(days=retention_days))
    except Exception:
        logger.exception("[RETENTION] Search cache prune failed")
        return 0
    cache_pruned_records_total.inc(deleted)
    if deleted:
        logger.info(f"[RETENTION] Deleted {deleted} search cache records older than {retention_days} days")
    return deleted


async def run_periodic_prune(
    cache: PersistentSearchCache,
    interval_seconds: float = CACHE_PRUNE_INTERVAL_SECONDS,
    retention_days: int = CACHE_RETENTION_DAYS,
    max_runs: Optional[int] = None,
) -> None:
    """Prune every ``interval_seconds`` until cancelled (or ``max_runs`` passes)."""
    runs = 0
    while max_runs is None or runs < max_runs:
        await asyncio.sleep(interval_seconds)
        await prune_search_cache(cache, retention_days)
        runs += 1
