"""Search coordinator: cache resolution, single-flight fetches and partial refresh."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from observability.metrics import cache_hits_total, cache_misses_total, search_singleflight_joins_total
from models import utc_now
from sourcing.adapters.base import SourceAdapter
from sourcing.cache import MemoryCache
from sourcing.constants import SOURCE_ORDER, SOURCE_TIMEOUT_SECONDS
from sourcing.executors import run_adapter_with_status
from sourcing.metrics import get_metrics_collector, log_search_start
from sourcing.models import CoordinatorOutcome, Listing, QueryResult, SourceStatusSnapshot
from sourcing.normalizers import normalize_listings
from sourcing.repository import PersistentSearchCache
from sourcing.utils.query import normalize_query

logger = logging.getLogger(__name__)


def merge_listings(
    carried_over: Mapping[str, Sequence[Listing]],
    fetched: Mapping[str, Sequence[Listing]],
    source_order: Sequence[str] = SOURCE_ORDER,
) -> Tuple[List[Listing], Dict[str, int]]:
    """Merge carried-over and freshly fetched listings into source-ordered groups.

    Counts are recomputed from the merged set, so they always match the
    listings they describe.
    """
    listings: List[Listing] = []
    counts: Dict[str, int] = {}
    for source in source_order:
        group = fetched[source] if source in fetched else carried_over.get(source, [])
        group = [listing for listing in group if listing.source == source]
        listings.extend(group)
        counts[source] = len(group)
    return listings, counts


class SearchCoordinator:
    """Resolves a query to a cached or freshly fetched ``QueryResult``.

    Decision order: memory cache, then persistent cache (complete record is a
    hit, a record with zero-count sources triggers a refresh of only those
    sources), otherwise a full fetch. Only complete records are kept in the
    memory cache. At most one fetch per normalized query
    is in flight; later callers wait on the same task.
    """

    def __init__(
        self,
        adapters: Mapping[str, SourceAdapter],
        memory_cache: MemoryCache,
        persistent_cache: Optional[PersistentSearchCache],
        *,
        timeout_seconds: float = SOURCE_TIMEOUT_SECONDS,
    ):
        unknown = set(adapters) - set(SOURCE_ORDER)
        if unknown:
            raise ValueError(f"Unknown sources: {sorted(unknown)}")
        self.adapters = dict(adapters)
        self.memory_cache = memory_cache
        self.persistent_cache = persistent_cache
        self.timeout_seconds = timeout_seconds
        self.source_order = [source for source in SOURCE_ORDER if source in self.adapters]
        self._in_flight: Dict[str, "asyncio.Task[CoordinatorOutcome]"] = {}

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    async def search(self, query: Optional[str]) -> CoordinatorOutcome:
        """Resolve ``query``. Raises ``InvalidQueryError`` before any cache or fetch work."""
        key = normalize_query(query)

        cached = self._memory_get(key)
        if cached is not None:
            cache_hits_total.labels(cache_type="memory").inc()
            logger.info(f"[SearchCoordinator] Memory cache hit for {key!r}")
            return CoordinatorOutcome(result=cached, resolution="memory")
        cache_misses_total.labels(cache_type="memory").inc()

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._resolve(key), name=f"search:{key}")
            self._in_flight[key] = task
            task.add_done_callback(lambda t, k=key: self._release(k, t))
        else:
            search_singleflight_joins_total.inc()
            logger.info(f"[SearchCoordinator] Joining in-flight fetch for {key!r}")

        # A caller going away must not cancel the fetch other waiters rely on
        outcome = await asyncio.shield(task)
        return outcome.model_copy(deep=True)

    def _release(self, key: str, task: "asyncio.Task[CoordinatorOutcome]") -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _resolve(self, key: str) -> CoordinatorOutcome:
        stored = await self._persistent_get(key)
        if stored is None:
            cache_misses_total.labels(cache_type="persistent").inc()
            return await self._fetch(key, self.source_order, carried_over={}, resolution="full")

        cache_hits_total.labels(cache_type="persistent").inc()
        stale = stored.zero_count_sources(self.source_order)
        if not stale:
            logger.info(f"[SearchCoordinator] Persistent cache hit for {key!r} (updated {stored.updated_at})")
            self._memory_put(key, stored)
            return CoordinatorOutcome(result=stored, resolution="persistent")

        logger.info(f"[SearchCoordinator] Partial refresh for {key!r}: re-fetching {stale}")
        carried_over = {
            source: stored.listings_for(source)
            for source in self.source_order
            if source not in stale
        }
        return await self._fetch(
            key,
            stale,
            carried_over=carried_over,
            resolution="partial",
            created_at=stored.created_at,
        )

    async def _fetch(
        self,
        key: str,
        sources: Sequence[str],
        *,
        carried_over: Mapping[str, Sequence[Listing]],
        resolution: str,
        created_at: Optional[datetime] = None,
    ) -> CoordinatorOutcome:
        metrics = get_metrics_collector()
        log_search_start(key, resolution, list(sources))

        with metrics.track_search(query=key, resolution=resolution) as tracked:
            metrics.record_carried_over(list(carried_over))

            # Wait for every source to settle; executors never raise
            settled = await asyncio.gather(
                *(
                    run_adapter_with_status(
                        source,
                        self.adapters[source],
                        key,
                        timeout_seconds=self.timeout_seconds,
                    )
                    for source in sources
                )
            )

            fetched: Dict[str, List[Listing]] = {}
            statuses: List[SourceStatusSnapshot] = []
            for source, (raw_listings, status) in zip(sources, settled):
                try:
                    fetched[source] = normalize_listings(source, raw_listings)
                except Exception as e:
                    logger.warning(f"[SearchCoordinator] Could not normalize {source} results: {e}")
                    fetched[source] = []
                    status.status = "error"
                    status.message = "Malformed results"
                status.result_count = len(fetched[source])
                if status.status == "ok" and not fetched[source]:
                    status.status = "empty"
                statuses.append(status)
                metrics.record_provider(
                    provider_id=source,
                    status=status.status,
                    result_count=status.result_count,
                    latency_ms=status.latency_ms or 0,
                    error_message=status.message,
                )

            listings, counts = merge_listings(carried_over, fetched, self.source_order)
            result = QueryResult(
                normalized_query=key,
                listings=listings,
                source_counts=counts,
                created_at=created_at,
            )

            updated_at = await self._persistent_put(key, result)
            result.updated_at = updated_at or utc_now()
            if result.created_at is None:
                result.created_at = result.updated_at
            self._memory_put(key, result)
            metrics.record_results(total=len(listings), persisted=updated_at is not None)

        logger.info(
            f"[SearchCoordinator] {resolution} fetch for {key!r} done: "
            f"{len(result.listings)} listings {result.source_counts} in {tracked.total_latency_ms:.0f}ms"
        )
        return CoordinatorOutcome(result=result, resolution=resolution, source_statuses=statuses)

    # Cache access below degrades instead of failing the search: a failed read
    # is a miss, a failed write just means the next request fetches again.

    def _memory_get(self, key: str) -> Optional[QueryResult]:
        try:
            return self.memory_cache.get(key)
        except Exception:
            logger.exception(f"[SearchCoordinator] Memory cache read failed for {key!r}")
            return None

    def _memory_put(self, key: str, result: QueryResult) -> None:
        # Records with a zero-count source stay out of memory so the next
        # request reaches the persistent tier and refreshes those sources.
        if not result.is_complete(self.source_order):
            return
        try:
            self.memory_cache.put(key, result)
        except Exception:
            logger.exception(f"[SearchCoordinator] Memory cache write failed for {key!r}")

    async def _persistent_get(self, key: str) -> Optional[QueryResult]:
        if self.persistent_cache is None:
            return None
        try:
            return await self.persistent_cache.get(key)
        except Exception:
            logger.exception(f"[SearchCoordinator] Persistent cache read failed for {key!r}")
            return None

    async def _persistent_put(self, key: str, result: QueryResult) -> Optional[datetime]:
        if self.persistent_cache is None:
            return None
        try:
            return await self.persistent_cache.put(key, result.listings, result.source_counts)
        except Exception:
            logger.exception(f"[SearchCoordinator] Persistent cache write failed for {key!r}")
            return None
