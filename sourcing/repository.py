"""Durable search cache backed by SQLModel / async SQLAlchemy."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import delete, func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import select

from database import session_factory
from models import SearchCacheEntry, as_utc, utc_now
from sourcing.models import CacheStats, Listing, QueryResult

logger = logging.getLogger(__name__)


def _to_query_result(entry: SearchCacheEntry) -> QueryResult:
    return QueryResult(
        normalized_query=entry.query,
        listings=[Listing.model_validate(item) for item in entry.results or []],
        source_counts={str(k): int(v) for k, v in (entry.sources or {}).items()},
        created_at=as_utc(entry.created_at),
        updated_at=as_utc(entry.updated_at),
    )


class PersistentSearchCache:
    """One row per normalized query in the ``searches`` table.

    ``put`` is a single upsert statement, so concurrent writers for the same
    key resolve as last-writer-wins without torn rows.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._session = session_factory(engine)

    def _insert(self):
        if self.engine.dialect.name == "postgresql":
            return pg_insert(SearchCacheEntry.__table__)
        return sqlite_insert(SearchCacheEntry.__table__)

    async def get(self, query: str) -> Optional[QueryResult]:
        async with self._session() as session:
            result = await session.exec(
                select(SearchCacheEntry).where(SearchCacheEntry.query == query)
            )
            entry = result.first()
        if entry is None:
            return None
        return _to_query_result(entry)

    async def put(
        self,
        query: str,
        listings: List[Listing],
        source_counts: Dict[str, int],
    ) -> datetime:
        """Insert or replace the record for ``query``; ``created_at`` survives updates."""
        now = utc_now()
        stmt = self._insert().values(
            query=query,
            results=[listing.model_dump(mode="json") for listing in listings],
            sources=dict(source_counts),
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["query"],
            set_={
                "results": stmt.excluded.results,
                "sources": stmt.excluded.sources,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        async with self._session() as session:
            await session.execute(stmt)
            await session.commit()
        return now

    async def delete(self, query: str) -> None:
        async with self._session() as session:
            await session.execute(
                delete(SearchCacheEntry).where(SearchCacheEntry.query == query)
            )
            await session.commit()

    async def prune(self, max_age: timedelta) -> int:
        """Delete records whose last update is older than ``max_age``."""
        cutoff = utc_now() - max_age
        async with self._session() as session:
            result = await session.execute(
                delete(SearchCacheEntry).where(SearchCacheEntry.updated_at < cutoff)
            )
            await session.commit()
        deleted = result.rowcount or 0
        logger.info(f"[SearchCache] Pruned {deleted} records last updated before {cutoff.isoformat()}")
        return deleted

    async def stats(self) -> CacheStats:
        async with self._session() as session:
            result = await session.exec(
                select(func.count(SearchCacheEntry.id), func.max(SearchCacheEntry.updated_at))
            )
            count, last_update = result.one()
        return CacheStats(total_searches=count or 0, last_update=as_utc(last_update))
