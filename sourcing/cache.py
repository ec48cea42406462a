"""In-process, time-boxed cache of query results."""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from sourcing.constants import MEMORY_CACHE_MAX_ENTRIES, MEMORY_CACHE_TTL_SECONDS
from sourcing.models import QueryResult


class MemoryCache:
    """TTL mapping from normalized query to ``QueryResult``.

    Lives for the lifetime of the process and is only a fast path in front of
    the persistent cache. Entries are replaced wholesale on ``put``; once
    ``max_entries`` is reached the oldest write is evicted.
    """

    def __init__(
        self,
        ttl_seconds: float = MEMORY_CACHE_TTL_SECONDS,
        max_entries: int = MEMORY_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, QueryResult]]" = OrderedDict()

    def get(self, key: str) -> Optional[QueryResult]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value.model_copy(deep=True)

    def put(self, key: str, value: QueryResult) -> None:
        self._entries.pop(key, None)
        self._entries[key] = (self._clock() + self.ttl_seconds, value.model_copy(deep=True))
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
