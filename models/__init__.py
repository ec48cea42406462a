"""
Table models.

- search_cache.py: durable per-query search cache
"""

from models.search_cache import SearchCacheEntry, as_utc, utc_now

__all__ = [
    "SearchCacheEntry",
    "as_utc",
    "utc_now",
]
