"""
Centralized FastAPI dependencies.

The browser session, both cache tiers and the coordinator are process-wide
singletons created on first use; tests replace them through
``app.dependency_overrides``.
"""

import logging
from typing import Optional

from database import engine
from sourcing import (
    BrowserSession,
    MemoryCache,
    PersistentSearchCache,
    SearchCoordinator,
    build_default_adapters,
)

logger = logging.getLogger(__name__)

_browser: Optional[BrowserSession] = None
_memory_cache: Optional[MemoryCache] = None
_persistent_cache: Optional[PersistentSearchCache] = None
_coordinator: Optional[SearchCoordinator] = None


def get_browser() -> BrowserSession:
    global _browser
    if _browser is None:
        _browser = BrowserSession()
    return _browser


def get_memory_cache() -> MemoryCache:
    global _memory_cache
    if _memory_cache is None:
        _memory_cache = MemoryCache()
    return _memory_cache


def get_persistent_cache() -> PersistentSearchCache:
    global _persistent_cache
    if _persistent_cache is None:
        _persistent_cache = PersistentSearchCache(engine)
    return _persistent_cache


def get_coordinator() -> SearchCoordinator:
    global _coordinator
    if _coordinator is None:
        _coordinator = SearchCoordinator(
            build_default_adapters(get_browser()),
            get_memory_cache(),
            get_persistent_cache(),
        )
    return _coordinator


async def close_resources() -> None:
    """Release the browser and database connections (application shutdown)."""
    global _browser, _coordinator
    if _browser is not None:
        try:
            await _browser.close()
        except Exception:
            logger.exception("Failed to close browser")
        _browser = None
    _coordinator = None
    await engine.dispose()
