import asyncio
import os
import sys
from typing import Callable, List, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Add parent directory to path to allow importing the app modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import create_engine_for_url, init_db
from dependencies import get_browser, get_coordinator, get_memory_cache, get_persistent_cache
from main import app
from sourcing import MemoryCache, PersistentSearchCache, SearchCoordinator, SourceAdapter
from sourcing.constants import SOURCE_BASE_URLS
from sourcing.models import RawListing


def make_raw_listings(source: str, count: int, *, prefix: str = "item") -> List[RawListing]:
    return [
        RawListing(
            title=f"{source} {prefix} {i}",
            source_url=f"{SOURCE_BASE_URLS[source]}/model/{prefix}-{i}",
            thumbnail_url=f"{SOURCE_BASE_URLS[source]}/img/{prefix}-{i}.jpg",
            author=f"maker{i}",
            likes=i * 10,
            downloads=i * 100,
        )
        for i in range(count)
    ]


class FakeAdapter(SourceAdapter):
    """Adapter double recording calls; can delay, hang, raise or block on a gate."""

    def __init__(
        self,
        source: str,
        count: int = 2,
        *,
        delay: float = 0.0,
        error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
        prefix: str = "item",
    ):
        self.source = source
        self.count = count
        self.delay = delay
        self.error = error
        self.gate = gate
        self.prefix = prefix
        self.calls: List[str] = []

    async def fetch(self, query: str) -> List[RawListing]:
        self.calls.append(query)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return make_raw_listings(self.source, self.count, prefix=self.prefix)


class StubBrowser:
    """Stand-in for BrowserSession in endpoint tests; never launches anything."""

    max_pages = 1
    is_running = False

    async def close(self):
        pass


@pytest.fixture(name="make_adapter")
def make_adapter_fixture() -> Callable[..., FakeAdapter]:
    return FakeAdapter


@pytest.fixture(name="adapters")
def adapters_fixture():
    return {
        "thingiverse": FakeAdapter("thingiverse", 2),
        "printables": FakeAdapter("printables", 2),
        "makerworld": FakeAdapter("makerworld", 2),
    }


@pytest_asyncio.fixture(name="engine")
async def engine_fixture(tmp_path):
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'search_cache.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture(name="persistent_cache")
def persistent_cache_fixture(engine):
    return PersistentSearchCache(engine)


@pytest.fixture(name="memory_cache")
def memory_cache_fixture():
    return MemoryCache(ttl_seconds=3600)


@pytest.fixture(name="coordinator")
def coordinator_fixture(adapters, memory_cache, persistent_cache):
    return SearchCoordinator(adapters, memory_cache, persistent_cache, timeout_seconds=1.0)


@pytest_asyncio.fixture(name="client")
async def client_fixture(coordinator, memory_cache, persistent_cache):
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    app.dependency_overrides[get_memory_cache] = lambda: memory_cache
    app.dependency_overrides[get_persistent_cache] = lambda: persistent_cache
    app.dependency_overrides[get_browser] = lambda: StubBrowser()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
