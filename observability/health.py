"""
Health check utilities for dependency monitoring.

Covers the persistent search cache and the shared browser session.
"""

import asyncio
import time
from typing import Dict, Any, Optional, TYPE_CHECKING

from .logging import get_logger

if TYPE_CHECKING:
    from sourcing.adapters.browser import BrowserSession
    from sourcing.repository import PersistentSearchCache

logger = get_logger(__name__)


class HealthCheckResult:
    """Result of a health check."""

    def __init__(self, name: str, status: str, details: Optional[Dict[str, Any]] = None, error: Optional[str] = None):
        self.name = name
        self.status = status  # "ok", "degraded", "error"
        self.details = details or {}
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "status": self.status,
            "details": self.details,
        }
        if self.error:
            result["error"] = self.error
        return result

    @property
    def is_healthy(self) -> bool:
        return self.status == "ok"


async def check_search_cache(cache: "PersistentSearchCache", timeout: float = 5.0) -> HealthCheckResult:
    """Read aggregate statistics from the persistent cache."""
    start_time = time.time()
    try:
        stats = await asyncio.wait_for(cache.stats(), timeout=timeout)
    except asyncio.TimeoutError:
        return HealthCheckResult(name="search_cache", status="error", error=f"Timed out after {timeout}s")
    except Exception as e:
        logger.warning(f"Search cache health check failed: {e}")
        return HealthCheckResult(name="search_cache", status="error", error=str(e)[:200])

    return HealthCheckResult(
        name="search_cache",
        status="ok",
        details={
            "total_searches": stats.total_searches,
            "last_update": stats.last_update.isoformat() if stats.last_update else None,
            "latency_ms": round((time.time() - start_time) * 1000, 2),
        },
    )


def check_browser(browser: Optional["BrowserSession"]) -> HealthCheckResult:
    """Report browser liveness. A stopped browser is degraded, not an error: it starts on demand."""
    if browser is None:
        return HealthCheckResult(name="browser", status="degraded", details={"running": False})
    return HealthCheckResult(
        name="browser",
        status="ok" if browser.is_running else "degraded",
        details={"running": browser.is_running, "max_pages": browser.max_pages},
    )
