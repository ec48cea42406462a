"""
3D model search API.

Aggregates listings for a search term from Thingiverse, Printables and
MakerWorld behind a memory + SQLite cache.
"""
from dotenv import load_dotenv
from pathlib import Path

# Load .env before modules that read configuration at import time
load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env", override=False)

import asyncio  # noqa: E402
import logging  # noqa: E402
import os  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from typing import Any, Dict, List, Optional  # noqa: E402

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest  # noqa: E402
from pydantic import BaseModel  # noqa: E402

from database import init_db  # noqa: E402
from dependencies import (  # noqa: E402
    close_resources,
    get_browser,
    get_coordinator,
    get_memory_cache,
    get_persistent_cache,
)
from observability import setup_logging  # noqa: E402
from observability.health import check_browser, check_search_cache  # noqa: E402
from observability.middleware import ObservabilityMiddleware  # noqa: E402
from observability.sentry_config import init_sentry  # noqa: E402
from retention import prune_search_cache, run_periodic_prune  # noqa: E402
from sourcing import (  # noqa: E402
    BrowserSession,
    InvalidQueryError,
    MemoryCache,
    PersistentSearchCache,
    SearchCoordinator,
    SearchResponse,
    assemble_response,
    available_source_ids,
    cache_header,
)

__version__ = "0.1.0"

setup_logging()
init_sentry(__version__)

logger = logging.getLogger(__name__)

BROWSER_WARMUP = os.getenv("BROWSER_WARMUP", "true").lower() == "true"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
PORT = int(os.getenv("PORT", "3001"))

app = FastAPI(
    title="3D Model Search API",
    description="Aggregated, cached search across 3D model sources",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET"],
    allow_headers=["*"],
    expose_headers=["X-Cache", "X-Request-ID"],
)
app.add_middleware(
    ObservabilityMiddleware,
    known_paths=["/api/search", "/api/health", "/health", "/health/ready", "/metrics"],
)

_background_tasks: List[asyncio.Task] = []


class HealthResponse(BaseModel):
    status: str
    version: str


@app.get("/api/search", response_model=SearchResponse)
async def search(
    response: Response,
    q: Optional[str] = Query(None, description="Free-text search query"),
    coordinator: SearchCoordinator = Depends(get_coordinator),
):
    """Search every source, served from cache when possible."""
    try:
        outcome = await coordinator.search(q)
    except InvalidQueryError as e:
        raise HTTPException(status_code=400, detail=str(e))

    response.headers["X-Cache"] = cache_header(outcome.resolution)
    return assemble_response(outcome.result)


@app.get("/api/health")
async def api_health(
    cache: PersistentSearchCache = Depends(get_persistent_cache),
    memory_cache: MemoryCache = Depends(get_memory_cache),
    browser: BrowserSession = Depends(get_browser),
) -> Dict[str, Any]:
    """Operational snapshot: cache statistics and browser liveness."""
    cache_check = await check_search_cache(cache)
    browser_check = check_browser(browser)

    return {
        "status": "ok" if cache_check.is_healthy else "degraded",
        "sources": available_source_ids(),
        "browser_running": browser_check.details.get("running", False),
        "cache_stats": {
            "total_searches": cache_check.details.get("total_searches"),
            "last_update": cache_check.details.get("last_update"),
        },
        "memory_cache_entries": len(memory_cache),
        "checks": {
            "search_cache": cache_check.to_dict(),
            "browser": browser_check.to_dict(),
        },
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    return {"status": "healthy", "version": __version__}


@app.get("/health/ready")
async def readiness_check(cache: PersistentSearchCache = Depends(get_persistent_cache)):
    """Readiness check: 503 when the persistent cache cannot be read."""
    cache_check = await check_search_cache(cache)
    return JSONResponse(
        status_code=200 if cache_check.is_healthy else 503,
        content={
            "status": "ready" if cache_check.is_healthy else "degraded",
            "checks": {"search_cache": cache_check.status},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


@app.get("/metrics")
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled errors and return a safe message to the client."""
    error_id = f"ERR-{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}-{id(exc)}"
    logger.exception(
        f"[ERROR {error_id}] Unhandled exception",
        extra={"error_id": error_id, "path": str(request.url.path), "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "error_id": error_id,
            "message": "An unexpected error occurred. Please try again.",
        },
    )


async def _warm_up_browser(browser: BrowserSession) -> None:
    try:
        await browser.start()
    except Exception:
        # Adapters retry the launch on first use
        logger.exception("Browser warm-up failed")


@app.on_event("startup")
async def startup_event():
    logger.info(f"3D model search API starting (environment={os.getenv('ENVIRONMENT', 'development')})")
    logger.info(f"Sources: {', '.join(available_source_ids())}")

    await init_db()
    cache = get_persistent_cache()
    await prune_search_cache(cache)
    _background_tasks.append(asyncio.create_task(run_periodic_prune(cache)))

    if BROWSER_WARMUP:
        _background_tasks.append(asyncio.create_task(_warm_up_browser(get_browser())))
    logger.info("Ready to accept requests")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down gracefully...")
    for task in _background_tasks:
        task.cancel()
    await asyncio.gather(*_background_tasks, return_exceptions=True)
    _background_tasks.clear()
    await close_resources()
    logger.info("Shutdown complete")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=PORT)
