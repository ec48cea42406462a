"""Search aggregation across 3D model sources, with a two-tier cache."""

from .models import (
    CacheStats,
    CoordinatorOutcome,
    Listing,
    QueryResult,
    RawListing,
    SearchResponse,
    SourceStatusSnapshot,
)
from .adapters import BrowserSession, SourceAdapter, available_source_ids, build_default_adapters
from .assembler import assemble_response, cache_header
from .cache import MemoryCache
from .exceptions import InvalidQueryError
from .repository import PersistentSearchCache
from .service import SearchCoordinator, merge_listings
from .utils import normalize_query

__all__ = [
    "BrowserSession",
    "CacheStats",
    "CoordinatorOutcome",
    "InvalidQueryError",
    "Listing",
    "MemoryCache",
    "PersistentSearchCache",
    "QueryResult",
    "RawListing",
    "SearchCoordinator",
    "SearchResponse",
    "SourceAdapter",
    "SourceStatusSnapshot",
    "assemble_response",
    "available_source_ids",
    "build_default_adapters",
    "cache_header",
    "merge_listings",
    "normalize_query",
]
