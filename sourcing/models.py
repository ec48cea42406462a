"""Typed models for the search aggregation pipeline."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from sourcing.constants import SOURCE_ORDER

SourceId = Literal["thingiverse", "printables", "makerworld"]
SourceStatus = Literal["ok", "empty", "error", "timeout"]
Resolution = Literal["memory", "persistent", "partial", "full"]


class RawListing(BaseModel):
    """One hit as reported by a source adapter, before normalization.

    ``None`` means the adapter could not determine the value.
    """

    title: str
    source_url: str
    thumbnail_url: Optional[str] = None
    author: Optional[str] = None
    likes: Optional[int] = Field(None, ge=0)
    downloads: Optional[int] = Field(None, ge=0)

    @field_validator("title", "source_url", mode="before")
    @classmethod
    def _strip(cls, value: Optional[str]) -> str:
        return (value or "").strip()


class Listing(BaseModel):
    """Canonical listing returned to clients and stored in the cache."""

    id: str
    title: str
    author: Optional[str] = None
    thumbnail_url: Optional[str] = None
    source_url: str
    source: SourceId
    likes: int = Field(0, ge=0)
    downloads: int = Field(0, ge=0)


class QueryResult(BaseModel):
    """Unit of caching: the merged listings for one normalized query."""

    normalized_query: str
    listings: List[Listing] = Field(default_factory=list)
    source_counts: Dict[str, int] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def listings_for(self, source: str) -> List[Listing]:
        return [listing for listing in self.listings if listing.source == source]

    def zero_count_sources(self, source_order: Sequence[str] = SOURCE_ORDER) -> List[str]:
        """Sources whose most recent attempt yielded nothing, in source order."""
        return [source for source in source_order if self.source_counts.get(source, 0) == 0]

    def is_complete(self, source_order: Sequence[str] = SOURCE_ORDER) -> bool:
        return not self.zero_count_sources(source_order)


class SourceStatusSnapshot(BaseModel):
    source: str
    status: SourceStatus
    result_count: int = 0
    latency_ms: Optional[int] = None
    message: Optional[str] = None


class CoordinatorOutcome(BaseModel):
    """What the coordinator resolved a query to, and how."""

    result: QueryResult
    resolution: Resolution
    source_statuses: List[SourceStatusSnapshot] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """Externally visible search envelope."""

    query: str
    total: int
    results: List[Listing]
    sources: Dict[str, int]


class CacheStats(BaseModel):
    total_searches: int = 0
    last_update: Optional[datetime] = None
