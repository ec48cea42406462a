"""Persistent search cache model."""

from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import sqlalchemy as sa
from sqlmodel import Field, SQLModel, Column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to timestamps read back from backends that drop the offset (SQLite)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class SearchCacheEntry(SQLModel, table=True):
    """One durable record per normalized query.

    ``results`` holds the serialized listing sequence and ``sources`` the
    per-source counts of the most recent fetch attempt for each source.
    Timestamps are UTC.
    """

    __tablename__ = "searches"

    id: Optional[int] = Field(default=None, primary_key=True)
    query: str = Field(index=True, unique=True, nullable=False)
    results: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(sa.JSON, nullable=False))
    sources: Dict[str, int] = Field(default_factory=dict, sa_column=Column(sa.JSON, nullable=False))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(sa.DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(sa.DateTime(timezone=True), nullable=False, index=True),
    )
