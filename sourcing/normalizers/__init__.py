"""Normalizers shaping adapter output into canonical listings."""

from __future__ import annotations

import logging
from typing import Iterable, List, Set

from sourcing.constants import MAX_RESULTS_PER_SOURCE, SOURCE_BASE_URLS
from sourcing.models import Listing, RawListing
from sourcing.utils.url import absolutize_url, canonicalize_url

logger = logging.getLogger(__name__)


def listing_id(source: str, source_url: str) -> str:
    """Stable id derived from the source and its canonical URL, never from mutable fields."""
    return f"{source}_{canonicalize_url(source_url, SOURCE_BASE_URLS[source])}"


def _normalize_raw(raw: RawListing, source: str) -> Listing:
    base_url = SOURCE_BASE_URLS[source]
    author = (raw.author or "").strip() or None
    thumbnail = absolutize_url(raw.thumbnail_url, base_url) or None

    return Listing(
        id=listing_id(source, raw.source_url),
        title=raw.title,
        author=author,
        thumbnail_url=thumbnail,
        source_url=absolutize_url(raw.source_url, base_url),
        source=source,
        likes=raw.likes or 0,
        downloads=raw.downloads or 0,
    )


def normalize_listings(
    source: str,
    raw_listings: Iterable[RawListing],
    *,
    limit: int = MAX_RESULTS_PER_SOURCE,
) -> List[Listing]:
    """Normalize one source's adapter output.

    Keeps adapter order, drops records without a title or URL, drops repeat
    ids within the source and caps the result at ``limit``.
    """
    if source not in SOURCE_BASE_URLS:
        raise ValueError(f"Unknown source: {source}")

    listings: List[Listing] = []
    seen: Set[str] = set()
    dropped = 0
    for raw in raw_listings:
        if len(listings) >= limit:
            dropped += 1
            continue
        if not raw.title or not raw.source_url:
            dropped += 1
            continue
        listing = _normalize_raw(raw, source)
        if listing.id in seen:
            dropped += 1
            continue
        seen.add(listing.id)
        listings.append(listing)

    if dropped > 0:
        logger.debug(f"[Normalizer] {source}: dropped {dropped} raw listings")
    return listings


__all__ = ["listing_id", "normalize_listings"]
