"""Shapes coordinator output into the public search envelope."""

from __future__ import annotations

from typing import Dict

from sourcing.models import QueryResult, Resolution, SearchResponse

CACHE_HEADER_VALUES: Dict[str, str] = {
    "memory": "HIT",
    "persistent": "HIT",
    "partial": "PARTIAL",
    "full": "MISS",
}


def assemble_response(result: QueryResult) -> SearchResponse:
    return SearchResponse(
        query=result.normalized_query,
        total=len(result.listings),
        results=list(result.listings),
        sources=dict(result.source_counts),
    )


def cache_header(resolution: Resolution) -> str:
    return CACHE_HEADER_VALUES[resolution]
