"""Utility helpers for canonical URLs and query keys."""

from .query import normalize_query
from .url import absolutize_url, canonicalize_url

__all__ = [
    "absolutize_url",
    "canonicalize_url",
    "normalize_query",
]
