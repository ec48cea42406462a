"""Search query canonicalization.

The normalized query is the cache key for both cache tiers, so the rule is
fixed: NFKC, trim, collapse whitespace runs to one space, casefold.
Punctuation is kept as typed.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Optional

from sourcing.constants import MAX_QUERY_LENGTH
from sourcing.exceptions import InvalidQueryError

_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_query(text: Optional[str], *, max_length: int = MAX_QUERY_LENGTH) -> str:
    if text is None:
        raise InvalidQueryError("Query parameter required")
    normalized = unicodedata.normalize("NFKC", str(text))
    normalized = _WHITESPACE_RUN.sub(" ", normalized).strip().casefold()
    if not normalized:
        raise InvalidQueryError("Query parameter required")
    if len(normalized) > max_length:
        raise InvalidQueryError(f"Query too long (max {max_length} chars)")
    return normalized


__all__ = ["normalize_query"]
