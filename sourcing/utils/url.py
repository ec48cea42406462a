"""URL normalization helpers for listing identity."""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple
from urllib.parse import parse_qsl, urljoin, urlencode, urlsplit, urlunsplit

DEFAULT_TRACKING_KEYS: Sequence[str] = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "gclid",
    "fbclid",
    "msclkid",
    "igshid",
    "ref",
    "from",
)

DEFAULT_TRACKING_PREFIXES: Sequence[str] = (
    "utm",
    "ga_",
)

_MULTI_SLASH_PATTERN = re.compile(r"/{2,}")


def absolutize_url(url: Optional[str], base_url: str) -> str:
    """Resolve a source-relative href (``/thing:123``) against the source's base URL."""
    url = (url or "").strip()
    if not url:
        return ""
    if url.startswith("//"):
        return f"https:{url}"
    if url.lower().startswith(("http://", "https://")):
        return url
    if url.startswith("/"):
        # urljoin would read "thing:123" as a scheme
        return base_url.rstrip("/") + url
    return urljoin(base_url.rstrip("/") + "/", url)


def _drop_tracking_params(
    params: List[Tuple[str, str]],
    tracking_keys: Sequence[str],
    tracking_prefixes: Sequence[str],
) -> List[Tuple[str, str]]:
    key_set = {key.lower() for key in tracking_keys}
    cleaned: List[Tuple[str, str]] = []
    for key, value in params:
        key_lower = key.lower()
        if key_lower in key_set:
            continue
        if any(key_lower.startswith(prefix) for prefix in tracking_prefixes):
            continue
        cleaned.append((key, value))
    return cleaned


def canonicalize_url(
    raw_url: str,
    base_url: str,
    *,
    tracking_keys: Sequence[str] = DEFAULT_TRACKING_KEYS,
    tracking_prefixes: Sequence[str] = DEFAULT_TRACKING_PREFIXES,
) -> str:
    """Generate a stable canonical URL for listing ids.

    The canonical form enforces https, keeps the host as published by the
    source, removes tracking params and fragments, collapses repeated slashes
    and sorts the remaining query params.
    """

    absolute = absolutize_url(raw_url, base_url)
    if not absolute:
        return ""

    split = urlsplit(absolute)
    netloc = split.netloc.lower()
    if netloc.endswith(":443") or netloc.endswith(":80"):
        netloc = netloc.rsplit(":", 1)[0]

    path = _MULTI_SLASH_PATTERN.sub("/", split.path or "/")
    if not path.startswith("/"):
        path = f"/{path}"
    if path != "/":
        path = path.rstrip("/") or "/"

    query_pairs = parse_qsl(split.query, keep_blank_values=False)
    query_pairs = _drop_tracking_params(query_pairs, tracking_keys, tracking_prefixes)
    query_pairs.sort(key=lambda pair: pair[0].lower())
    query = urlencode(query_pairs, doseq=True)

    return urlunsplit(("https", netloc, path, query, ""))


__all__ = ["absolutize_url", "canonicalize_url"]
