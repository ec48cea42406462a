"""Shared constants and tunables for the sourcing module."""

import os

# Fixed source set, in the order source groups appear in merged results
SOURCE_ORDER = (
    "thingiverse",
    "printables",
    "makerworld",
)

SOURCE_BASE_URLS = {
    "thingiverse": "https://www.thingiverse.com",
    "printables": "https://www.printables.com",
    "makerworld": "https://makerworld.com",
}

# Per-source time budget. Navigation alone may take 30s, plus settle/challenge waits.
SOURCE_TIMEOUT_SECONDS = float(os.getenv("SOURCE_TIMEOUT_SECONDS", "45.0"))

MAX_RESULTS_PER_SOURCE = int(os.getenv("MAX_RESULTS_PER_SOURCE", "10"))
MAX_QUERY_LENGTH = int(os.getenv("MAX_QUERY_LENGTH", "200"))

MEMORY_CACHE_TTL_SECONDS = float(os.getenv("MEMORY_CACHE_TTL_SECONDS", "3600"))
MEMORY_CACHE_MAX_ENTRIES = int(os.getenv("MEMORY_CACHE_MAX_ENTRIES", "1000"))

CACHE_RETENTION_DAYS = int(os.getenv("CACHE_RETENTION_DAYS", "7"))
CACHE_PRUNE_INTERVAL_SECONDS = float(os.getenv("CACHE_PRUNE_INTERVAL_SECONDS", str(6 * 3600)))

# Browser automation
BROWSER_HEADLESS = os.getenv("BROWSER_HEADLESS", "true").lower() == "true"
BROWSER_MAX_PAGES = int(os.getenv("BROWSER_MAX_PAGES", "4"))
NAVIGATION_TIMEOUT_MS = int(os.getenv("NAVIGATION_TIMEOUT_MS", "30000"))

USER_AGENT = os.getenv(
    "BROWSER_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)
