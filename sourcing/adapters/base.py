"""Source adapter contract and the shared page-scraping flow."""

from __future__ import annotations

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional
from urllib.parse import quote_plus

from playwright.async_api import Page

from sourcing.adapters.browser import BrowserSession
from sourcing.constants import MAX_RESULTS_PER_SOURCE, NAVIGATION_TIMEOUT_MS
from sourcing.models import RawListing

logger = logging.getLogger(__name__)

_COUNT_PATTERN = re.compile(r"^(\d[\d,]*(?:\.\d+)?)\s*([kKmM]?)$")

HIDE_WEBDRIVER_SCRIPT = "Object.defineProperty(navigator, 'webdriver', {get: () => false});"


def parse_count(text: Optional[str]) -> Optional[int]:
    """Parse a compact counter such as ``"42"``, ``"1.2k"`` or ``"3M"``.

    Returns ``None`` when the text is not a counter.
    """
    if text is None:
        return None
    match = _COUNT_PATTERN.match(text.strip())
    if not match:
        return None
    number = float(match.group(1).replace(",", ""))
    suffix = match.group(2).lower()
    if suffix == "k":
        number *= 1_000
    elif suffix == "m":
        number *= 1_000_000
    return int(round(number))


def is_count(text: Optional[str]) -> bool:
    return parse_count(text) is not None


class SourceAdapter(ABC):
    """Fetches listings for a query from one source.

    ``fetch`` must not raise: any failure is reported as an empty list so one
    source can never abort the others.
    """

    source: str

    @abstractmethod
    async def fetch(self, query: str) -> List[RawListing]:
        ...


class PageScraperAdapter(SourceAdapter):
    """Loads a source's search page in the shared browser and parses its HTML."""

    wait_until = "networkidle"
    settle_seconds = 1.0
    hide_webdriver = False
    challenge_markers = ("Just a moment",)

    def __init__(self, browser: BrowserSession, *, limit: int = MAX_RESULTS_PER_SOURCE):
        self.browser = browser
        self.limit = limit

    def search_url(self, query: str) -> str:
        raise NotImplementedError

    def parse_listings(self, html: str) -> List[RawListing]:
        raise NotImplementedError

    @staticmethod
    def quote(query: str) -> str:
        return quote_plus(query)

    def is_challenge(self, title: str, html: str) -> bool:
        return any(marker in title for marker in self.challenge_markers)

    async def prepare_page(self, page: Page) -> None:
        """Hook run after navigation, e.g. to dismiss consent dialogs."""

    async def handle_challenge(self, page: Page) -> Optional[str]:
        """Return page HTML once a bot challenge clears, or ``None`` to give up."""
        return None

    async def fetch(self, query: str) -> List[RawListing]:
        url = self.search_url(query)
        logger.info(f"[{self.source}] Fetching {url}")
        try:
            async with self.browser.page() as page:
                if self.hide_webdriver:
                    await page.add_init_script(HIDE_WEBDRIVER_SCRIPT)
                await page.goto(url, wait_until=self.wait_until, timeout=NAVIGATION_TIMEOUT_MS)
                await asyncio.sleep(self.settle_seconds)
                await self.prepare_page(page)

                title = await page.title()
                html = await page.content()
                if self.is_challenge(title, html):
                    logger.info(f"[{self.source}] Hit challenge page: {title!r}")
                    html = await self.handle_challenge(page)
                    if html is None:
                        return []

            listings = self.parse_listings(html)[: self.limit]
        except Exception as e:
            logger.warning(f"[{self.source}] Search error: {type(e).__name__}: {e}")
            return []

        logger.info(f"[{self.source}] Found {len(listings)} results")
        return listings
