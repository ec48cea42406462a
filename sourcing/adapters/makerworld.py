"""MakerWorld search page adapter."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import List, Optional, Set

from bs4 import BeautifulSoup, Tag
from playwright.async_api import Page

from sourcing.adapters.base import PageScraperAdapter, is_count, parse_count
from sourcing.models import RawListing

logger = logging.getLogger(__name__)

_MODEL_HREF = re.compile(r"/models/\d+")

CHALLENGE_WAIT_SECONDS = 10.0


def _closest_card(tag: Tag) -> Optional[Tag]:
    for parent in tag.parents:
        classes = " ".join(parent.get("class") or [])
        if "card" in classes:
            return parent
    return None


class MakerWorldAdapter(PageScraperAdapter):
    source = "makerworld"
    settle_seconds = 3.0
    hide_webdriver = True

    def search_url(self, query: str) -> str:
        return f"https://makerworld.com/en/search/models?keyword={self.quote(query)}"

    def is_challenge(self, title: str, html: str) -> bool:
        return "Just a moment" in title or "Cloudflare" in html

    async def handle_challenge(self, page: Page) -> Optional[str]:
        await asyncio.sleep(CHALLENGE_WAIT_SECONDS)
        title = await page.title()
        if "Just a moment" in title:
            logger.info("[makerworld] Challenge did not clear")
            return None
        return await page.content()

    def parse_listings(self, html: str) -> List[RawListing]:
        soup = BeautifulSoup(html, "html.parser")
        items: List[RawListing] = []
        seen: Set[str] = set()

        for link in soup.select('a[href*="/models/"]'):
            if len(items) >= self.limit:
                break

            href = link.get("href") or ""
            if not _MODEL_HREF.search(href) or href in seen:
                continue
            seen.add(href)

            image = link.select_one("img")
            heading = link.select_one("h3")
            title = (
                (image.get("alt") if image is not None else None)
                or (heading.get_text(strip=True) if heading is not None else None)
                or link.get("title")
                or link.get_text(strip=True)
            )
            if not title:
                continue

            thumbnail = None
            if image is not None:
                thumbnail = image.get("src") or image.get("data-src")

            card = _closest_card(link)
            author = None
            if card is not None:
                author_elem = card.select_one('[class*="author"], [class*="creator"]')
                if author_elem is not None:
                    author = author_elem.get_text(strip=True)

            # Stats order on a card: prints, likes, downloads
            likes = downloads = None
            scope = card if card is not None else link.parent
            if scope is not None:
                counters = [
                    span.get_text(strip=True)
                    for span in scope.select("span")
                    if is_count(span.get_text(strip=True))
                ]
                if len(counters) >= 2:
                    likes = parse_count(counters[1])
                if len(counters) >= 3:
                    downloads = parse_count(counters[2])

            items.append(
                RawListing(
                    title=title,
                    source_url=href,
                    thumbnail_url=thumbnail,
                    author=author,
                    likes=likes,
                    downloads=downloads,
                )
            )

        return items
