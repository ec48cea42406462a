"""Printables search page adapter."""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag
from playwright.async_api import Page

from sourcing.adapters.base import PageScraperAdapter, is_count, parse_count
from sourcing.models import RawListing

logger = logging.getLogger(__name__)

_ACCEPT_COOKIES = re.compile(r"accept all", re.IGNORECASE)


def _first_srcset_url(srcset: Optional[str]) -> Optional[str]:
    if not srcset:
        return None
    first = srcset.split(",")[0].strip()
    return first.split(" ")[0] or None


def _thumbnail(article: Tag) -> Optional[str]:
    picture = article.select_one('picture[class*="image-inside"]')
    if picture is not None:
        source = picture.select_one("source")
        if source is not None:
            url = _first_srcset_url(source.get("srcset")) or source.get("src")
            if url:
                return url
        image = picture.select_one("img")
        if image is not None and (image.get("src") or image.get("data-src")):
            return image.get("src") or image.get("data-src")

    # Skip avatar images, they sit inside the author link
    for image in article.select("img"):
        if image.find_parent("a", class_=lambda c: c and "avatar" in c):
            continue
        url = image.get("src") or image.get("data-src")
        if url:
            return url
    return None


class PrintablesAdapter(PageScraperAdapter):
    source = "printables"

    def search_url(self, query: str) -> str:
        return f"https://www.printables.com/search/models?q={self.quote(query)}"

    async def prepare_page(self, page: Page) -> None:
        button = page.get_by_role("button", name=_ACCEPT_COOKIES).first
        try:
            await button.click(timeout=1500)
            logger.debug("[printables] Accepted cookies")
            await page.wait_for_timeout(1000)
        except Exception:
            logger.debug("[printables] No cookie popup found or already accepted")

    def parse_listings(self, html: str) -> List[RawListing]:
        soup = BeautifulSoup(html, "html.parser")
        items: List[RawListing] = []

        for article in soup.select('article[data-testid="model"]'):
            if len(items) >= self.limit:
                break

            link = article.select_one('a[href*="/model/"]')
            if link is None or not link.get("href"):
                continue

            heading = article.select_one("h5")
            title = heading.get_text(strip=True) if heading is not None else link.get_text(strip=True)
            if not title:
                continue

            author_elem = article.select_one('a[href*="/@"]')
            author = author_elem.get_text(strip=True) if author_elem is not None else None

            # Stats bar order: likes, comments, downloads
            counters = [
                span.get_text(strip=True)
                for span in article.select("span")
                if is_count(span.get_text(strip=True))
            ]
            likes = downloads = None
            if len(counters) >= 2:
                likes = parse_count(counters[0])
                if len(counters) >= 3:
                    downloads = parse_count(counters[2])

            items.append(
                RawListing(
                    title=title,
                    source_url=link["href"],
                    thumbnail_url=_thumbnail(article),
                    author=author,
                    likes=likes,
                    downloads=downloads,
                )
            )

        return items
