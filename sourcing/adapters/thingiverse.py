"""Thingiverse search page adapter."""

from __future__ import annotations

from typing import List

from bs4 import BeautifulSoup

from sourcing.adapters.base import PageScraperAdapter, is_count, parse_count
from sourcing.models import RawListing


class ThingiverseAdapter(PageScraperAdapter):
    source = "thingiverse"
    wait_until = "domcontentloaded"
    settle_seconds = 3.0
    challenge_markers = ("Just a moment", "Error")

    def search_url(self, query: str) -> str:
        return f"https://www.thingiverse.com/search?q={self.quote(query)}&type=things"

    def parse_listings(self, html: str) -> List[RawListing]:
        soup = BeautifulSoup(html, "html.parser")
        items: List[RawListing] = []

        for card in soup.select('div[class*="ItemCardContainer"]'):
            if len(items) >= self.limit:
                break

            link = card.select_one('a[class*="ItemCardContent"][href*="/thing:"]')
            if link is None or not link.get("href"):
                continue

            title_elem = card.select_one('a[class*="ItemCardTitle"]') or card.select_one(
                'div[class*="ItemCardHeader"] a[title]'
            )
            title = ""
            if title_elem is not None:
                title = title_elem.get("title") or title_elem.get_text(strip=True)

            image = card.select_one('img[class*="ItemCardContent"]') or card.select_one("img")
            thumbnail = None
            if image is not None:
                thumbnail = image.get("src") or image.get("data-src")

            author_elem = card.select_one('div[class*="ItemCardHeader"] a[href*="/"]:not([title])')
            author = author_elem.get_text(strip=True) if author_elem is not None else None

            # Like count is the first bare counter on the card
            counters = [s for s in card.find_all(string=True) if is_count(s)]
            likes = parse_count(counters[0]) if counters else None

            items.append(
                RawListing(
                    title=title or "Untitled",
                    source_url=link["href"],
                    thumbnail_url=thumbnail,
                    author=author,
                    likes=likes,
                )
            )

        return items
