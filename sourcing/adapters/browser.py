"""Process-wide browser automation session shared by the page scrapers."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright

from sourcing.constants import BROWSER_HEADLESS, BROWSER_MAX_PAGES, USER_AGENT

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
    "--disable-features=IsolateOrigins,site-per-process",
]

DEFAULT_HEADERS: Dict[str, str] = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
}


class BrowserSession:
    """Lazily launched Chromium instance.

    Started once and reused by every adapter call; each call gets its own
    browser context so cookies and storage never leak between sources. The
    number of simultaneously open pages is capped because every page is a
    full renderer process.
    """

    def __init__(self, *, headless: bool = BROWSER_HEADLESS, max_pages: int = BROWSER_MAX_PAGES):
        self.headless = headless
        self.max_pages = max_pages
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._launch_lock = asyncio.Lock()
        self._page_slots = asyncio.Semaphore(max_pages)

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def start(self) -> Browser:
        async with self._launch_lock:
            if self._browser is not None and self._browser.is_connected():
                return self._browser
            logger.info("Launching Playwright browser...", extra={"headless": self.headless})
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=LAUNCH_ARGS,
            )
            logger.info("Browser launched successfully")
            return self._browser

    @asynccontextmanager
    async def page(self, *, extra_headers: Optional[Dict[str, str]] = None) -> AsyncIterator[Page]:
        async with self._page_slots:
            browser = await self.start()
            context = await browser.new_context(
                viewport={"width": 1920, "height": 1080},
                user_agent=USER_AGENT,
                locale="en-US",
                extra_http_headers={**DEFAULT_HEADERS, **(extra_headers or {})},
            )
            try:
                yield await context.new_page()
            finally:
                try:
                    await context.close()
                except Exception as e:
                    logger.warning(f"[BrowserSession] Failed to close context: {e}")

    async def close(self) -> None:
        async with self._launch_lock:
            if self._browser is not None:
                await self._browser.close()
                self._browser = None
                logger.info("Browser closed")
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
