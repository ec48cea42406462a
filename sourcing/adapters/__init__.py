"""Source adapter registry."""

from __future__ import annotations

from typing import Dict, List, Type

from sourcing.adapters.base import PageScraperAdapter, SourceAdapter, parse_count
from sourcing.adapters.browser import BrowserSession
from sourcing.adapters.makerworld import MakerWorldAdapter
from sourcing.adapters.printables import PrintablesAdapter
from sourcing.adapters.thingiverse import ThingiverseAdapter
from sourcing.constants import SOURCE_ORDER

ADAPTERS: Dict[str, Type[PageScraperAdapter]] = {
    "thingiverse": ThingiverseAdapter,
    "printables": PrintablesAdapter,
    "makerworld": MakerWorldAdapter,
}


def build_default_adapters(browser: BrowserSession) -> Dict[str, SourceAdapter]:
    """Instantiate one adapter per source, in merge order, sharing ``browser``."""
    return {source: ADAPTERS[source](browser) for source in SOURCE_ORDER}


def available_source_ids() -> List[str]:
    return list(SOURCE_ORDER)


__all__ = [
    "ADAPTERS",
    "BrowserSession",
    "MakerWorldAdapter",
    "PageScraperAdapter",
    "PrintablesAdapter",
    "SourceAdapter",
    "ThingiverseAdapter",
    "available_source_ids",
    "build_default_adapters",
    "parse_count",
]
