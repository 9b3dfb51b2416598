from __future__ import annotations

from typing import Dict, Optional, Type

from .base import BaseAdapter
from .browser import BrowserSession
from .adapters.html_listing import HtmlListingAdapter
from .adapters.feed import FeedAdapter
from .adapters.rendered_listing import RenderedListingAdapter
from .adapters.datatable import DataTableAdapter


ADAPTERS: Dict[str, Type[BaseAdapter]] = {
    "html": HtmlListingAdapter,
    "rss": FeedAdapter,
    "rendered_html": RenderedListingAdapter,
    "datatable": DataTableAdapter,
}


def get_adapter(name: str, browser: Optional[BrowserSession] = None) -> BaseAdapter:
    cls = ADAPTERS[name]
    return cls(browser=browser)


def adapter_needs_browser(name: str) -> bool:
    cls = ADAPTERS.get(name)
    return bool(cls and cls.needs_browser)
