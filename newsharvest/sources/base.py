from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Optional

from ..config import TIMEZONE
from .browser import BrowserSession
from .detail import DetailFetcher, plan_detail_fetches
from .http import HttpResult
from .types import RawRow, SourceConfig


class BaseAdapter(ABC):
    needs_browser: bool = False

    def __init__(self, browser: Optional[BrowserSession] = None) -> None:
        self.browser = browser

    @abstractmethod
    def fetch(self, cfg: SourceConfig, tz: str = TIMEZONE) -> List[RawRow]:
        """Return candidate rows (listing stage)."""

    def enrich(self, cfg: SourceConfig, rows: List[RawRow], tz: str = TIMEZONE) -> Dict[str, int]:
        """
        Detail stage: fill missing dates and body text in place.
        Browser-backed detail pages are fetched one at a time.
        """
        fetcher: Optional[DetailFetcher] = None
        if cfg.detail.via_browser:
            fetcher = self._browser_fetch
            cfg = replace(cfg, detail=replace(cfg.detail, concurrency=1))
        return plan_detail_fetches(rows, cfg, fetch=fetcher, tz=tz)

    def require_browser(self) -> BrowserSession:
        if self.browser is None:
            raise RuntimeError(f"{type(self).__name__} needs a BrowserSession")
        return self.browser

    def _browser_fetch(self, url: str, headers: Optional[Dict[str, str]] = None) -> HttpResult:
        return self.require_browser().render(url, settle_ms=2000)
