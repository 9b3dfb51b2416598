from __future__ import annotations

import logging
from typing import Any, Optional

from ..config import BROWSER_TIMEOUT_S, USER_AGENT
from .http import HttpResult

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]


class BrowserSession:
    """
    One headless Chromium shared by every source that needs script execution.

    Owned by the harvest run: started lazily on the first acquire_page(),
    reused across sources, closed exactly once via close() (or the context
    manager). Playwright's sync objects are bound to the thread that created
    them, so pages are used from the caller's thread only.
    """

    def __init__(self, *, headless: bool = True, timeout_s: float = BROWSER_TIMEOUT_S) -> None:
        self.headless = headless
        self.timeout_s = timeout_s
        self._playwright: Any = None
        self._browser: Any = None
        self._closed = False

    def __enter__(self) -> "BrowserSession":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def started(self) -> bool:
        return self._browser is not None

    def _ensure_browser(self) -> Any:
        if self._closed:
            raise RuntimeError("BrowserSession already closed")
        if self._browser is None or not self._browser.is_connected():
            from playwright.sync_api import sync_playwright

            if self._playwright is None:
                self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(headless=self.headless, args=LAUNCH_ARGS)
            logger.info("[browser] launched chromium headless=%s", self.headless)
        return self._browser

    def acquire_page(self) -> Any:
        browser = self._ensure_browser()
        page = browser.new_page(
            viewport={"width": 1280, "height": 800},
            user_agent=USER_AGENT,
        )
        page.set_default_timeout(self.timeout_s * 1000)
        return page

    def release_page(self, page: Any) -> None:
        try:
            if not page.is_closed():
                page.close()
        except Exception as e:
            # a page of a crashed browser cannot be closed; the session teardown handles it
            logger.warning("[browser] release_page failed: %s: %s", type(e).__name__, e)

    def navigate(self, page: Any, url: str, *, wait_script: Optional[str] = None, settle_ms: int = 0) -> str:
        """Go to `url`, wait for it to settle, return the rendered DOM."""
        page.goto(url, wait_until="networkidle", timeout=self.timeout_s * 1000)
        if wait_script:
            page.wait_for_function(wait_script, timeout=min(self.timeout_s, 20) * 1000)
        if settle_ms:
            page.wait_for_timeout(settle_ms)
        return page.content()

    def evaluate(self, page: Any, script: str) -> Any:
        return page.evaluate(script)

    def render(self, url: str, *, wait_script: Optional[str] = None, settle_ms: int = 0) -> HttpResult:
        page = self.acquire_page()
        try:
            html = self.navigate(page, url, wait_script=wait_script, settle_ms=settle_ms)
            final_url = page.url
        finally:
            self.release_page(page)
        logger.debug("[browser] rendered url=%s html_len=%d", final_url, len(html))
        return HttpResult(url=final_url, status_code=200, text=html)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._browser is None and self._playwright is None:
            return
        try:
            if self._browser is not None:
                self._browser.close()
        finally:
            self._browser = None
            if self._playwright is not None:
                self._playwright.stop()
                self._playwright = None
        logger.info("[browser] session closed")
