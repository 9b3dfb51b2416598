# tests/test_browser_http.py
"""BrowserSession lifecycle and http_get, with Playwright/requests mocked."""
from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from newsharvest.sources.browser import BrowserSession
from newsharvest.sources.http import DEFAULT_HEADERS, HttpResult, http_get


class TestBrowserSession:
    def test_close_without_start_is_noop(self):
        session = BrowserSession()
        session.close()
        session.close()
        assert session.started is False

    def test_closed_session_refuses_pages(self):
        session = BrowserSession()
        session.close()
        with pytest.raises(RuntimeError):
            session.acquire_page()

    def test_close_tears_down_once(self):
        session = BrowserSession()
        browser, playwright = MagicMock(), MagicMock()
        session._browser, session._playwright = browser, playwright

        with session:
            assert session.started is True

        session.close()
        browser.close.assert_called_once_with()
        playwright.stop.assert_called_once_with()
        assert session.started is False

    def test_render_releases_page(self):
        session = BrowserSession(timeout_s=10)
        page = MagicMock()
        page.content.return_value = "<html>ok</html>"
        page.url = "https://town.example.ca/news/"
        page.is_closed.return_value = False

        with patch.object(session, "acquire_page", return_value=page):
            res = session.render("https://town.example.ca/news", wait_script="() => true", settle_ms=500)

        assert res == HttpResult(url="https://town.example.ca/news/", status_code=200, text="<html>ok</html>")
        page.goto.assert_called_once_with("https://town.example.ca/news", wait_until="networkidle", timeout=10000)
        page.wait_for_function.assert_called_once()
        page.wait_for_timeout.assert_called_once_with(500)
        page.close.assert_called_once_with()


class TestHttpGet:
    @patch("newsharvest.sources.http.requests.get")
    def test_merges_headers_and_keeps_error_bodies(self, get):
        get.return_value = MagicMock(url="https://x.ca/final", status_code=404, text="not here")

        res = http_get("https://x.ca/start", headers={"Cookie": "Lang=en"}, timeout_s=5)

        assert res.url == "https://x.ca/final"
        assert res.ok is False
        assert res.text == "not here"
        headers = get.call_args.kwargs["headers"]
        assert headers["Cookie"] == "Lang=en"
        assert headers["User-Agent"] == DEFAULT_HEADERS["User-Agent"]
        assert get.call_args.kwargs["timeout"] == 5
        assert get.call_args.kwargs["allow_redirects"] is True

    def test_ok_range(self):
        assert HttpResult(url="u", status_code=200, text="").ok is True
        assert HttpResult(url="u", status_code=301, text="").ok is True
        assert HttpResult(url="u", status_code=500, text="").ok is False
