# tests/test_detail.py
"""
Detail-fetch planning (newsharvest/sources/detail.py).
HTTP is replaced by a fake fetcher; no network.
"""
from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import requests
from bs4 import BeautifulSoup

from newsharvest.sources.adapters.rendered_listing import RenderedListingAdapter
from newsharvest.sources.detail import (
    extract_detail_date,
    needs_detail,
    plan_detail_fetches,
    rewrite_detail_url,
)
from newsharvest.sources.http import HttpResult
from newsharvest.sources.types import DetailPolicy, ExtractionRules, RawRow, SourceConfig

TZ = "America/Moncton"

BODY = "<article><p>Police are asking for the public's help locating a missing teen last seen Monday.</p></article>"


def _detail_page(meta: str = "") -> str:
    return f"<html><head>{meta}</head><body>{BODY}</body></html>"


def _cfg(**overrides) -> SourceConfig:
    defaults = {
        "source_id": "police",
        "name": "Police",
        "adapter": "html",
        "url": "https://police.example.ca/releases",
        "rules": ExtractionRules(list_item="article"),
    }
    defaults.update(overrides)
    return SourceConfig(**defaults)


class FakeFetch:
    def __init__(self, pages: Dict[str, str], fail: Optional[set] = None):
        self.pages = pages
        self.fail = fail or set()
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def __call__(self, url: str, headers: Optional[Dict[str, str]]) -> HttpResult:
        with self._lock:
            self.calls.append(url)
        if url in self.fail:
            raise requests.Timeout(f"timed out: {url}")
        return HttpResult(url=url, status_code=200, text=self.pages.get(url, _detail_page()))


class TestPlanDetailFetches:
    def test_missing_date_filled_from_published_time_meta(self):
        link = "https://police.example.ca/releases/1"
        meta = '<meta property="article:published_time" content="2025-01-10T12:00:00Z">'
        fetch = FakeFetch({link: _detail_page(meta)})
        row = RawRow(title="Missing teen located", link=link)

        stats = plan_detail_fetches([row], _cfg(), fetch=fetch, tz=TZ)

        assert row.date == datetime(2025, 1, 10, 12, 0, tzinfo=timezone.utc)
        assert "missing teen" in (row.content or "")
        assert stats == {"selected": 1, "ok": 1, "failed": 0, "dates_found": 1}

    def test_one_timeout_does_not_stop_the_batch(self):
        links = [f"https://police.example.ca/releases/{i}" for i in range(5)]
        meta = '<meta property="article:published_time" content="2026-01-15T10:00:00Z">'
        fetch = FakeFetch({l: _detail_page(meta) for l in links}, fail={links[2]})
        rows = [RawRow(title=f"Release number {i}", link=l) for i, l in enumerate(links)]

        stats = plan_detail_fetches(rows, _cfg(detail=DetailPolicy(concurrency=3)), fetch=fetch, tz=TZ)

        assert stats["selected"] == 5
        assert stats["ok"] == 4
        assert stats["failed"] == 1
        assert sorted(fetch.calls) == sorted(links)
        for i, row in enumerate(rows):
            if i == 2:
                assert row.date is None and row.content is None
            else:
                assert row.date == datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)
                assert row.content

    def test_non_ok_status_counts_as_failure(self):
        link = "https://police.example.ca/releases/gone"

        def fetch(url, headers):
            return HttpResult(url=url, status_code=404, text="<p>Not found</p>")

        row = RawRow(title="Removed release", link=link)
        stats = plan_detail_fetches([row], _cfg(), fetch=fetch, tz=TZ)
        assert stats["failed"] == 1
        assert row.content is None

    def test_rows_with_dates_are_skipped_unless_always_fetch(self):
        dated = RawRow(title="Dated release", link="https://police.example.ca/r/1",
                       date=datetime(2026, 1, 15, tzinfo=timezone.utc))
        fetch = FakeFetch({})

        stats = plan_detail_fetches([dated], _cfg(), fetch=fetch, tz=TZ)
        assert stats["selected"] == 0
        assert fetch.calls == []

        stats = plan_detail_fetches([dated], _cfg(detail=DetailPolicy(always_fetch=True)), fetch=fetch, tz=TZ)
        assert stats["selected"] == 1
        assert dated.date == datetime(2026, 1, 15, tzinfo=timezone.utc)  # kept
        assert dated.content

    def test_url_rewrite_applied_before_fetch(self):
        link = "https://www2.gnb.ca/content/gnb/en/news/news_release.2026.01.0012.html"
        cfg = _cfg(url_rewrite=(
            ("/news_release.", "/news_release/_jcr_content/mainContent_par/newsarticle."),
            (".html", ".nocache.html"),
        ))
        fetch = FakeFetch({})
        plan_detail_fetches([RawRow(title="Province announces funding", link=link)], cfg, fetch=fetch, tz=TZ)

        assert fetch.calls == [
            "https://www2.gnb.ca/content/gnb/en/news/news_release/_jcr_content/"
            "mainContent_par/newsarticle.2026.01.0012.nocache.html"
        ]


def test_rewrite_detail_url_without_rules_is_identity():
    assert rewrite_detail_url("https://x.ca/a.html", _cfg()) == "https://x.ca/a.html"


def test_needs_detail():
    row = RawRow(title="Some release", link="https://x.ca/a")
    assert needs_detail(row, _cfg()) is True
    assert needs_detail(row, _cfg(detail=DetailPolicy(fetch_when_missing_date=False))) is False


class TestExtractDetailDate:
    def test_json_ld(self):
        html = """<script type="application/ld+json">
        {"@context":"https://schema.org","@graph":[{"@type":"WebPage"},
        {"@type":"NewsArticle","datePublished":"2026-01-12T08:00:00-04:00"}]}
        </script>"""
        dt = extract_detail_date(BeautifulSoup(html, "html.parser"), TZ)
        assert dt == datetime(2026, 1, 12, 12, 0, tzinfo=timezone.utc)

    def test_visible_date_element(self):
        html = '<div class="post-date">January 9, 2026</div><p>Body</p>'
        dt = extract_detail_date(BeautifulSoup(html, "html.parser"), TZ)
        assert dt is not None and dt.date().isoformat() == "2026-01-09"

    def test_explicit_date_element_beats_loose_class_match(self):
        html = """
        <div class="last-updated-date">March 3, 2024</div>
        <article><h1>Road work begins</h1><span class="date">January 10, 2025</span></article>
        """
        dt = extract_detail_date(BeautifulSoup(html, "html.parser"), TZ)
        assert dt is not None and dt.date().isoformat() == "2025-01-10"

    def test_loose_class_match_used_when_nothing_explicit(self):
        html = '<div class="last-updated-date">March 3, 2024</div><p>Body</p>'
        dt = extract_detail_date(BeautifulSoup(html, "html.parser"), TZ)
        assert dt is not None and dt.date().isoformat() == "2024-03-03"

    def test_posted_text_pattern(self):
        html = "<div><p>Posted: Jan 8, 2026 by Communications</p></div>"
        dt = extract_detail_date(BeautifulSoup(html, "html.parser"), TZ)
        assert dt is not None and dt.date().isoformat() == "2026-01-08"

    def test_nothing_found(self):
        assert extract_detail_date(BeautifulSoup("<p>No dates here</p>", "html.parser"), TZ) is None


# ---------------------------------------------------------------------------
# Concurrency bound
# ---------------------------------------------------------------------------

class InFlightFetch:
    """Records the peak number of fetches running at the same time."""

    def __init__(self, delay_s: float = 0.02):
        self.delay_s = delay_s
        self.in_flight = 0
        self.peak = 0
        self.threads = set()
        self._lock = threading.Lock()

    def __call__(self, url: str, headers: Optional[Dict[str, str]] = None) -> HttpResult:
        with self._lock:
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
            self.threads.add(threading.get_ident())
        try:
            time.sleep(self.delay_s)
            return HttpResult(url=url, status_code=200, text=_detail_page())
        finally:
            with self._lock:
                self.in_flight -= 1


class TestConcurrencyBound:
    def _rows(self, n: int) -> List[RawRow]:
        return [RawRow(title=f"Release number {i}", link=f"https://police.example.ca/r/{i}") for i in range(n)]

    def test_in_flight_fetches_never_exceed_concurrency(self):
        fetch = InFlightFetch()
        rows = self._rows(10)

        stats = plan_detail_fetches(rows, _cfg(detail=DetailPolicy(concurrency=3)), fetch=fetch, tz=TZ)

        assert stats["ok"] == 10
        assert 1 <= fetch.peak <= 3

    def test_concurrency_one_runs_inline(self):
        fetch = InFlightFetch(delay_s=0)
        plan_detail_fetches(self._rows(4), _cfg(detail=DetailPolicy(concurrency=1)), fetch=fetch, tz=TZ)

        assert fetch.peak == 1
        assert fetch.threads == {threading.get_ident()}

    def test_browser_detail_pages_forced_sequential(self):
        fetch = InFlightFetch(delay_s=0)
        browser = MagicMock()
        browser.render.side_effect = lambda url, settle_ms=0: fetch(url)
        cfg = _cfg(detail=DetailPolicy(always_fetch=True, concurrency=5, via_browser=True))

        stats = RenderedListingAdapter(browser=browser).enrich(cfg, self._rows(6), TZ)

        assert stats["ok"] == 6
        assert fetch.peak == 1
        assert fetch.threads == {threading.get_ident()}
