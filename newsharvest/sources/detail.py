from __future__ import annotations

import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Callable, Dict, List, Optional

from bs4 import BeautifulSoup

from ..config import TIMEZONE
from ..dates import parse_date_loose
from .extract import extract_content
from .http import HttpResult, http_get
from .types import RawRow, SourceConfig

logger = logging.getLogger(__name__)

# (url, headers) -> HttpResult
DetailFetcher = Callable[[str, Optional[Dict[str, str]]], HttpResult]

META_DATE_SELECTORS: tuple[tuple[str, str], ...] = (
    ('meta[property="article:published_time"]', "content"),
    ('meta[name="date"]', "content"),
    ('meta[name="pubdate"]', "content"),
    ('meta[itemprop="datePublished"]', "content"),
    ('meta[itemprop="dateCreated"]', "content"),
    ("time[datetime]", "datetime"),
)

VISIBLE_DATE_SELECTORS = (
    "time, .date, .post-date, .entry-date, p.published, .published, .value.field_created"
)
# Looser class match, only consulted after the explicit selectors
LOOSE_DATE_SELECTOR = "[class*=date]"

_POSTED_RE = re.compile(
    r"(?:Posted|Published)(?:\s+on)?\s*:?\s*([A-Za-z]{3,9}\.?\s+\d{1,2},?\s*\d{4})",
    re.IGNORECASE,
)


def _default_fetch(url: str, headers: Optional[Dict[str, str]]) -> HttpResult:
    return http_get(url, headers=headers)


def _jsonld_date_published(soup: BeautifulSoup) -> Optional[str]:
    """datePublished from JSON-LD (single object, array, or @graph)."""
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(script.get_text() or "")
        except (json.JSONDecodeError, TypeError):
            continue
        stack = [data]
        while stack:
            node = stack.pop(0)
            if isinstance(node, list):
                stack.extend(node)
            elif isinstance(node, dict):
                value = node.get("datePublished")
                if isinstance(value, str) and value.strip():
                    return value.strip()
                if isinstance(node.get("@graph"), list):
                    stack.extend(node["@graph"])
    return None


def extract_detail_date(soup: BeautifulSoup, tz: str = TIMEZONE) -> Optional[datetime]:
    """
    Publication time from a detail page:
    structured metadata -> visible date-labelled elements -> "Posted: <date>" text.
    """
    for selector, attr in META_DATE_SELECTORS:
        el = soup.select_one(selector)
        value = (el.get(attr) or "").strip() if el is not None else ""
        if value:
            dt = parse_date_loose(value, tz)
            if dt:
                return dt

    dt = parse_date_loose(_jsonld_date_published(soup), tz)
    if dt:
        return dt

    for selector in (VISIBLE_DATE_SELECTORS, LOOSE_DATE_SELECTOR):
        for el in soup.select(selector):
            raw = (el.get("datetime") or el.get_text(" ", strip=True) or "").strip()
            if not raw:
                continue
            dt = parse_date_loose(raw, tz)
            if dt:
                return dt

    body = soup.body or soup
    m = _POSTED_RE.search(body.get_text(" ", strip=True))
    if m:
        return parse_date_loose(m.group(1), tz)
    return None


def rewrite_detail_url(link: str, cfg: SourceConfig) -> str:
    """Apply the source's declared (old, new) rewrites, first occurrence each."""
    url = link
    for old, new in cfg.url_rewrite:
        url = url.replace(old, new, 1)
    return url


def needs_detail(row: RawRow, cfg: SourceConfig) -> bool:
    policy = cfg.detail
    return policy.always_fetch or (policy.fetch_when_missing_date and row.date is None)


def _fetch_one(row: RawRow, cfg: SourceConfig, fetch: DetailFetcher, tz: str) -> bool:
    """Returns True when this fetch supplied the missing date."""
    url = rewrite_detail_url(row.link, cfg)
    res = fetch(url, cfg.headers)
    if not res.ok:
        raise RuntimeError(f"HTTP {res.status_code} for {url}")

    soup = BeautifulSoup(res.text or "", "html.parser")
    got_date = False
    if row.date is None:
        dt = extract_detail_date(soup, tz)
        if dt:
            row.date = dt
            got_date = True

    # extract_content strips noise nodes, so it runs after the date lookup
    row.content = extract_content(soup, cfg)
    return got_date


def plan_detail_fetches(
    rows: List[RawRow],
    cfg: SourceConfig,
    *,
    fetch: Optional[DetailFetcher] = None,
    tz: str = TIMEZONE,
) -> Dict[str, int]:
    """
    Fill missing dates and body text in place from each selected row's own page.

    Fetches run on a pool bounded by cfg.detail.concurrency. A failed fetch
    leaves that row untouched and never stops the others. Returns counters.
    """
    fetch = fetch or _default_fetch
    selected = [r for r in rows if needs_detail(r, cfg)]
    stats: Dict[str, int] = {"selected": len(selected), "ok": 0, "failed": 0, "dates_found": 0}
    if not selected:
        return stats

    workers = max(1, int(cfg.detail.concurrency or 1))
    logger.debug(
        "[detail] source_id=%s plan total=%d to_detail=%d workers=%d",
        cfg.source_id, len(rows), len(selected), workers,
    )

    def _record(got_date: bool) -> None:
        stats["ok"] += 1
        if got_date:
            stats["dates_found"] += 1

    if workers == 1:
        # Inline: browser-backed fetchers must stay on the caller's thread
        for row in selected:
            try:
                _record(_fetch_one(row, cfg, fetch, tz))
            except Exception as e:
                stats["failed"] += 1
                logger.warning(
                    "[detail] source_id=%s fetch failed link=%s: %s: %s",
                    cfg.source_id, row.link, type(e).__name__, e,
                )
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {pool.submit(_fetch_one, row, cfg, fetch, tz): row for row in selected}
            for fut in as_completed(futures):
                row = futures[fut]
                try:
                    _record(fut.result())
                except Exception as e:
                    stats["failed"] += 1
                    logger.warning(
                        "[detail] source_id=%s fetch failed link=%s: %s: %s",
                        cfg.source_id, row.link, type(e).__name__, e,
                    )

    logger.info(
        "[detail] source_id=%s selected=%d ok=%d failed=%d dates_found=%d",
        cfg.source_id, stats["selected"], stats["ok"], stats["failed"], stats["dates_found"],
    )
    return stats
