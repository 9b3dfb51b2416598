from __future__ import annotations

import calendar
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

import feedparser
from bs4 import BeautifulSoup

from ...config import TIMEZONE
from ...dates import parse_date_loose
from ...url_utils import abs_url
from ..base import BaseAdapter
from ..extract import apply_filters, clean_title, dedupe_by_link
from ..http import http_get
from ..types import RawRow, SourceConfig

logger = logging.getLogger(__name__)


def _entry_date(entry: Any, tz: str) -> Optional[datetime]:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            # feedparser normalizes these structs to UTC
            return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
    for key in ("published", "updated"):
        dt = parse_date_loose(entry.get(key), tz)
        if dt:
            return dt
    return None


def _entry_content(entry: Any) -> Optional[str]:
    raw = ""
    content = entry.get("content")
    if content:
        raw = " ".join(str(c.get("value") or "") for c in content)
    if not raw.strip():
        raw = str(entry.get("summary") or "")
    text = BeautifulSoup(raw, "html.parser").get_text(" ", strip=True)
    return " ".join(text.split()) or None


class FeedAdapter(BaseAdapter):
    """RSS/Atom feed. Entries usually carry their own date and summary."""

    def fetch(self, cfg: SourceConfig, tz: str = TIMEZONE) -> List[RawRow]:
        res = http_get(cfg.url, headers=cfg.headers)
        if not res.ok:
            raise RuntimeError(f"feed HTTP {res.status_code} for {cfg.url}")

        feed = feedparser.parse(res.text)
        if feed.get("bozo") and not feed.entries:
            raise RuntimeError(f"feed parse failed for {cfg.url}: {feed.get('bozo_exception')!r}")

        rows: List[RawRow] = []
        for entry in feed.entries:
            title = clean_title(str(entry.get("title") or ""), cfg)
            link = abs_url(str(entry.get("link") or ""), cfg.base_url or cfg.url)
            if not title or not link:
                continue
            rows.append(
                RawRow(
                    title=title,
                    link=link,
                    date=_entry_date(entry, tz),
                    content=_entry_content(entry),
                )
            )

        kept = dedupe_by_link(apply_filters(rows, cfg))
        logger.info(
            "[feed] source_id=%s entries=%d kept=%d",
            cfg.source_id, len(feed.entries), len(kept),
        )
        return kept
