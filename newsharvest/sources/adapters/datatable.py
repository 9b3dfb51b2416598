from __future__ import annotations

import logging
from typing import Any, List, Optional

from bs4 import BeautifulSoup

from ...config import TIMEZONE
from ...dates import parse_date_loose
from ...url_utils import abs_url
from ..base import BaseAdapter
from ..extract import apply_filters, clean_title, dedupe_by_link
from ..types import RawRow, SourceConfig

logger = logging.getLogger(__name__)


def row_from_record(record: Any, cfg: SourceConfig, tz: str = TIMEZONE) -> Optional[RawRow]:
    """
    One record returned by the page script.

    `title` may be an HTML fragment carrying the link (<a href=...>Title</a>);
    an explicit `link` field wins over the fragment's href.
    """
    if not isinstance(record, dict):
        return None
    fragment = BeautifulSoup(str(record.get("title") or ""), "html.parser")
    title = clean_title(fragment.get_text(" ", strip=True), cfg)

    href = str(record.get("link") or "").strip()
    if not href:
        a = fragment.find("a", href=True)
        href = (a.get("href") or "").strip() if a else ""
    link = abs_url(href, cfg.base_url or cfg.url)

    if not title or not link:
        return None
    return RawRow(title=title, link=link, date=parse_date_loose(str(record.get("date") or ""), tz))


class DataTableAdapter(BaseAdapter):
    """
    Listing whose rows live in a client-side table widget (e.g. jQuery DataTables).

    Strategy:
    - Render the listing in the shared browser and wait for `browser.wait_script`
    - Read the row records straight from the widget with `browser.rows_script`
    - Detail pages are plain HTTP (see BaseAdapter.enrich)
    """

    needs_browser = True

    def fetch(self, cfg: SourceConfig, tz: str = TIMEZONE) -> List[RawRow]:
        rules = cfg.browser
        if rules is None or not rules.rows_script:
            raise ValueError(f"source {cfg.source_id} has no browser.rows_script")

        browser = self.require_browser()
        page = browser.acquire_page()
        try:
            browser.navigate(page, cfg.url, wait_script=rules.wait_script, settle_ms=rules.settle_ms)
            records = browser.evaluate(page, rules.rows_script) or []
        finally:
            browser.release_page(page)

        rows = [r for r in (row_from_record(rec, cfg, tz) for rec in records) if r is not None]
        kept = dedupe_by_link(apply_filters(rows, cfg))
        logger.info(
            "[datatable] source_id=%s records=%d rows=%d kept=%d",
            cfg.source_id, len(records), len(rows), len(kept),
        )
        return kept
