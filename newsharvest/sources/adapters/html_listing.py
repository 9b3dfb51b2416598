from __future__ import annotations

import logging
from typing import List

from ...config import TIMEZONE
from ..base import BaseAdapter
from ..extract import extract_rows
from ..http import http_get
from ..types import RawRow, SourceConfig

logger = logging.getLogger(__name__)


class HtmlListingAdapter(BaseAdapter):
    """
    Static HTML listing page, parsed with the source's declared selectors.
    Missing dates and body text come from detail pages (see BaseAdapter.enrich).
    """

    def fetch(self, cfg: SourceConfig, tz: str = TIMEZONE) -> List[RawRow]:
        logger.debug("[html_listing] source_id=%s fetch list url=%s", cfg.source_id, cfg.url)
        res = http_get(cfg.url, headers=cfg.headers)
        if not res.ok:
            raise RuntimeError(f"listing HTTP {res.status_code} for {cfg.url}")
        return extract_rows(res.text, cfg, tz)
