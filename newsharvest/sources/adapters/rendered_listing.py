from __future__ import annotations

import logging
from typing import List

from ...config import TIMEZONE
from ..base import BaseAdapter
from ..extract import extract_rows
from ..types import RawRow, SourceConfig

logger = logging.getLogger(__name__)


class RenderedListingAdapter(BaseAdapter):
    """
    Listing that only exists after client-side rendering or behind bot mitigation.

    The shared browser renders the page; the rendered DOM then goes through the
    same selector-driven extraction as a static listing. Set
    `detail.via_browser` when detail pages need the browser as well.
    """

    needs_browser = True

    def fetch(self, cfg: SourceConfig, tz: str = TIMEZONE) -> List[RawRow]:
        browser = self.require_browser()
        rules = cfg.browser
        res = browser.render(
            cfg.url,
            wait_script=rules.wait_script if rules else None,
            settle_ms=rules.settle_ms if rules else 0,
        )
        logger.debug(
            "[rendered_listing] source_id=%s final_url=%s html_len=%d",
            cfg.source_id, res.url, len(res.text),
        )
        return extract_rows(res.text, cfg, tz)
