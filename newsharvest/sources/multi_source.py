from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from ..config import TIMEZONE, WINDOW_HOURS, WINDOW_START_HOUR
from ..models import HarvestedItem
from ..window import in_window
from .base import BaseAdapter
from .browser import BrowserSession
from .catalog import load_sources
from .registry import adapter_needs_browser, get_adapter
from .types import RawRow, SourceConfig

logger = logging.getLogger(__name__)


@dataclass
class HarvestOptions:
    tz: str = TIMEZONE
    window_start_hour: int = WINDOW_START_HOUR
    window_hours: int = WINDOW_HOURS
    ignore_window: bool = False
    only: Optional[str] = None         # run a single source_id
    now: Optional[datetime] = None     # fixed "now" for the window (tests, replays)


@dataclass
class SourceGroup:
    source_id: str
    name: str
    items: List[HarvestedItem] = field(default_factory=list)


@dataclass
class HarvestResult:
    groups: List[SourceGroup] = field(default_factory=list)
    sources_run: int = 0
    sources_ok: int = 0
    sources_failed: int = 0

    @property
    def items(self) -> List[HarvestedItem]:
        return [it for g in self.groups for it in g.items]


def _to_item(row: RawRow, cfg: SourceConfig) -> HarvestedItem:
    return HarvestedItem(
        title=row.title,
        link=row.link,
        source=cfg.source_id,
        published_at=row.date,
        content=row.content,
    )


def harvest_source(cfg: SourceConfig, adapter: BaseAdapter, opts: HarvestOptions) -> List[HarvestedItem]:
    """
    One source, start to finish:
    listing -> detail planning -> window filter -> max_items -> HarvestedItem.

    Listing failures propagate (source-fatal); detail failures never do.
    """
    rows = adapter.fetch(cfg, opts.tz)
    stats = adapter.enrich(cfg, rows, opts.tz)

    if opts.ignore_window:
        # still nothing undated: an item without a timestamp is unpublishable
        kept = [r for r in rows if r.date is not None]
    else:
        kept = [
            r for r in rows
            if in_window(r.date, opts.tz, opts.window_start_hour, opts.window_hours, now=opts.now)
        ]

    if cfg.max_items is not None:
        kept = kept[: cfg.max_items]

    logger.info(
        "[source] source_id=%s rows=%d detail_ok=%d detail_failed=%d in_window=%d",
        cfg.source_id, len(rows), stats.get("ok", 0), stats.get("failed", 0), len(kept),
    )
    return [_to_item(r, cfg) for r in kept]


def select_sources(sources: List[SourceConfig], only: Optional[str] = None) -> List[SourceConfig]:
    if only:
        return [s for s in sources if s.source_id == only]
    return [s for s in sources if s.enabled]


def harvest_all(
    sources: Optional[List[SourceConfig]] = None,
    opts: Optional[HarvestOptions] = None,
    *,
    browser_factory: Callable[[], BrowserSession] = BrowserSession,
) -> HarvestResult:
    """
    Entry point used by pipeline.py.

    Runs the selected sources sequentially. A single failing source does not crash
    the full run. The browser session is opened on the first source that needs it,
    shared by the rest, and closed once when the run ends.
    """
    opts = opts or HarvestOptions()
    selected = select_sources(sources if sources is not None else load_sources(), opts.only)
    result = HarvestResult()
    browser: Optional[BrowserSession] = None

    try:
        for cfg in selected:
            result.sources_run += 1
            logger.info(
                "[source] start source_id=%s adapter=%s max_items=%s",
                cfg.source_id, cfg.adapter, cfg.max_items,
            )
            try:
                if browser is None and (adapter_needs_browser(cfg.adapter) or cfg.detail.via_browser):
                    browser = browser_factory()
                adapter = get_adapter(cfg.adapter, browser=browser)
                items = harvest_source(cfg, adapter, opts)
            except Exception as e:
                result.sources_failed += 1
                logger.error(
                    "[source] ERROR source_id=%s adapter=%s: %s: %s",
                    cfg.source_id, cfg.adapter, type(e).__name__, e,
                )
                continue

            result.sources_ok += 1
            result.groups.append(SourceGroup(source_id=cfg.source_id, name=cfg.name, items=items))
            logger.info("[source] done source_id=%s items=%d", cfg.source_id, len(items))
    finally:
        if browser is not None:
            browser.close()

    logger.info(
        "[sources] run=%d ok=%d failed=%d total_items=%d",
        result.sources_run, result.sources_ok, result.sources_failed, len(result.items),
    )
    return result
