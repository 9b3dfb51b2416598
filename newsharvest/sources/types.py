from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class ExtractionRules:
    """CSS selectors, all relative to the list item except `list_item` and `content`."""
    list_item: str
    title: Optional[str] = None
    link: Optional[str] = None
    date: Optional[str] = None
    date_attr: Optional[str] = None    # None -> element text
    content: Optional[str] = None      # detail-page body region


@dataclass(frozen=True)
class DetailPolicy:
    fetch_when_missing_date: bool = True
    always_fetch: bool = False
    concurrency: int = 3
    via_browser: bool = False          # detail pages need the shared browser session


@dataclass(frozen=True)
class BrowserRules:
    wait_script: Optional[str] = None  # JS predicate awaited before reading the page
    rows_script: Optional[str] = None  # JS returning [{title, date, link?}, ...]
    settle_ms: int = 0


@dataclass(frozen=True)
class SourceConfig:
    source_id: str
    name: str
    adapter: str                       # html | rss | rendered_html | datatable
    url: str
    enabled: bool = True
    base_url: Optional[str] = None
    rules: Optional[ExtractionRules] = None

    link_includes: Tuple[str, ...] = ()
    link_excludes: Tuple[str, ...] = ()
    title_excludes: Tuple[str, ...] = ()
    max_items: Optional[int] = None

    detail: DetailPolicy = field(default_factory=DetailPolicy)
    headers: Optional[Dict[str, str]] = None
    browser: Optional[BrowserRules] = None

    # per-source quirks, declared as data
    title_strip: Tuple[str, ...] = ()              # regexes removed from titles
    content_trim: Tuple[str, ...] = ()             # marker phrases; drop marker..end
    url_rewrite: Tuple[Tuple[str, str], ...] = ()  # (old, new) before detail fetch


@dataclass
class RawRow:
    """
    One candidate item during a single harvest pass.
    date/content are filled in place by the detail planner.
    """
    title: str
    link: str
    date: Optional[datetime] = None
    content: Optional[str] = None
