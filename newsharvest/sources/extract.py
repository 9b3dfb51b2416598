"""
Config-driven extraction of candidate rows from a listing document, and of
body text from a detail document.

Listing extraction (extract_rows):
  1. list items via rules.list_item; title/link/date resolved per item
  2. declared title_strip rules
  3. noise heuristic (junk_titles), always on
  4. link_includes / link_excludes / title_excludes
  5. dedupe by link (case-insensitive); rows without a link are dropped
  6. nothing left -> every <a href> in the document, same link filters, capped

A selector that matches nothing is not an error. It only leads to step 6.
"""
from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Union

from bs4 import BeautifulSoup, Tag

from ..config import TIMEZONE
from ..dates import parse_date_loose
from ..junk_titles import is_junk_row
from ..url_utils import abs_url
from .page_state import text_from_page_state
from .types import ExtractionRules, RawRow, SourceConfig

logger = logging.getLogger(__name__)

FALLBACK_ANCHOR_CAP = 80
MIN_CONTENT_LENGTH = 50

# Removed from detail documents before any content strategy runs
NOISE_SELECTORS = (
    "script, style, nav, footer, header, aside, iframe, "
    ".sidebar, .menu, .ads, .ad, .nav, .alert, "
    ".c-related-stories, .pp-multiple-authors-boxes-wrapper"
)

GENERIC_CONTENT_SELECTORS: tuple[str, ...] = (
    "article",
    ".content",
    ".post-content",
    ".entry-content",
    ".article-body",
    "main",
    "#main-content",
    ".field-item",
    ".node__content",
    ".body-text",
    "#content",
    ".view-content",
    ".b-article-body",
)

Document = Union[str, BeautifulSoup]


def _soup(doc: Document) -> BeautifulSoup:
    if isinstance(doc, BeautifulSoup):
        return doc
    return BeautifulSoup(doc or "", "html.parser")


def _squash(s: Optional[str]) -> str:
    return " ".join((s or "").split())


def _text(el: Tag) -> str:
    return _squash(el.get_text(" ", strip=True))


def _base(cfg: SourceConfig) -> str:
    return cfg.base_url or cfg.url


def clean_title(raw: str, cfg: SourceConfig) -> str:
    t = _squash(raw)
    for pattern in cfg.title_strip:
        t = re.sub(pattern, "", t, flags=re.IGNORECASE).strip()
    return _squash(t)


# ------------------------------------------------------------------
# Per-item field resolution
# ------------------------------------------------------------------

def _item_title(li: Tag, rules: ExtractionRules) -> str:
    el = li.select_one(rules.title) if rules.title else None
    return _text(el if el is not None else li)


def _item_link(li: Tag, rules: ExtractionRules, base: str) -> str:
    href = ""
    if rules.link:
        a = li.select_one(rules.link)
        if a is not None:
            href = (a.get("href") or "").strip()
    if not href:
        href = (li.get("href") or "").strip()
    return abs_url(href, base)


def _date_element(li: Tag, selector: str) -> Optional[Tag]:
    el = li.select_one(selector)
    if el is not None:
        return el
    # Some listings put the date next to the item instead of inside it
    for sib in li.find_next_siblings():
        if sib.css.match(selector):
            return sib
    return None


def _item_date(li: Tag, rules: ExtractionRules, tz: str):
    if not rules.date:
        return None
    el = _date_element(li, rules.date)
    if el is None:
        return None
    raw = (el.get(rules.date_attr) or "") if rules.date_attr else _text(el)
    return parse_date_loose(str(raw), tz)


# ------------------------------------------------------------------
# Filters
# ------------------------------------------------------------------

def _lowered(values: Iterable[str]) -> List[str]:
    return [v.lower() for v in values if v]


def link_passes(link: str, cfg: SourceConfig) -> bool:
    low = link.lower()
    incs = _lowered(cfg.link_includes)
    if incs and not any(inc in low for inc in incs):
        return False
    exs = _lowered(cfg.link_excludes)
    if any(ex in low for ex in exs):
        return False
    return True


def apply_filters(rows: List[RawRow], cfg: SourceConfig) -> List[RawRow]:
    """Noise heuristic first, then the declared link/title filters."""
    bads = _lowered(cfg.title_excludes)
    out: List[RawRow] = []
    for r in rows:
        if is_junk_row(r.title, r.link):
            continue
        if not link_passes(r.link, cfg):
            continue
        if any(bad in r.title.lower() for bad in bads):
            continue
        out.append(r)
    return out


def dedupe_by_link(rows: List[RawRow]) -> List[RawRow]:
    seen = set()
    out: List[RawRow] = []
    for r in rows:
        key = (r.link or "").strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(r)
    return out


def fallback_anchor_rows(soup: BeautifulSoup, cfg: SourceConfig) -> List[RawRow]:
    base = _base(cfg)
    anchors: List[RawRow] = []
    seen = set()
    for a in soup.find_all("a", href=True):
        href = abs_url(a.get("href"), base)
        title = clean_title(_text(a), cfg)
        if not href or not title:
            continue
        if is_junk_row(title, href) or not link_passes(href, cfg):
            continue
        key = href.lower()
        if key in seen:
            continue
        seen.add(key)
        anchors.append(RawRow(title=title, link=href))
    logger.debug("[extract] source_id=%s fallback anchors collected=%d", cfg.source_id, len(anchors))
    return anchors[:FALLBACK_ANCHOR_CAP]


# ------------------------------------------------------------------
# Listing extraction
# ------------------------------------------------------------------

def extract_rows(doc: Document, cfg: SourceConfig, tz: str = TIMEZONE) -> List[RawRow]:
    soup = _soup(doc)
    base = _base(cfg)
    rows: List[RawRow] = []

    rules = cfg.rules
    if rules and rules.list_item:
        for li in soup.select(rules.list_item):
            title = clean_title(_item_title(li, rules), cfg)
            link = _item_link(li, rules, base)
            if not title or not link:
                continue
            rows.append(RawRow(title=title, link=link, date=_item_date(li, rules, tz)))

    matched = len(rows)
    rows = dedupe_by_link(apply_filters(rows, cfg))
    logger.debug(
        "[extract] source_id=%s list_items=%d after_filters=%d",
        cfg.source_id, matched, len(rows),
    )

    if not rows:
        rows = fallback_anchor_rows(soup, cfg)
        logger.info(
            "[extract] source_id=%s structural rows empty -> fallback anchors=%d",
            cfg.source_id, len(rows),
        )
    return rows


# ------------------------------------------------------------------
# Detail content
# ------------------------------------------------------------------

def _container_text(container: Tag) -> str:
    ps = container.find_all("p")
    if len(ps) > 2:
        return _squash(" ".join(_text(p) for p in ps))
    return _text(container)


def trim_content(content: str, cfg: SourceConfig) -> str:
    for marker in cfg.content_trim:
        content = re.sub(re.escape(marker) + r"[\s\S]*$", "", content, flags=re.IGNORECASE)
    return _squash(content)


def extract_content(doc: Document, cfg: SourceConfig) -> str:
    """
    Body text of a detail page. Strategies, first hit wins:
      page-state JSON blob -> configured content selector
      -> generic containers (first one longer than MIN_CONTENT_LENGTH) -> all <p>
    """
    soup = _soup(doc)

    # Read before noise removal: the blob lives in a <script>
    content = text_from_page_state(soup) or ""

    if not content:
        for el in soup.select(NOISE_SELECTORS):
            if not el.decomposed:  # nested match already removed with its parent
                el.decompose()

    if not content and cfg.rules and cfg.rules.content:
        content = _squash(" ".join(_text(el) for el in soup.select(cfg.rules.content)))

    short_candidate = ""
    if not content:
        for sel in GENERIC_CONTENT_SELECTORS:
            container = soup.select_one(sel)
            if container is None:
                continue
            text = _container_text(container)
            if len(text) > MIN_CONTENT_LENGTH:
                content = text
                break
            short_candidate = short_candidate or text

    if not content:
        content = _squash(" ".join(_text(p) for p in soup.find_all("p"))) or short_candidate

    return trim_content(content, cfg)
