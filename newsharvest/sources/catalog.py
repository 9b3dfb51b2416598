"""
Built-in source records and the loader that resolves the run's source list.

Conventions for `detail`:
  A (stable)    list page has dates        -> fetch only when a date is missing
  B (partial)   list page sometimes lacks  -> fetch_when_missing_date (default)
  C (detail)    list page never has dates  -> always_fetch
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from ..config import SOURCES_FILE
from .types import BrowserRules, DetailPolicy, ExtractionRules, SourceConfig

logger = logging.getLogger(__name__)

ALWAYS = DetailPolicy(fetch_when_missing_date=True, always_fetch=True, concurrency=3)

BUILTIN_SOURCES: List[SourceConfig] = [
    SourceConfig(
        source_id="city-sj",
        name="City of Saint John",
        adapter="html",
        url="https://saintjohn.ca/en/news-and-notices",
        base_url="https://saintjohn.ca",
        rules=ExtractionRules(
            list_item="article.article--teaser",
            title=".mid-card span",
            link="a.node-link",
            date=".date",
            content=".article__body",
        ),
        link_includes=("/en/news-and-notices/",),
        link_excludes=("/news-notices-rss", "/subscribe-email-notifications", "/en/search"),
        title_excludes=("Subscribe", "RSS", "Search"),
        max_items=20,
        detail=ALWAYS,
    ),
    SourceConfig(
        source_id="rothesay",
        name="Town of Rothesay",
        adapter="html",
        url="https://www.rothesay.ca/news/",
        base_url="https://www.rothesay.ca",
        rules=ExtractionRules(list_item="#content .entry-content h2", title="a", link="a"),
        max_items=20,
        detail=ALWAYS,
    ),
    SourceConfig(
        source_id="quispamsis",
        name="Town of Quispamsis",
        adapter="html",
        url="https://www.quispamsis.ca/news/",
        base_url="https://www.quispamsis.ca",
        rules=ExtractionRules(
            list_item=".gs-feed-list-item",
            title="a.gs-feed-list-title",
            link="a.gs-feed-list-title",
            date=".gs-feed-list-author-date",
        ),
        link_includes=("/news-and-notices/posts/",),
        title_excludes=("Home", "Contact", "Council", "Parks"),
        title_strip=(r"By Town of Quispamsis\s*$",),
        max_items=20,
        detail=ALWAYS,
    ),
    SourceConfig(
        source_id="nb-power",
        name="NB Power (News)",
        adapter="html",
        url="https://www.nbpower.com/en/about-us/news-media-centre/news/",
        base_url="https://www.nbpower.com",
        headers={"Cookie": "Lang=en", "Accept-Language": "en-US,en;q=0.9"},
        rules=ExtractionRules(
            list_item=".newsItem",
            title="a",
            link="a",
            date="span.date",
            content=".col.span_3_of_4.mobileMargin, .mainContent",
        ),
        link_includes=("/news/20",),
        link_excludes=("/fr/", "contact-us"),
        # "Title - 2026-01-23 ..." -> "Title"
        title_strip=(r"\s*-\s*\d{4}-\d{2}-\d{2}[\s\S]*$",),
        max_items=20,
        detail=ALWAYS,
    ),
    SourceConfig(
        source_id="vitalite",
        name="Vitalité Health Network",
        adapter="html",
        url="https://www.vitalitenb.ca/en/news",
        base_url="https://www.vitalitenb.ca",
        rules=ExtractionRules(
            list_item="#flexicontent .fc-item-block-standard-wrapper, .fc-item-block-standard-wrapper",
            title="h3 a, a",
            link="h3 a, a",
            date=".fc_date, time",
            date_attr="datetime",
        ),
        link_includes=("/en/news/",),
        title_excludes=("Home", "Careers", "Contact"),
        max_items=20,
    ),
    SourceConfig(
        source_id="country94",
        name="Country 94 (Your Saint John)",
        adapter="html",
        url="https://yoursaintjohn.ca/news/",
        base_url="https://yoursaintjohn.ca",
        rules=ExtractionRules(
            list_item="article.type-post, article.category-news",
            title="h2.tbp_title a",
            link="h2.tbp_title a",
            content=".tb_text_wrap",
        ),
        content_trim=(
            "Current weather conditions",
            "View all posts",
            "Do you have a news tip",
            "Newsletter Signup",
        ),
        max_items=20,
        detail=ALWAYS,
    ),
    SourceConfig(
        source_id="ctv-nb",
        name="CTV Atlantic (New Brunswick)",
        adapter="html",
        url="https://atlantic.ctvnews.ca/new-brunswick",
        base_url="https://atlantic.ctvnews.ca",
        rules=ExtractionRules(
            list_item="article.b-media-item, article",
            title="h2 a.c-link",
            link="h2 a.c-link",
            date="time.c-date",
            date_attr="datetime",
            content="article",
        ),
        link_includes=("/atlantic/new-brunswick/article/", "/new-brunswick/article/"),
        max_items=20,
        detail=ALWAYS,
    ),
    SourceConfig(
        source_id="gnb-news-en",
        name="Government of NB News (EN)",
        adapter="html",
        url="https://www2.gnb.ca/content/gnb/en/news/recent_news/_jcr_content/mainContent_par/newslist.html",
        base_url="https://www2.gnb.ca",
        rules=ExtractionRules(
            list_item="li",
            title="h3 a",
            link="h3 a",
            date=".post_date",
            content=".articleBody",
        ),
        link_includes=("/news/news_release.",),
        # detail pages are empty shells; the cache-bypassing fragment has the body
        url_rewrite=(
            ("/news_release.", "/news_release/_jcr_content/mainContent_par/newsarticle."),
            (".html", ".nocache.html"),
        ),
        max_items=20,
        detail=ALWAYS,
    ),
    SourceConfig(
        source_id="unb-news",
        name="UNB Newsroom",
        adapter="html",
        url="https://blogs.unb.ca/newsroom/",
        base_url="https://blogs.unb.ca/newsroom/",
        rules=ExtractionRules(
            list_item="h2",
            title="a",
            link="a",
            date='p:-soup-contains("Posted")',
        ),
        link_includes=("/newsroom/",),
        max_items=20,
        detail=ALWAYS,
    ),
    SourceConfig(
        source_id="sj-police",
        name="Saint John Police",
        adapter="html",
        url="https://saintjohnpolice.ca/media-release/",
        base_url="https://saintjohnpolice.ca",
        rules=ExtractionRules(
            list_item="article, .et_pb_post, .post",
            title="h2.entry-title a, h2 a",
            link="h2.entry-title a, h2 a",
            date=".published, .post-meta time",
            content=".elementor-widget-theme-post-content .elementor-widget-container",
        ),
        link_includes=("/media-release/",),
        max_items=20,
        detail=ALWAYS,
    ),
    SourceConfig(
        source_id="cbc-nb",
        name="CBC New Brunswick",
        adapter="rss",
        url="https://www.cbc.ca/webfeed/rss/rss-canada-newbrunswick",
        base_url="https://www.cbc.ca",
        link_excludes=("/player/", "/video/", "/radio/"),
        max_items=20,
        detail=ALWAYS,
    ),
    SourceConfig(
        source_id="rcmp-nb",
        name="RCMP New Brunswick",
        adapter="datatable",
        url="https://rcmp.ca/en/nb/news",
        base_url="https://rcmp.ca",
        browser=BrowserRules(
            wait_script="() => window.jQuery && window.jQuery('#n').DataTable().data().length > 0",
            rows_script="() => window.jQuery('#n').DataTable().data().toArray()",
        ),
        rules=ExtractionRules(list_item="tr", content="main article, main"),
        max_items=10,
        detail=ALWAYS,
    ),
    SourceConfig(
        source_id="town-saint-andrews",
        name="Town of Saint Andrews",
        adapter="rendered_html",
        url="https://www.townofsaintandrews.ca/news/",
        base_url="https://www.townofsaintandrews.ca",
        browser=BrowserRules(settle_ms=5000),
        rules=ExtractionRules(
            list_item=".oxy-dynamic-list .card-relaxed",
            title="h3.ct-headline",
            link="a.ct-link-text",
            date=".ct-text-block.font-semibold span",
            content=".oxy-stock-content-styles, article",
        ),
        max_items=5,
        detail=DetailPolicy(fetch_when_missing_date=True, always_fetch=True, concurrency=1, via_browser=True),
    ),
]


# ------------------------------------------------------------------
# Record -> SourceConfig
# ------------------------------------------------------------------

def _tuple(value: Any) -> tuple:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


def source_config_from_dict(d: Dict[str, Any]) -> SourceConfig:
    """Build a SourceConfig from a JSON record (snake_case keys, nested objects)."""
    rules = d.get("rules")
    detail = d.get("detail")
    browser = d.get("browser")
    return SourceConfig(
        source_id=d["source_id"],
        name=d.get("name") or d["source_id"],
        adapter=d.get("adapter", "html"),
        url=d["url"],
        enabled=bool(d.get("enabled", True)),
        base_url=d.get("base_url"),
        rules=ExtractionRules(**rules) if rules else None,
        link_includes=_tuple(d.get("link_includes")),
        link_excludes=_tuple(d.get("link_excludes")),
        title_excludes=_tuple(d.get("title_excludes")),
        max_items=d.get("max_items"),
        detail=DetailPolicy(**detail) if detail else DetailPolicy(),
        headers=d.get("headers"),
        browser=BrowserRules(**browser) if browser else None,
        title_strip=_tuple(d.get("title_strip")),
        content_trim=_tuple(d.get("content_trim")),
        url_rewrite=tuple(tuple(pair) for pair in d.get("url_rewrite") or ()),
    )


def _log_sources(mode: str, sources: List[SourceConfig]) -> None:
    logger.info("[sources] mode=%s count=%d", mode, len(sources))
    for s in sources:
        logger.debug(
            "[sources] - source_id=%s adapter=%s enabled=%s max_items=%s url=%s",
            s.source_id, s.adapter, s.enabled, s.max_items, s.url,
        )


def load_sources(path: Optional[str] = SOURCES_FILE) -> List[SourceConfig]:
    """
    File-first source loading.
    Falls back to BUILTIN_SOURCES if the file is missing/unreadable/empty.

    Toggle:
      NEWSHARVEST_SOURCES_FILE=path/to/sources.json (JSON array of records)
    """
    if not path:
        _log_sources("BUILTIN", BUILTIN_SOURCES)
        return list(BUILTIN_SOURCES)

    try:
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
        sources = [source_config_from_dict(r) for r in records or []]
    except Exception as e:
        _log_sources(f"FALLBACK (file load failed: {type(e).__name__}: {e})", BUILTIN_SOURCES)
        return list(BUILTIN_SOURCES)

    if not sources:
        _log_sources("FALLBACK (file empty)", BUILTIN_SOURCES)
        return list(BUILTIN_SOURCES)

    _log_sources(f"FILE {path}", sources)
    return sources
