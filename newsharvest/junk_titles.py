# newsharvest/junk_titles.py
"""
Single source of truth for obvious-noise rows on listing pages.

Imported by:
  - sources/extract.py   (structural extraction + anchor fallback)
  - sources/adapters/*   (feed and script-driven listings)

Runs for every source, independent of the declared include/exclude filters.

Title rules:
  1. Empty or whitespace-only → junk
  2. Shorter than MIN_TITLE_LENGTH characters → junk
  3. Exact match (case-insensitive) against known navigation words → junk
  4. Contains only whitespace / digits / punctuation (no letters) → junk

Link rules:
  1. Empty, bare "#" anchors, javascript:/mailto:/tel: pseudo-links → junk
  2. Social-media hosts → junk
  3. Search pages (search paths, "?s=" on the root) and the site home page → junk
"""
from __future__ import annotations

import re
from urllib.parse import parse_qsl, urlsplit

MIN_TITLE_LENGTH = 5

# Navigation / chrome labels that show up as anchor text on listing pages
JUNK_TITLES_EXACT: frozenset[str] = frozenset({
    "home",
    "read more",
    "more news",
    "next page",
    "previous page",
    "subscribe",
    "contact us",
    "privacy policy",
    "terms of use",
    "accessibility",
})

JUNK_LINK_PREFIXES: tuple[str, ...] = (
    "#",
    "javascript:",
    "mailto:",
    "tel:",
)

SOCIAL_HOSTS: frozenset[str] = frozenset({
    "facebook.com",
    "twitter.com",
    "x.com",
    "instagram.com",
    "linkedin.com",
    "youtube.com",
    "tiktok.com",
    "pinterest.com",
    "threads.net",
})

_STRUCTURAL_ONLY_RE = re.compile(r"^[\s\d\W]*$", re.UNICODE)
_SEARCH_PATH_RE = re.compile(r"(?:^|/)search(?:/|$)", re.IGNORECASE)


def is_junk_title(title: str | None) -> bool:
    """Return True if *title* is a navigation/noise label rather than a headline."""
    t = " ".join((title or "").split())
    if not t:
        return True
    if len(t) < MIN_TITLE_LENGTH:
        return True
    if t.lower() in JUNK_TITLES_EXACT:
        return True
    if _STRUCTURAL_ONLY_RE.fullmatch(t):
        return True
    return False


def _host_matches(host: str, domains: frozenset[str]) -> bool:
    host = host.lower()
    if host.startswith("www."):
        host = host[4:]
    return any(host == d or host.endswith("." + d) for d in domains)


def is_junk_link(link: str | None) -> bool:
    """Return True for pseudo-links, social links, search pages and home anchors."""
    href = (link or "").strip()
    if not href:
        return True
    low = href.lower()
    if low.startswith(JUNK_LINK_PREFIXES):
        return True

    try:
        parts = urlsplit(href)
    except ValueError:
        return True

    if parts.hostname and _host_matches(parts.hostname, SOCIAL_HOSTS):
        return True
    path = parts.path or "/"
    if _SEARCH_PATH_RE.search(path):
        return True
    # WordPress-style search: "?s=" on the site root
    if path == "/" and "s" in {k.lower() for k, _ in parse_qsl(parts.query, keep_blank_values=True)}:
        return True

    # Home anchor: a site root is never an article
    if path == "/" and not parts.query:
        return True
    return False


def is_junk_row(title: str | None, link: str | None) -> bool:
    return is_junk_title(title) or is_junk_link(link)
