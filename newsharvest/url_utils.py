"""URL helpers for extraction and store dedupe."""

from __future__ import annotations

import re
from typing import Iterable, Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit


DEFAULT_STRIP_QUERY_PARAMS = {
    # tracking
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "utm_id",
    "utm_name",
    "utm_reader",
    "utm_referrer",
    "utm_pubreferrer",
    "utm_swu",
    # misc common trackers
    "gclid",
    "fbclid",
    "mc_cid",
    "mc_eid",
    "ref",
    "ref_src",
    "ref_url",
}

_ABS_RE = re.compile(r"^https?://", re.IGNORECASE)


def is_absolute(url: Optional[str]) -> bool:
    return bool(url and _ABS_RE.match(url.strip()))


def abs_url(link: Optional[str], base: Optional[str] = None) -> str:
    """Resolve `link` against `base`. Protocol-relative links become https."""
    href = (link or "").strip()
    if not href:
        return ""
    if _ABS_RE.match(href):
        return href
    if href.startswith("//"):
        return "https:" + href
    if not base:
        return href
    return urljoin(base, href)


def normalize_link(url: str, *, strip_params: Optional[Iterable[str]] = None) -> str:
    """Normalize a link for the store's uniqueness constraint.

    - Lowercase scheme + host
    - Remove fragments
    - Strip tracking query parameters, keep the rest in a stable order
    - Drop a trailing slash, except for the root path

    normalize_link(normalize_link(x)) == normalize_link(x)
    """
    if not url:
        return ""
    strip = set(strip_params) if strip_params is not None else DEFAULT_STRIP_QUERY_PARAMS
    p = urlsplit(url.strip())
    scheme = (p.scheme or "https").lower()
    netloc = (p.netloc or "").lower()

    path = p.path or "/"
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/") or "/"

    kept = []
    for k, v in parse_qsl(p.query, keep_blank_values=True):
        if k.lower() in strip:
            continue
        kept.append((k, v))
    kept.sort(key=lambda kv: (kv[0].lower(), kv[1]))
    query = urlencode(kept, doseq=True)

    return urlunsplit((scheme, netloc, path, query, ""))
