"""
Loose date parsing for listing/detail pages.

Listing pages mix dates into titles, captions and free text. `parse_date_loose`
tries, in order:

  1. an ISO-8601 substring anywhere in the text ("Title - 2026-01-23 ...")
  2. "Posted/Published[:][ on] <Month> <Day>[,] <Year>[ at <time>]" with the prefix
     and ordinal suffixes removed, or a bare "<Month> <Day>, <Year>"
  3. the text before a known noise marker (" in ")
  4. a best-effort dateparser pass over the whole cleaned string

First success wins. Never raises; returns None when nothing parses.
Naive results are interpreted in the configured TIMEZONE.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

import dateparser

from .config import TIMEZONE

_ISO_RE = re.compile(
    r"\b(\d{4}-\d{2}-\d{2}"
    r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?)\b"
)

_PREFIX_RE = re.compile(r"^(?:posted|published)(?:\s+on)?\s*:?\s*", re.IGNORECASE)
_ORDINAL_RE = re.compile(r"(\d+)(?:st|nd|rd|th)\b", re.IGNORECASE)
_AT_RE = re.compile(r"\s+at\s+", re.IGNORECASE)

# "January 6, 2026" / "Jan. 6 2026" / "Jan 6, 2026 3:15 pm"
_MONTH_DAY_YEAR_RE = re.compile(
    r"\b([A-Za-z]{3,9}\.?\s+\d{1,2},?\s*\d{4}"
    r"(?:\s+\d{1,2}:\d{2}(?:\s*[ap]\.?m\.?)?)?)",
    re.IGNORECASE,
)

NOISE_MARKERS: tuple[str, ...] = (" in ",)


def _dateparser(text: str, tz: str) -> Optional[datetime]:
    s = (text or "").strip()
    if not s:
        return None
    try:
        return dateparser.parse(
            s,
            languages=["en", "fr"],
            settings={
                "TIMEZONE": tz,
                "RETURN_AS_TIMEZONE_AWARE": True,
                "PREFER_DATES_FROM": "past",
            },
        )
    except Exception:
        # dateparser raises on some pathological inputs; loose parsing never does
        return None


def _parse_iso(token: str, tz: str) -> Optional[datetime]:
    s = token.strip().replace(" ", "T", 1)
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    # "+0000" -> "+00:00"
    s = re.sub(r"([+-]\d{2})(\d{2})$", r"\1:\2", s)
    try:
        if "T" not in s:
            d = date.fromisoformat(s)
            return datetime.combine(d, time(0, 0), tzinfo=ZoneInfo(tz))
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo(tz))
    return dt


def clean_date_text(raw: str) -> str:
    """Strip "Posted on:" style prefixes, ordinals, " at " and pipes."""
    s = _PREFIX_RE.sub("", (raw or "").strip())
    s = _AT_RE.sub(" ", s)
    s = s.replace("|", " ")
    s = _ORDINAL_RE.sub(r"\1", s)
    s = re.sub(r",+", ",", s)
    return " ".join(s.split())


def parse_date_loose(raw: Optional[str], tz: str = TIMEZONE) -> Optional[datetime]:
    if not raw:
        return None
    s = raw.strip()
    if not s:
        return None

    # 1) ISO substring, even when buried in a title line
    m = _ISO_RE.search(s)
    if m:
        dt = _parse_iso(m.group(1), tz)
        if dt:
            return dt

    clean = clean_date_text(s)

    # 2) "<Month> <Day>, <Year>" after prefix stripping
    m = _MONTH_DAY_YEAR_RE.search(clean)
    if m:
        dt = _dateparser(m.group(1), tz)
        if dt:
            return dt

    # 3) text before a noise marker ("June 3, 2025 in Community News")
    for marker in NOISE_MARKERS:
        idx = clean.find(marker)
        if idx > 0:
            dt = _dateparser(clean[:idx], tz)
            if dt:
                return dt

    # 4) best effort
    return _dateparser(clean, tz)
