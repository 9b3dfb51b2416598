"""
Plain text from script-carried page-state blobs.

Some news CMSs (Arc XP "Fusion" sites such as CTV) render the article client-side
from a JSON object embedded in a <script> tag. The static HTML has almost no body
text, but the blob has every paragraph. The loosely-typed JSON stays inside this
module: callers get a string or None.
"""
from __future__ import annotations

import json
import re
from typing import Any, Optional

from bs4 import BeautifulSoup

_FUSION_ASSIGN_RE = re.compile(r"Fusion\.globalContent\s*=\s*")
_TEXT_ELEMENT_TYPES = ("text", "raw_html")


def _load_assigned_object(script_text: str, assign_re: re.Pattern[str]) -> Optional[Any]:
    m = assign_re.search(script_text or "")
    if not m:
        return None
    try:
        obj, _ = json.JSONDecoder().raw_decode(script_text, m.end())
    except ValueError:
        return None
    return obj


def _strip_tags(fragment: str) -> str:
    return BeautifulSoup(fragment or "", "html.parser").get_text(" ", strip=True)


def fusion_text(soup: BeautifulSoup) -> Optional[str]:
    """Concatenate text/raw_html `content_elements` from Fusion.globalContent."""
    script = soup.select_one("script#fusion-metadata")
    if script is None:
        return None

    data = _load_assigned_object(script.get_text() or "", _FUSION_ASSIGN_RE)
    if not isinstance(data, dict):
        return None
    elements = data.get("content_elements")
    if not isinstance(elements, list):
        return None

    parts = []
    for el in elements:
        if not isinstance(el, dict) or el.get("type") not in _TEXT_ELEMENT_TYPES:
            continue
        text = _strip_tags(str(el.get("content") or ""))
        if text:
            parts.append(text)
    return " ".join(parts) or None


def text_from_page_state(soup: BeautifulSoup) -> Optional[str]:
    """Try every known page-state format; None when the page carries none."""
    return fusion_text(soup)
