"""
Harvest preview file: written by test-mode runs, readable back into items.

Shape:
  [{"sourceId": ..., "name": ..., "items": [{"title", "link", "source", "dateISO", "content"}]}]
"""
from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .config import OUT_DIR
from .models import HarvestedItem
from .sources.multi_source import HarvestResult

logger = logging.getLogger(__name__)

PREVIEW_FILENAME = "latest-fetch-test.json"


def _iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def item_to_dict(it: HarvestedItem) -> Dict[str, Any]:
    return {
        "title": it.title,
        "link": it.link,
        "source": it.source,
        "dateISO": _iso(it.published_at),
        "content": it.content,
    }


def write_preview_json(result: HarvestResult, path: Optional[str] = None) -> str:
    path = path or os.path.join(OUT_DIR, PREVIEW_FILENAME)
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    payload = [
        {"sourceId": g.source_id, "name": g.name, "items": [item_to_dict(it) for it in g.items]}
        for g in result.groups
    ]
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)

    logger.info("[export] wrote path=%s groups=%d items=%d", path, len(payload), len(result.items))
    return path


def _item_from_dict(d: Dict[str, Any], default_source: str = "") -> Optional[HarvestedItem]:
    title = str(d.get("title") or "").strip()
    link = str(d.get("link") or "").strip()
    if not title or not link:
        return None
    raw_date = d.get("dateISO") or d.get("published_at")
    published_at = None
    if raw_date:
        try:
            published_at = datetime.fromisoformat(str(raw_date).replace("Z", "+00:00"))
        except ValueError:
            logger.debug("[export] unparseable dateISO=%r link=%s", raw_date, link)
    return HarvestedItem(
        title=title,
        link=link,
        source=str(d.get("source") or default_source),
        published_at=published_at,
        content=d.get("content"),
        cluster_key=d.get("cluster_key"),
    )


def load_items_json(path: str) -> List[HarvestedItem]:
    """
    Accepted layouts, in order of preference:
      {"items": [...]}                    explicit items array
      [{"sourceId", "items": [...]}, ...] groups, each with an items array
      [{title, link, ...}, ...]           flat array of items
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    records: List[tuple] = []
    if isinstance(data, dict) and isinstance(data.get("items"), list):
        records = [(r, "") for r in data["items"]]
    elif isinstance(data, list) and any(isinstance(g, dict) and isinstance(g.get("items"), list) for g in data):
        for g in data:
            if isinstance(g, dict) and isinstance(g.get("items"), list):
                records.extend((r, str(g.get("sourceId") or "")) for r in g["items"])
    elif isinstance(data, list):
        records = [(r, "") for r in data]

    out = [
        it for it in (_item_from_dict(r, src) for r, src in records if isinstance(r, dict))
        if it is not None
    ]
    logger.info("[export] loaded path=%s items=%d", path, len(out))
    return out
