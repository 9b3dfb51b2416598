"""
Cluster keys for harvested items.

The semantic clusterer (typically a language model that groups reports of the
same real-world event) is an injected collaborator. This module owns the
policy around it: when to skip it, how often to retry it, and the
deterministic fallback key used whenever it is skipped or fails.
"""
from __future__ import annotations

import logging
import random
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .models import HarvestedItem

logger = logging.getLogger(__name__)

Clusterer = Callable[[List[HarvestedItem]], List[HarvestedItem]]

SHORT_TITLE_MAX_LEN = 8
SHORT_TITLE_RATIO = 0.7


def date_bucket(item: HarvestedItem, now: Optional[datetime] = None) -> str:
    """UTC day of the item's timestamp (today when absent), YYYY-MM-DD."""
    ts = item.published_at or now or datetime.now(timezone.utc)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%d")


def _fallback_key(item: HarvestedItem) -> str:
    return f"{item.title}||{date_bucket(item)}"


def fallback_cluster(items: List[HarvestedItem]) -> List[HarvestedItem]:
    return [it.model_copy(update={"cluster_key": _fallback_key(it)}) for it in items]


def _mostly_short_titles(items: List[HarvestedItem]) -> bool:
    short = sum(1 for it in items if len(it.title.strip()) <= SHORT_TITLE_MAX_LEN)
    return short / len(items) > SHORT_TITLE_RATIO


def _sleep_backoff(attempt: int) -> None:
    base = min(6.0, 0.5 * (2 ** attempt))
    jitter = random.uniform(0.0, 0.3)
    time.sleep(base + jitter)


def cluster_items(
    items: List[HarvestedItem],
    clusterer: Optional[Clusterer] = None,
    *,
    attempts: int = 3,
) -> List[HarvestedItem]:
    """Assign a cluster_key to every item. Never raises."""
    if len(items) <= 1:
        return list(items)

    if clusterer is None:
        return fallback_cluster(items)

    if _mostly_short_titles(items):
        logger.info("[cluster] titles mostly <=%d chars -> fallback keys", SHORT_TITLE_MAX_LEN)
        return fallback_cluster(items)

    last_error = ""
    for attempt in range(attempts):
        try:
            out = clusterer(list(items))
            if len(out) != len(items):
                raise ValueError(f"clusterer returned {len(out)} items for {len(items)}")
            missing = 0
            result: List[HarvestedItem] = []
            for original, clustered in zip(items, out):
                if clustered.cluster_key:
                    result.append(clustered)
                else:
                    missing += 1
                    result.append(original.model_copy(update={"cluster_key": _fallback_key(original)}))
            logger.info("[cluster] ok items=%d fallback_keys=%d attempt=%d", len(result), missing, attempt + 1)
            return result
        except Exception as e:
            last_error = f"{type(e).__name__}: {e}"
            logger.warning("[cluster] attempt=%d failed: %s", attempt + 1, last_error)
            if attempt < attempts - 1:
                _sleep_backoff(attempt)

    logger.error("[cluster] giving up after %d attempts (%s) -> fallback keys", attempts, last_error)
    return fallback_cluster(items)
