from __future__ import annotations

import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from .config import DB_PATH
from .models import HarvestedItem, StoredNewsRow
from .url_utils import is_absolute, normalize_link

logger = logging.getLogger(__name__)

# SQLite's default host-parameter limit is 999 on older builds
_PARAM_CHUNK = 500

SCHEMA = """
CREATE TABLE IF NOT EXISTS news_items (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  link TEXT UNIQUE NOT NULL,
  title TEXT NOT NULL,
  source_id TEXT NOT NULL,
  publish_date TEXT,
  content TEXT,
  created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
  status INTEGER NOT NULL DEFAULT 0,
  cluster_key TEXT NOT NULL
)
"""

INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_news_items_cluster_key ON news_items(cluster_key)",
    "CREATE INDEX IF NOT EXISTS idx_news_items_status ON news_items(status)",
)


def _dt_iso(dt: Optional[datetime]) -> Optional[str]:
    if not dt:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def _parse_created_at(raw: Optional[str]) -> datetime:
    # CURRENT_TIMESTAMP is "YYYY-MM-DD HH:MM:SS" in UTC
    dt = datetime.fromisoformat(raw) if raw else datetime.now(timezone.utc)
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _chunks(values: Sequence[str], size: int = _PARAM_CHUNK) -> Iterable[Sequence[str]]:
    for i in range(0, len(values), size):
        yield values[i : i + size]


def _row_to_model(row: sqlite3.Row) -> StoredNewsRow:
    return StoredNewsRow(
        id=row["id"],
        link=row["link"],
        title=row["title"],
        source_id=row["source_id"],
        publish_date=datetime.fromisoformat(row["publish_date"]) if row["publish_date"] else None,
        content=row["content"],
        created_at=_parse_created_at(row["created_at"]),
        status=row["status"],
        cluster_key=row["cluster_key"],
    )


class DedupStore:
    """
    Single-file SQLite store of harvested items.

    - `link` is unique (normalized); saving a known link is a silent no-op
    - status flags cascade by cluster_key, not just by link
    - every mutating call commits before returning
    """

    def __init__(self, path: str = DB_PATH) -> None:
        self.path = path
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        # sqlite3.Error here is fatal for the run and propagates
        self.conn = sqlite3.connect(path)
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def __enter__(self) -> "DedupStore":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _init_schema(self) -> None:
        cur = self.conn.cursor()
        cur.execute(SCHEMA)
        for stmt in INDEXES:
            cur.execute(stmt)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, items: Iterable[HarvestedItem]) -> int:
        """Insert-or-ignore by normalized link. Returns the number of new rows."""
        inserted = 0
        skipped = 0
        cur = self.conn.cursor()
        for it in items:
            if it.published_at is None or not is_absolute(it.link):
                skipped += 1
                logger.info("[storage] skip unpublishable item link=%r title=%r", it.link, it.title)
                continue
            cur.execute(
                """
                INSERT OR IGNORE INTO news_items
                  (link, title, source_id, publish_date, content, cluster_key)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    normalize_link(it.link),
                    it.title,
                    it.source,
                    _dt_iso(it.published_at),
                    it.content,
                    it.cluster_key or it.title,
                ),
            )
            inserted += cur.rowcount
        self.conn.commit()
        logger.info("[storage] save inserted=%d skipped=%d", inserted, skipped)
        return inserted

    def update_status(self, links: Iterable[str], status: int = 1) -> int:
        """
        Set `status` on the given links and on every row sharing their cluster keys.
        Returns the number of rows touched; 0 is logged as a warning.
        """
        norm = sorted({normalize_link(l) for l in links if l})
        if not norm:
            return 0

        cur = self.conn.cursor()

        # 1) cluster keys touched by these links
        keys: set = set()
        for chunk in _chunks(norm):
            marks = ",".join("?" * len(chunk))
            cur.execute(f"SELECT DISTINCT cluster_key FROM news_items WHERE link IN ({marks})", chunk)
            keys.update(r["cluster_key"] for r in cur.fetchall() if r["cluster_key"] is not None)

        # 2) rows by link, then rows by cluster key
        touched = 0
        for chunk in _chunks(norm):
            marks = ",".join("?" * len(chunk))
            cur.execute(f"UPDATE news_items SET status = ? WHERE link IN ({marks})", [status, *chunk])
            touched += cur.rowcount
        for chunk in _chunks(sorted(keys)):
            marks = ",".join("?" * len(chunk))
            cur.execute(
                f"UPDATE news_items SET status = ? WHERE cluster_key IN ({marks}) AND status != ?",
                [status, *chunk, status],
            )
            touched += cur.rowcount
        self.conn.commit()

        if touched == 0:
            logger.warning(
                "[storage] update_status touched 0 rows links=%d (not saved yet, or link mismatch?)",
                len(norm),
            )
        else:
            logger.info(
                "[storage] update_status status=%d links=%d cluster_keys=%d touched=%d",
                status, len(norm), len(keys), touched,
            )
        return touched

    def reset(self) -> int:
        """Mark every unprocessed row as processed (logical clear, no deletes)."""
        cur = self.conn.execute("UPDATE news_items SET status = 1 WHERE status = 0")
        self.conn.commit()
        logger.info("[storage] reset marked=%d", cur.rowcount)
        return cur.rowcount

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def unprocessed(self) -> List[StoredNewsRow]:
        rows = self.conn.execute(
            "SELECT * FROM news_items WHERE status = 0 ORDER BY publish_date DESC, id DESC"
        ).fetchall()
        return [_row_to_model(r) for r in rows]

    def exists(self, link: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM news_items WHERE link = ? LIMIT 1", (normalize_link(link),)
        ).fetchone()
        return row is not None

    def get(self, link: str) -> Optional[StoredNewsRow]:
        row = self.conn.execute(
            "SELECT * FROM news_items WHERE link = ?", (normalize_link(link),)
        ).fetchone()
        return _row_to_model(row) if row else None
