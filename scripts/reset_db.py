#!/usr/bin/env python3
# scripts/reset_db.py
"""
Logically clear the publishing queue: every unprocessed row is marked processed.
Nothing is deleted, so already-seen links stay deduplicated.

Usage:
  python -m scripts.reset_db [--db data/news.db]
"""
from __future__ import annotations

import argparse
import logging
from typing import Optional

from newsharvest.config import DB_PATH
from newsharvest.storage import DedupStore


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Mark every unprocessed news item as processed.")
    parser.add_argument("--db", default=DB_PATH, help="SQLite store path.")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")

    with DedupStore(args.db) as store:
        marked = store.reset()

    print(f"[reset_db] db={args.db} marked_processed={marked}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
