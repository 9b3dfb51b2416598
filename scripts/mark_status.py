#!/usr/bin/env python3
# scripts/mark_status.py
"""
Publisher write path: flag links (and every row in their clusters) with a status.

Usage:
  python -m scripts.mark_status https://example.ca/news/a https://example.ca/news/b
  python -m scripts.mark_status --status 0 https://example.ca/news/a
"""
from __future__ import annotations

import argparse
import logging
from typing import Optional

from newsharvest.config import DB_PATH
from newsharvest.storage import DedupStore


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Set status on links, cascading by cluster key.")
    parser.add_argument("links", nargs="+", help="Item links as harvested.")
    parser.add_argument("--status", type=int, default=1, help="1 = processed/published (default), 0 = unprocessed.")
    parser.add_argument("--db", default=DB_PATH, help="SQLite store path.")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")

    with DedupStore(args.db) as store:
        touched = store.update_status(args.links, args.status)

    print(f"[mark_status] links={len(args.links)} status={args.status} touched={touched}")
    return 0 if touched else 2


if __name__ == "__main__":
    raise SystemExit(main())
