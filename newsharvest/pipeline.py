from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from .clustering import Clusterer, cluster_items
from .config import DB_PATH, TIMEZONE, WINDOW_HOURS, WINDOW_START_HOUR
from .export import write_preview_json
from .sources.multi_source import HarvestOptions, HarvestResult, harvest_all
from .storage import DedupStore


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Harvest local news sources into the dedup store.")
    parser.add_argument("--only", default=None, help="Run a single source_id (even if disabled).")
    parser.add_argument("--ignore-window", action="store_true", help="Keep every dated item.")
    parser.add_argument("--window-hours", type=int, default=WINDOW_HOURS)
    parser.add_argument("--window-start-hour", type=int, default=WINDOW_START_HOUR)
    parser.add_argument("--tz", default=TIMEZONE)
    parser.add_argument("--show", type=int, default=3, help="Sample items printed per source.")
    parser.add_argument(
        "--prod",
        action="store_true",
        help="Cluster and persist to the store. Default writes the preview JSON only.",
    )
    parser.add_argument("--json", default=None, help="Preview JSON path (test mode).")
    parser.add_argument("--db", default=DB_PATH, help="SQLite store path (prod mode).")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _print_samples(result: HarvestResult, show: int) -> None:
    for g in result.groups:
        print(f"[pipeline] source_id={g.source_id} items={len(g.items)}")
        for it in g.items[:show]:
            when = it.published_at.isoformat() if it.published_at else "-"
            print(f"  - {when} | {it.title} | {it.link}")


def main(argv: Optional[List[str]] = None, *, clusterer: Optional[Clusterer] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not 0 <= args.window_start_hour <= 23:
        parser.error(f"--window-start-hour={args.window_start_hour} (expected 0..23)")
    if args.window_hours <= 0:
        parser.error(f"--window-hours={args.window_hours} (expected > 0)")
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    print("PIPELINE: start")
    opts = HarvestOptions(
        tz=args.tz,
        window_start_hour=args.window_start_hour,
        window_hours=args.window_hours,
        ignore_window=args.ignore_window,
        only=args.only,
    )
    result = harvest_all(opts=opts)
    print("PIPELINE: fetch done")

    _print_samples(result, args.show)

    items = result.items
    inserted = 0
    preview_path = "-"
    if args.prod:
        clustered = cluster_items(items, clusterer)
        with DedupStore(args.db) as store:
            inserted = store.save(clustered)
    else:
        preview_path = write_preview_json(result, args.json)

    # ---------------------------------------------------------------
    # Deterministic, grep-friendly summary line.
    # grep '[pipeline][summary]' /tmp/pipeline.log
    # ---------------------------------------------------------------
    print(
        f"[pipeline][summary]"
        f" mode={'prod' if args.prod else 'test'}"
        f" sources_run={result.sources_run}"
        f" sources_ok={result.sources_ok}"
        f" sources_failed={result.sources_failed}"
        f" harvested={len(items)}"
        f" inserted={inserted}"
        f" preview={preview_path}"
    )

    if result.sources_run > 0 and result.sources_ok == 0:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
