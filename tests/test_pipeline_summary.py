# tests/test_pipeline_summary.py
"""
The [pipeline][summary] line, exit status, and test/prod output paths.
"""
from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from newsharvest.models import HarvestedItem
from newsharvest.pipeline import main
from newsharvest.sources.multi_source import HarvestResult, SourceGroup
from newsharvest.storage import DedupStore


def _result(ok: int = 1, failed: int = 0) -> HarvestResult:
    items = [
        HarvestedItem(
            title=f"Story number {i}",
            link=f"https://x.ca/news/{i}",
            source="city",
            published_at=datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc),
        )
        for i in range(2)
    ]
    groups = [SourceGroup(source_id="city", name="City", items=items)] if ok else []
    return HarvestResult(groups=groups, sources_run=ok + failed, sources_ok=ok, sources_failed=failed)


def _summary(out: str) -> str:
    lines = [l for l in out.splitlines() if "[pipeline][summary]" in l]
    assert len(lines) == 1, f"Expected exactly 1 summary line, got {len(lines)}"
    return lines[0]


def test_test_mode_writes_preview(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    preview = tmp_path / "preview.json"
    with patch("newsharvest.pipeline.harvest_all", return_value=_result(ok=1, failed=1)):
        code = main(["--json", str(preview)])

    summary = _summary(capsys.readouterr().out)
    assert code == 0
    assert preview.exists()
    assert "mode=test" in summary
    assert "sources_run=2" in summary
    assert "sources_ok=1" in summary
    assert "sources_failed=1" in summary
    assert "harvested=2" in summary
    assert "inserted=0" in summary


def test_prod_mode_clusters_and_saves(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    db = str(tmp_path / "news.db")
    with patch("newsharvest.pipeline.harvest_all", return_value=_result()):
        code = main(["--prod", "--db", db])

    summary = _summary(capsys.readouterr().out)
    assert code == 0
    assert "mode=prod" in summary
    assert "inserted=2" in summary
    with DedupStore(db) as store:
        keys = {r.cluster_key for r in store.unprocessed()}
    assert keys == {"Story number 0||2026-01-15", "Story number 1||2026-01-15"}


def test_all_sources_failed_exits_nonzero(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    with patch("newsharvest.pipeline.harvest_all", return_value=_result(ok=0, failed=3)):
        code = main(["--json", str(tmp_path / "p.json")])
    assert code == 1
    assert "sources_ok=0" in _summary(capsys.readouterr().out)


def test_no_sources_selected_is_not_a_failure(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    with patch("newsharvest.pipeline.harvest_all", return_value=HarvestResult()):
        code = main(["--only", "nope", "--json", str(tmp_path / "p.json")])
    assert code == 0


def test_cli_options_reach_harvest(tmp_path) -> None:
    with patch("newsharvest.pipeline.harvest_all", return_value=HarvestResult()) as harvest:
        main([
            "--only", "city-sj", "--ignore-window", "--window-hours", "12",
            "--window-start-hour", "6", "--tz", "UTC", "--json", str(tmp_path / "p.json"),
        ])
    opts = harvest.call_args.kwargs["opts"]
    assert opts.only == "city-sj"
    assert opts.ignore_window is True
    assert opts.window_hours == 12
    assert opts.window_start_hour == 6
    assert opts.tz == "UTC"


@pytest.mark.parametrize("argv", [
    ["--window-start-hour", "24"],
    ["--window-start-hour", "-1"],
    ["--window-hours", "0"],
    ["--window-hours", "-6"],
])
def test_bad_window_options_rejected_before_harvest(argv, capsys: pytest.CaptureFixture[str]) -> None:
    with patch("newsharvest.pipeline.harvest_all") as harvest:
        with pytest.raises(SystemExit) as exc:
            main(argv)
    assert exc.value.code == 2
    assert argv[0] in capsys.readouterr().err
    harvest.assert_not_called()
