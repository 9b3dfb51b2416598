# tests/test_window.py
"""
Rolling acceptance window: start < t <= end, end anchored at the local start hour.
All tests inject a fixed "now".
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from newsharvest.window import in_window, window_bounds

TZ = "America/Moncton"

# 11:00 AST (UTC-4) -> window ends today 07:00 local = 11:00 UTC
NOW_AFTER_ANCHOR = datetime(2026, 1, 15, 15, 0, tzinfo=timezone.utc)
# 06:00 AST -> before the anchor hour, window ends yesterday 07:00 local
NOW_BEFORE_ANCHOR = datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)

END = datetime(2026, 1, 15, 11, 0, tzinfo=timezone.utc)
START = datetime(2026, 1, 14, 11, 0, tzinfo=timezone.utc)


class TestWindowBounds:
    def test_after_anchor_hour_ends_today(self):
        assert window_bounds(TZ, 7, 24, now=NOW_AFTER_ANCHOR) == (START, END)

    def test_before_anchor_hour_ends_yesterday(self):
        start, end = window_bounds(TZ, 7, 24, now=NOW_BEFORE_ANCHOR)
        assert end == END - timedelta(days=1)
        assert start == START - timedelta(days=1)

    def test_custom_span(self):
        start, end = window_bounds(TZ, 7, 6, now=NOW_AFTER_ANCHOR)
        assert end - start == timedelta(hours=6)

    def test_dst_day_uses_absolute_hours(self):
        # 2026-03-08: clocks go forward at 02:00 local; 12:00 ADT = 15:00 UTC
        start, end = window_bounds(TZ, 7, 24, now=datetime(2026, 3, 8, 15, 0, tzinfo=timezone.utc))
        assert end == datetime(2026, 3, 8, 10, 0, tzinfo=timezone.utc)
        assert start == end - timedelta(hours=24)


class TestInWindow:
    def test_end_boundary_included(self):
        assert in_window(END, TZ, 7, 24, now=NOW_AFTER_ANCHOR) is True

    def test_start_boundary_excluded(self):
        assert in_window(START, TZ, 7, 24, now=NOW_AFTER_ANCHOR) is False

    @pytest.mark.parametrize("ts,expected", [
        (START + timedelta(seconds=1), True),
        (END - timedelta(hours=3), True),
        (END + timedelta(seconds=1), False),
        (START - timedelta(days=2), False),
    ])
    def test_inside_and_outside(self, ts, expected):
        assert in_window(ts, TZ, 7, 24, now=NOW_AFTER_ANCHOR) is expected

    def test_absent_timestamp_never_in_window(self):
        assert in_window(None, TZ, 7, 24, now=NOW_AFTER_ANCHOR) is False

    def test_naive_timestamp_is_local_time(self):
        # 07:00 local on the anchor day == window end
        assert in_window(datetime(2026, 1, 15, 7, 0), TZ, 7, 24, now=NOW_AFTER_ANCHOR) is True
        assert in_window(datetime(2026, 1, 15, 7, 1), TZ, 7, 24, now=NOW_AFTER_ANCHOR) is False
