"""Tests for interval overlap and clipping."""

from datetime import datetime, timezone

import pytest

from reactoplan.domain.models import Interval
from reactoplan.services.intervals import clip, hours_between, overlaps

WINDOW_START = datetime(2026, 6, 1, tzinfo=timezone.utc)
WINDOW_END = datetime(2026, 7, 1, tzinfo=timezone.utc)


def _iv(start: datetime, end: datetime) -> Interval:
    return Interval(start=start, end=end)


def test_overlaps_half_open():
    a1, a2 = datetime(2026, 6, 1, 10, tzinfo=timezone.utc), datetime(2026, 6, 1, 14, tzinfo=timezone.utc)
    assert overlaps(a1, a2, datetime(2026, 6, 1, 13, tzinfo=timezone.utc), datetime(2026, 6, 1, 16, tzinfo=timezone.utc))
    assert not overlaps(a1, a2, a2, datetime(2026, 6, 1, 18, tzinfo=timezone.utc))


def test_clip_inside_window_is_unchanged():
    interval = _iv(datetime(2026, 6, 3, tzinfo=timezone.utc), datetime(2026, 6, 4, tzinfo=timezone.utc))
    assert clip(interval, WINDOW_START, WINDOW_END) == interval


def test_clip_straddling_start():
    interval = _iv(datetime(2026, 5, 31, 20, tzinfo=timezone.utc), datetime(2026, 6, 1, 6, tzinfo=timezone.utc))
    clipped = clip(interval, WINDOW_START, WINDOW_END)
    assert clipped.start == WINDOW_START
    assert clipped.hours == 6


def test_clip_straddling_end():
    interval = _iv(datetime(2026, 6, 30, 22, tzinfo=timezone.utc), datetime(2026, 7, 2, tzinfo=timezone.utc))
    clipped = clip(interval, WINDOW_START, WINDOW_END)
    assert clipped.end == WINDOW_END
    assert clipped.hours == 2


def test_clip_covering_whole_window():
    interval = _iv(datetime(2026, 5, 1, tzinfo=timezone.utc), datetime(2026, 8, 1, tzinfo=timezone.utc))
    assert clip(interval, WINDOW_START, WINDOW_END).hours == 720


def test_clip_outside_window_is_empty():
    interval = _iv(datetime(2026, 7, 1, tzinfo=timezone.utc), datetime(2026, 7, 2, tzinfo=timezone.utc))
    clipped = clip(interval, WINDOW_START, WINDOW_END)
    assert clipped.is_empty
    assert clipped.hours == 0


def test_fractional_hours():
    assert hours_between(WINDOW_START, datetime(2026, 6, 1, 1, 30, tzinfo=timezone.utc)) == 1.5
    assert hours_between(WINDOW_END, WINDOW_START) == 0


def test_interval_rejects_end_before_start():
    with pytest.raises(ValueError):
        _iv(WINDOW_END, WINDOW_START)
