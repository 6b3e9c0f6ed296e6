"""Half-open interval helpers shared by conflict checks and occupancy."""

from __future__ import annotations

from datetime import datetime

from reactoplan.domain.models import Interval


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Return True if ``[a_start, a_end)`` and ``[b_start, b_end)`` overlap.

    Overlap rule: a_start < b_end AND b_start < a_end.
    Exact boundary touches (one ends when the other starts) are NOT overlaps.
    """
    return a_start < b_end and b_start < a_end


def clip(interval: Interval, window_start: datetime, window_end: datetime) -> Interval:
    """Return the part of *interval* inside ``[window_start, window_end)``.

    When the two do not intersect the result is an empty (zero-length)
    interval anchored at *window_start*.
    """
    start = max(interval.start, window_start)
    end = min(interval.end, window_end)
    if end <= start:
        return Interval(start=window_start, end=window_start)
    return Interval(start=start, end=end)


def hours_between(start: datetime, end: datetime) -> float:
    """Duration in fractional hours, floored at zero."""
    return max(0.0, (end - start).total_seconds() / 3600)
