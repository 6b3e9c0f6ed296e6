"""Service for resolving reporting windows (calendar months)."""

from __future__ import annotations

from datetime import date, datetime, timezone

import dateparser
from dateutil.relativedelta import relativedelta


def month_window(anchor: date | datetime) -> tuple[datetime, datetime]:
    """Return the half-open UTC calendar month containing *anchor*.

    The window runs from the first day 00:00 up to, but excluding, the first
    day of the following month.
    """
    if isinstance(anchor, datetime) and anchor.tzinfo is not None:
        anchor = anchor.astimezone(timezone.utc)
    start = datetime(anchor.year, anchor.month, 1, tzinfo=timezone.utc)
    return start, start + relativedelta(months=1)


def month_label(window_start: datetime) -> str:
    return window_start.strftime("%b %Y")


def parse_month(text: str) -> datetime:
    """Parse free text such as ``"2026-06"`` or ``"June 2026"`` into a month start.

    Raises ``ValueError`` if the text cannot be read as a date.
    """
    settings = {
        "PREFER_DAY_OF_MONTH": "first",
        "RETURN_AS_TIMEZONE_AWARE": False,
    }
    result = dateparser.parse(text.strip(), settings=settings)
    if result is None:
        raise ValueError(f"Could not parse month from {text!r}")
    return month_window(result)[0]
