"""Service for aggregating booking and downtime load per reactor."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence

from reactoplan.domain.errors import SchedulingError, chronology
from reactoplan.domain.models import (
    Booking,
    BookingStatus,
    Downtime,
    Interval,
    OccupancyMetric,
    Reactor,
)
from reactoplan.services.intervals import clip, hours_between, overlaps
from reactoplan.services.windows import month_label


def _clipped_hours(
    intervals: Iterable[Interval], window_start: datetime, window_end: datetime
) -> float:
    return sum(
        clip(interval, window_start, window_end).hours
        for interval in intervals
        if overlaps(interval.start, interval.end, window_start, window_end)
    )


def _percent(hours: float, available_hours: float) -> float:
    if available_hours <= 0:
        return 0.0
    return hours / available_hours * 100


def aggregate_occupancy(
    window_start: datetime,
    window_end: datetime,
    reactors: Sequence[Reactor],
    bookings: Sequence[Booking],
    downtimes: Sequence[Downtime],
) -> list[OccupancyMetric]:
    """Compute one OccupancyMetric per reactor, in the order of *reactors*.

    Every booking and downtime contributes only its in-window portion.
    Cancelled bookings and cancelled downtime contribute nothing. Raises
    ``SchedulingError`` (chronology) if *window_end* precedes *window_start*.
    """
    if window_end < window_start:
        raise SchedulingError(chronology("Window end must not precede window start."))

    total_window_hours = hours_between(window_start, window_end)
    label = month_label(window_start)

    metrics: list[OccupancyMetric] = []
    for reactor in reactors:
        serial = reactor.serial_no

        downtime_hours = _clipped_hours(
            (
                d.interval
                for d in downtimes
                if d.reactor_serial_no == serial and not d.is_cancelled
            ),
            window_start,
            window_end,
        )
        available_hours = max(0.0, total_window_hours - downtime_hours)

        reactor_bookings = [b for b in bookings if b.reactor_serial_no == serial]
        proposed_hours = _clipped_hours(
            (b.interval for b in reactor_bookings if b.status == BookingStatus.PROPOSED),
            window_start,
            window_end,
        )
        actual_hours = _clipped_hours(
            (b.interval for b in reactor_bookings if b.status == BookingStatus.ACTUAL),
            window_start,
            window_end,
        )

        metrics.append(
            OccupancyMetric(
                reactor_serial_no=serial,
                month=label,
                window_start=window_start,
                window_end=window_end,
                total_window_hours=total_window_hours,
                available_hours=available_hours,
                proposed_hours=proposed_hours,
                proposed_percent=_percent(proposed_hours, available_hours),
                actual_hours=actual_hours,
                actual_percent=_percent(actual_hours, available_hours),
                downtime_hours=downtime_hours,
                plant_name=reactor.plant_name,
                block_name=reactor.block_name,
            )
        )
    return metrics


def filter_metrics(
    metrics: Iterable[OccupancyMetric],
    plant: str | None = None,
    block: str | None = None,
) -> list[OccupancyMetric]:
    """Keep metrics matching the given plant and/or block name (case-insensitive)."""
    return [
        m
        for m in metrics
        if (plant is None or m.plant_name.lower() == plant.lower())
        and (block is None or m.block_name.lower() == block.lower())
    ]
