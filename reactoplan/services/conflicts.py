"""Service for detecting scheduling conflicts on a reactor."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from reactoplan.domain.errors import Violation, ViolationKind, chronology
from reactoplan.domain.models import Booking, Downtime
from reactoplan.services.intervals import overlaps

logger = logging.getLogger(__name__)


def _scan_order(record: Booking | Downtime) -> tuple[datetime, str]:
    return (record.start_date_time, record.id)


def active_bookings(
    reactor_serial_no: str,
    bookings: Iterable[Booking],
    exclude_id: str | None = None,
) -> list[Booking]:
    """Non-cancelled bookings on the reactor, ordered by (start, id)."""
    return sorted(
        (
            b
            for b in bookings
            if b.reactor_serial_no == reactor_serial_no
            and b.is_active
            and b.id != exclude_id
        ),
        key=_scan_order,
    )


def active_downtimes(
    reactor_serial_no: str,
    downtimes: Iterable[Downtime],
    exclude_id: str | None = None,
) -> list[Downtime]:
    """Non-cancelled downtime on the reactor, ordered by (start, id)."""
    return sorted(
        (
            d
            for d in downtimes
            if d.reactor_serial_no == reactor_serial_no
            and not d.is_cancelled
            and d.id != exclude_id
        ),
        key=_scan_order,
    )


def check_conflict(
    reactor_serial_no: str,
    start: datetime,
    end: datetime,
    bookings: Iterable[Booking],
    downtimes: Iterable[Downtime],
    exclude_id: str | None = None,
) -> Violation | None:
    """Return the first violation for the candidate slot, or None if it is free.

    Chronology is checked before anything else. Bookings are scanned before
    downtime, each in ascending (start, id) order, so the reported conflict
    does not depend on store ordering. Touching endpoints do not conflict.
    """
    if end <= start:
        return chronology()

    for booking in active_bookings(reactor_serial_no, bookings, exclude_id):
        if overlaps(start, end, booking.start_date_time, booking.end_date_time):
            logger.info(
                "Booking conflict on %s with booking %s", reactor_serial_no, booking.id
            )
            return Violation(
                kind=ViolationKind.BOOKING_CONFLICT,
                message=(
                    f"Conflict: Reactor already booked for {booking.product_name} "
                    f"({booking.start_date_time:%Y-%m-%d %H:%M} - "
                    f"{booking.end_date_time:%Y-%m-%d %H:%M})"
                ),
                conflicting_id=booking.id,
                conflicting_start=booking.start_date_time,
                conflicting_end=booking.end_date_time,
            )

    for downtime in active_downtimes(reactor_serial_no, downtimes, exclude_id):
        if overlaps(start, end, downtime.start_date_time, downtime.end_date_time):
            logger.info(
                "Downtime conflict on %s with downtime %s", reactor_serial_no, downtime.id
            )
            return Violation(
                kind=ViolationKind.DOWNTIME_CONFLICT,
                message=f"Conflict: Reactor unavailable due to {downtime.type} downtime.",
                conflicting_id=downtime.id,
                conflicting_start=downtime.start_date_time,
                conflicting_end=downtime.end_date_time,
            )

    return None
