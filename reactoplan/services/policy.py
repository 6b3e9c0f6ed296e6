"""Lifecycle rules for bookings, downtime and reactors."""

from __future__ import annotations

from reactoplan.domain.errors import Violation, policy
from reactoplan.domain.models import Booking, BookingStatus, Downtime

_ALLOWED_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PROPOSED: {
        BookingStatus.PROPOSED,
        BookingStatus.ACTUAL,
        BookingStatus.CANCELLED,
    },
    BookingStatus.ACTUAL: {BookingStatus.ACTUAL, BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: {BookingStatus.CANCELLED},
}


def check_booking_deletable(booking: Booking) -> Violation | None:
    """Only Proposed bookings may be removed; everything else stays for audit."""
    if booking.status == BookingStatus.ACTUAL:
        return policy(
            "An Actual work log cannot be deleted. "
            "Contact the administrator for corrections."
        )
    if booking.status != BookingStatus.PROPOSED:
        return policy(f"A {booking.status} booking cannot be deleted.")
    return None


def check_booking_update(current: Booking, updated: Booking) -> Violation | None:
    if updated.status not in _ALLOWED_TRANSITIONS[current.status]:
        return policy(
            f"Booking status cannot change from {current.status} to {updated.status}."
        )
    if current.status == BookingStatus.CANCELLED and (
        updated.interval != current.interval
        or updated.reactor_serial_no != current.reactor_serial_no
    ):
        return policy("A Cancelled booking cannot be rescheduled.")
    return None


def check_downtime_update(current: Downtime) -> Violation | None:
    if current.is_cancelled:
        return policy("A cancelled downtime cannot be edited.")
    return None


def check_reactor_deletable(
    serial_no: str, booking_count: int, downtime_count: int
) -> Violation | None:
    if booking_count or downtime_count:
        return policy(
            f"Reactor {serial_no} still has {booking_count} booking(s) and "
            f"{downtime_count} downtime record(s) on file and cannot be deleted."
        )
    return None
