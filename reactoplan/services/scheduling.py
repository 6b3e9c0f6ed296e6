"""Scheduling service: the only writer of reactors, bookings and downtime.

Every booking/downtime mutation runs validate-then-commit while holding the
affected reactor's lock, so two concurrent requests for the same reactor
can never both pass validation against a snapshot missing the other.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterator

from reactoplan.domain.bus import EventBus
from reactoplan.domain.errors import SchedulingError, Violation, chronology, not_found, policy
from reactoplan.domain.events import (
    BookingCreated,
    BookingDeleted,
    BookingUpdated,
    DowntimeCancelled,
    DowntimeCreated,
    DowntimeUpdated,
    ReactorCreated,
    ReactorDeleted,
    ReactorUpdated,
)
from reactoplan.domain.models import (
    Booking,
    BookingRequest,
    BookingStatus,
    DashboardSummary,
    Downtime,
    DowntimeRequest,
    OccupancyMetric,
    Reactor,
)
from reactoplan.repos.memory import BookingRepository, DowntimeRepository, ReactorRepository
from reactoplan.services.conflicts import check_conflict
from reactoplan.services.locks import ResourceLocks
from reactoplan.services.occupancy import aggregate_occupancy, filter_metrics
from reactoplan.services.policy import (
    check_booking_deletable,
    check_booking_update,
    check_downtime_update,
    check_reactor_deletable,
)
from reactoplan.services.windows import month_label

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _raise_if(violation: Violation | None) -> None:
    if violation is not None:
        raise SchedulingError(violation)


class SchedulingService:
    def __init__(
        self,
        reactor_repo: ReactorRepository,
        booking_repo: BookingRepository,
        downtime_repo: DowntimeRepository,
        bus: EventBus,
        locks: ResourceLocks | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.reactor_repo = reactor_repo
        self.booking_repo = booking_repo
        self.downtime_repo = downtime_repo
        self.bus = bus
        self.locks = locks or ResourceLocks()
        self.clock = clock

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_slot(
        self,
        reactor_serial_no: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None = None,
    ) -> Violation | None:
        """Check a candidate slot against the current snapshot without committing."""
        if end <= start:
            return chronology()
        if self.reactor_repo.get(reactor_serial_no) is None:
            return not_found("Reactor", reactor_serial_no)
        return check_conflict(
            reactor_serial_no,
            start,
            end,
            self.booking_repo.list_for_reactor(reactor_serial_no),
            self.downtime_repo.list_for_reactor(reactor_serial_no),
            exclude_id=exclude_id,
        )

    @contextmanager
    def _locked_record(
        self,
        fetch: Callable[[str], Booking | Downtime],
        record_id: str,
        *extra_serials: str,
    ) -> Iterator[Booking | Downtime]:
        """Hold the lock of the record's reactor (and *extra_serials*), yielding a fresh read.

        Retries if the record moved to another reactor before the lock was taken.
        """
        while True:
            seen = fetch(record_id)
            with self.locks.hold(seen.reactor_serial_no, *extra_serials):
                current = fetch(record_id)
                if current.reactor_serial_no == seen.reactor_serial_no:
                    yield current
                    return

    # ------------------------------------------------------------------
    # Reactors
    # ------------------------------------------------------------------

    def list_reactors(self, search: str | None = None) -> list[Reactor]:
        reactors = self.reactor_repo.list_all()
        if not search:
            return reactors
        term = search.lower()
        return [
            r
            for r in reactors
            if term in r.serial_no.lower()
            or term in r.block_name.lower()
            or term in r.plant_name.lower()
        ]

    def get_reactor(self, serial_no: str) -> Reactor:
        reactor = self.reactor_repo.get(serial_no)
        if reactor is None:
            raise SchedulingError(not_found("Reactor", serial_no))
        return reactor

    def create_reactor(self, reactor: Reactor) -> Reactor:
        with self.locks.hold(reactor.serial_no):
            if self.reactor_repo.get(reactor.serial_no) is not None:
                raise SchedulingError(policy(f"Reactor {reactor.serial_no} already exists."))
            self.reactor_repo.add(reactor)
        self.bus.publish(ReactorCreated(serial_no=reactor.serial_no))
        return reactor

    def update_reactor(self, serial_no: str, reactor: Reactor) -> Reactor:
        if reactor.serial_no != serial_no:
            raise SchedulingError(policy("A reactor's serial number cannot be changed."))
        self.get_reactor(serial_no)
        with self.locks.hold(serial_no):
            self.get_reactor(serial_no)
            self.reactor_repo.add(reactor)
        self.bus.publish(ReactorUpdated(serial_no=serial_no))
        return reactor

    def delete_reactor(self, serial_no: str) -> None:
        self.get_reactor(serial_no)
        with self.locks.hold(serial_no):
            self.get_reactor(serial_no)
            _raise_if(
                check_reactor_deletable(
                    serial_no,
                    len(self.booking_repo.list_for_reactor(serial_no)),
                    len(self.downtime_repo.list_for_reactor(serial_no)),
                )
            )
            self.reactor_repo.delete(serial_no)
            self.locks.discard(serial_no)
        self.bus.publish(ReactorDeleted(serial_no=serial_no))

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    def list_bookings(
        self, search: str | None = None, reactor_serial_no: str | None = None
    ) -> list[Booking]:
        bookings = self.booking_repo.list_all()
        if reactor_serial_no:
            bookings = [b for b in bookings if b.reactor_serial_no == reactor_serial_no]
        if search:
            term = search.lower()
            bookings = [
                b
                for b in bookings
                if term in b.product_name.lower()
                or term in b.reactor_serial_no.lower()
                or term in b.batch_number.lower()
            ]
        return sorted(bookings, key=lambda b: (b.start_date_time, b.id))

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.booking_repo.get(booking_id)
        if booking is None:
            raise SchedulingError(not_found("Booking", booking_id))
        return booking

    def create_booking(self, request: BookingRequest) -> Booking:
        serial = request.reactor_serial_no
        if request.end_date_time <= request.start_date_time:
            raise SchedulingError(chronology())
        # Unknown serials are refused before a lock is registered for them
        self.get_reactor(serial)
        with self.locks.hold(serial):
            self.get_reactor(serial)
            # Cancelled bookings are inert and never conflict
            if request.status != BookingStatus.CANCELLED:
                _raise_if(
                    self.validate_slot(serial, request.start_date_time, request.end_date_time)
                )
            now = self.clock()
            booking = Booking(**request.model_dump(), created_at=now, updated_at=now)
            self.booking_repo.add(booking)

        logger.info(
            "Booking %s committed on %s by %s", booking.id, serial, booking.requested_by_email
        )
        self.bus.publish(
            BookingCreated(
                booking_id=booking.id,
                reactor_serial_no=serial,
                actor=booking.requested_by_email,
            )
        )
        return booking

    def update_booking(self, booking_id: str, request: BookingRequest) -> Booking:
        if request.end_date_time <= request.start_date_time:
            raise SchedulingError(chronology())
        self.get_reactor(request.reactor_serial_no)
        with self._locked_record(
            self.get_booking, booking_id, request.reactor_serial_no
        ) as current:
            self.get_reactor(request.reactor_serial_no)

            updated = Booking(
                **request.model_dump(),
                id=current.id,
                created_at=current.created_at,
                updated_at=self.clock(),
            )
            _raise_if(check_booking_update(current, updated))
            if updated.is_active:
                _raise_if(
                    self.validate_slot(
                        updated.reactor_serial_no,
                        updated.start_date_time,
                        updated.end_date_time,
                        exclude_id=booking_id,
                    )
                )
            self.booking_repo.add(updated)

        self.bus.publish(
            BookingUpdated(
                booking_id=booking_id,
                reactor_serial_no=updated.reactor_serial_no,
                actor=updated.requested_by_email,
                previous_status=current.status,
                status=updated.status,
            )
        )
        return updated

    def delete_booking(self, booking_id: str) -> None:
        with self._locked_record(self.get_booking, booking_id) as booking:
            _raise_if(check_booking_deletable(booking))
            self.booking_repo.delete(booking_id)

        self.bus.publish(
            BookingDeleted(
                booking_id=booking_id,
                reactor_serial_no=booking.reactor_serial_no,
                product_name=booking.product_name,
            )
        )

    # ------------------------------------------------------------------
    # Downtime
    # ------------------------------------------------------------------

    def list_downtimes(self, reactor_serial_no: str | None = None) -> list[Downtime]:
        downtimes = self.downtime_repo.list_all()
        if reactor_serial_no:
            downtimes = [d for d in downtimes if d.reactor_serial_no == reactor_serial_no]
        return sorted(downtimes, key=lambda d: (d.start_date_time, d.id))

    def get_downtime(self, downtime_id: str) -> Downtime:
        downtime = self.downtime_repo.get(downtime_id)
        if downtime is None:
            raise SchedulingError(not_found("Downtime", downtime_id))
        return downtime

    def create_downtime(self, request: DowntimeRequest) -> Downtime:
        serial = request.reactor_serial_no
        if request.end_date_time <= request.start_date_time:
            raise SchedulingError(chronology())
        self.get_reactor(serial)
        with self.locks.hold(serial):
            _raise_if(
                self.validate_slot(serial, request.start_date_time, request.end_date_time)
            )
            downtime = Downtime(**request.model_dump(), updated_at=self.clock())
            self.downtime_repo.add(downtime)

        self.bus.publish(
            DowntimeCreated(
                downtime_id=downtime.id,
                reactor_serial_no=serial,
                actor=downtime.updated_by_email,
            )
        )
        return downtime

    def update_downtime(self, downtime_id: str, request: DowntimeRequest) -> Downtime:
        if request.end_date_time <= request.start_date_time:
            raise SchedulingError(chronology())
        self.get_reactor(request.reactor_serial_no)
        with self._locked_record(
            self.get_downtime, downtime_id, request.reactor_serial_no
        ) as current:
            _raise_if(check_downtime_update(current))
            _raise_if(
                self.validate_slot(
                    request.reactor_serial_no,
                    request.start_date_time,
                    request.end_date_time,
                    exclude_id=downtime_id,
                )
            )
            updated = Downtime(
                **request.model_dump(), id=current.id, updated_at=self.clock()
            )
            self.downtime_repo.add(updated)

        self.bus.publish(
            DowntimeUpdated(
                downtime_id=downtime_id,
                reactor_serial_no=updated.reactor_serial_no,
                actor=updated.updated_by_email,
            )
        )
        return updated

    def cancel_downtime(self, downtime_id: str) -> Downtime:
        """Soft-delete a downtime record. Cancelling twice is a no-op."""
        with self._locked_record(self.get_downtime, downtime_id) as current:
            if current.is_cancelled:
                return current
            cancelled = current.model_copy(
                update={"is_cancelled": True, "updated_at": self.clock()}
            )
            self.downtime_repo.add(cancelled)

        self.bus.publish(
            DowntimeCancelled(
                downtime_id=downtime_id, reactor_serial_no=cancelled.reactor_serial_no
            )
        )
        return cancelled

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def occupancy(
        self,
        window_start: datetime,
        window_end: datetime,
        plant: str | None = None,
        block: str | None = None,
    ) -> list[OccupancyMetric]:
        metrics = aggregate_occupancy(
            window_start,
            window_end,
            self.reactor_repo.list_all(),
            self.booking_repo.list_all(),
            self.downtime_repo.list_all(),
        )
        return filter_metrics(metrics, plant=plant, block=block)

    def dashboard(self, window_start: datetime, window_end: datetime) -> DashboardSummary:
        return DashboardSummary(
            month=month_label(window_start),
            total_reactors=len(self.reactor_repo.list_all()),
            active_bookings=sum(1 for b in self.booking_repo.list_all() if b.is_active),
            maintenance_events=sum(
                1 for d in self.downtime_repo.list_all() if not d.is_cancelled
            ),
            metrics=self.occupancy(window_start, window_end),
        )
