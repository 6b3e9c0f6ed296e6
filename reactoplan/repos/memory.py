"""In-memory repositories for reactors, bookings, downtime and the audit trail."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from reactoplan.domain.models import (
    AuditEntry,
    Booking,
    BookingStatus,
    Downtime,
    DowntimeType,
    Reactor,
    Team,
)


class ReactorRepository:
    """Dict-backed store for Reactor instances, keyed by serial number."""

    def __init__(self) -> None:
        self._store: dict[str, Reactor] = {}

    def add(self, reactor: Reactor) -> None:
        self._store[reactor.serial_no] = reactor

    def get(self, serial_no: str) -> Reactor | None:
        return self._store.get(serial_no)

    def list_all(self) -> list[Reactor]:
        return list(self._store.values())

    def delete(self, serial_no: str) -> None:
        self._store.pop(serial_no, None)


class BookingRepository:
    """Dict-backed store for Booking instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Booking] = {}

    def add(self, booking: Booking) -> None:
        self._store[booking.id] = booking

    def get(self, booking_id: str) -> Booking | None:
        return self._store.get(booking_id)

    def list_all(self) -> list[Booking]:
        return list(self._store.values())

    def list_for_reactor(self, serial_no: str) -> list[Booking]:
        return [b for b in self._store.values() if b.reactor_serial_no == serial_no]

    def delete(self, booking_id: str) -> None:
        self._store.pop(booking_id, None)


class DowntimeRepository:
    """Dict-backed store for Downtime instances, keyed by id.

    There is no delete: downtime is cancelled, never removed.
    """

    def __init__(self) -> None:
        self._store: dict[str, Downtime] = {}

    def add(self, downtime: Downtime) -> None:
        self._store[downtime.id] = downtime

    def get(self, downtime_id: str) -> Downtime | None:
        return self._store.get(downtime_id)

    def list_all(self) -> list[Downtime]:
        return list(self._store.values())

    def list_for_reactor(self, serial_no: str) -> list[Downtime]:
        return [d for d in self._store.values() if d.reactor_serial_no == serial_no]


class AuditRepository:
    """List-backed store for AuditEntry instances."""

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []

    def add(self, entry: AuditEntry) -> None:
        self._entries.append(entry)

    def list_all(self) -> list[AuditEntry]:
        return sorted(self._entries, key=lambda e: e.timestamp)

    def list_for_entity(self, entity_id: str) -> list[AuditEntry]:
        return sorted(
            [e for e in self._entries if e.entity_id == entity_id],
            key=lambda e: e.timestamp,
        )


# ---------------------------------------------------------------------------
# Seed data – a small two-plant facility around the current date
# ---------------------------------------------------------------------------

_SEED_REACTORS = [
    ("R-101", 1000, "500-1000L", "SS316", "Anchor", "Plant Alpha", "Block A", date(2022, 1, 15)),
    ("R-102", 500, "0-500L", "Glass Lined", "Propeller", "Plant Alpha", "Block A", date(2022, 3, 10)),
    ("R-103", 2000, "1000L+", "SS316L", "Turbine", "Plant Alpha", "Block B", date(2021, 11, 20)),
    ("R-104", 1500, "1000L+", "Hastelloy", "Magnetic", "Plant Alpha", "Block B", date(2023, 5, 5)),
    ("R-201", 1000, "500-1000L", "SS316", "Anchor", "Plant Beta", "Block C", date(2022, 1, 15)),
    ("R-202", 2500, "1000L+", "Glass Lined", "Rushton", "Plant Beta", "Block C", date(2020, 8, 12)),
]


def seed_facility(
    now: datetime,
    reactor_repo: ReactorRepository,
    booking_repo: BookingRepository,
    downtime_repo: DowntimeRepository,
) -> None:
    """Load sample reactors, bookings and downtime relative to *now*."""
    for serial, capacity, capacity_range, moc, agitator, plant, block, commissioned in _SEED_REACTORS:
        reactor_repo.add(
            Reactor(
                serial_no=serial,
                max_capacity_liters=capacity,
                capacity_range=capacity_range,
                moc=moc,
                agitator_type=agitator,
                plant_name=plant,
                block_name=block,
                commission_date=commissioned,
            )
        )

    booking_repo.add(
        Booking(
            reactor_serial_no="R-101",
            team=Team.CDS,
            product_name="Paracetamol",
            stage="Intermediate",
            batch_number="BT-001",
            operation="Reflux",
            start_date_time=now - timedelta(days=2),
            end_date_time=now + timedelta(days=1),
            status=BookingStatus.ACTUAL,
            requested_by_email="john.doe@facility.com",
        )
    )
    booking_repo.add(
        Booking(
            reactor_serial_no="R-101",
            team=Team.MFG,
            product_name="Ibuprofen",
            stage="Final",
            batch_number="BT-105",
            operation="Crystallization",
            start_date_time=now + timedelta(days=3),
            end_date_time=now + timedelta(days=6),
            status=BookingStatus.PROPOSED,
            requested_by_email="sarah.m@facility.com",
        )
    )
    downtime_repo.add(
        Downtime(
            reactor_serial_no="R-102",
            start_date_time=now - timedelta(days=1),
            end_date_time=now + timedelta(days=1),
            type=DowntimeType.MAINTENANCE,
            reason="Annual calibration of sensors",
            updated_by_email="maint@facility.com",
        )
    )
