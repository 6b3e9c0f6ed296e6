"""Domain models for reactor scheduling and occupancy reporting."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator


class Team(StrEnum):
    CDS = "CDS"
    MFG = "Mfg"
    TECH_TRANSFER = "Tech Transfer"


class BookingStatus(StrEnum):
    PROPOSED = "Proposed"
    ACTUAL = "Actual"
    CANCELLED = "Cancelled"


class DowntimeType(StrEnum):
    MAINTENANCE = "Maintenance"
    CLEANING = "Cleaning"
    CALIBRATION = "Calibration"
    BREAKDOWN = "Breakdown"


class EntityKind(StrEnum):
    REACTOR = "reactor"
    BOOKING = "booking"
    DOWNTIME = "downtime"


class AuditAction(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    CANCELLED = "cancelled"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _as_utc(value: datetime) -> datetime:
    """Timestamps without a timezone are taken as UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


# ---------------------------------------------------------------------------
# Time intervals
# ---------------------------------------------------------------------------


class Interval(BaseModel):
    """Half-open time range ``[start, end)``.

    A zero-length interval (``start == end``) is the empty interval.
    """

    model_config = ConfigDict(frozen=True)

    start: UtcDatetime
    end: UtcDatetime

    @model_validator(mode="after")
    def _end_not_before_start(self) -> Interval:
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self

    @property
    def is_empty(self) -> bool:
        return self.end == self.start

    @property
    def hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Reactor(BaseModel):
    serial_no: str = Field(min_length=1)
    max_capacity_liters: float = Field(ge=0)
    capacity_range: str
    moc: str
    agitator_type: str
    plant_name: str
    block_name: str
    commission_date: date
    notes: str | None = None


class Booking(BaseModel):
    id: str = Field(default_factory=_new_id)
    reactor_serial_no: str
    team: Team
    product_name: str
    stage: str
    batch_number: str
    operation: str
    start_date_time: UtcDatetime
    end_date_time: UtcDatetime
    status: BookingStatus = BookingStatus.PROPOSED
    requested_by_email: str
    created_at: UtcDatetime = Field(default_factory=_utcnow)
    updated_at: UtcDatetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _end_after_start(self) -> Booking:
        if self.end_date_time <= self.start_date_time:
            raise ValueError("end_date_time must be after start_date_time")
        return self

    @property
    def interval(self) -> Interval:
        return Interval(start=self.start_date_time, end=self.end_date_time)

    @property
    def is_active(self) -> bool:
        return self.status != BookingStatus.CANCELLED


class Downtime(BaseModel):
    id: str = Field(default_factory=_new_id)
    reactor_serial_no: str
    start_date_time: UtcDatetime
    end_date_time: UtcDatetime
    type: DowntimeType
    reason: str
    updated_by_email: str
    updated_at: UtcDatetime = Field(default_factory=_utcnow)
    is_cancelled: bool = False

    @model_validator(mode="after")
    def _end_after_start(self) -> Downtime:
        if self.end_date_time <= self.start_date_time:
            raise ValueError("end_date_time must be after start_date_time")
        return self

    @property
    def interval(self) -> Interval:
        return Interval(start=self.start_date_time, end=self.end_date_time)


class OccupancyMetric(BaseModel):
    """Utilization of one reactor over one reporting window."""

    reactor_serial_no: str
    month: str
    window_start: UtcDatetime
    window_end: UtcDatetime
    total_window_hours: float
    available_hours: float
    proposed_hours: float
    proposed_percent: float
    actual_hours: float
    actual_percent: float
    downtime_hours: float
    plant_name: str
    block_name: str


class AuditEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    entity_kind: EntityKind
    entity_id: str
    action: AuditAction
    actor: str | None = None
    timestamp: UtcDatetime = Field(default_factory=_utcnow)
    payload: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class BookingRequest(BaseModel):
    reactor_serial_no: str
    team: Team
    product_name: str
    stage: str
    batch_number: str
    operation: str
    start_date_time: UtcDatetime
    end_date_time: UtcDatetime
    status: BookingStatus = BookingStatus.PROPOSED
    requested_by_email: str


class DowntimeRequest(BaseModel):
    reactor_serial_no: str
    start_date_time: UtcDatetime
    end_date_time: UtcDatetime
    type: DowntimeType
    reason: str
    updated_by_email: str


class SlotCheckRequest(BaseModel):
    """Dry-run check of a candidate interval; ``end <= start`` is reported, not rejected."""

    reactor_serial_no: str
    start_date_time: UtcDatetime
    end_date_time: UtcDatetime
    exclude_id: str | None = None


class DashboardSummary(BaseModel):
    month: str
    total_reactors: int
    active_bookings: int
    maintenance_events: int
    metrics: list[OccupancyMetric]
