"""Domain events emitted when scheduling state changes."""

from __future__ import annotations

from pydantic import BaseModel


class ReactorCreated(BaseModel):
    serial_no: str


class ReactorUpdated(BaseModel):
    serial_no: str


class ReactorDeleted(BaseModel):
    serial_no: str


class BookingCreated(BaseModel):
    """Fired after a booking passed conflict checks and was persisted."""

    booking_id: str
    reactor_serial_no: str
    actor: str


class BookingUpdated(BaseModel):
    booking_id: str
    reactor_serial_no: str
    actor: str
    previous_status: str
    status: str


class BookingDeleted(BaseModel):
    """Fired after a Proposed booking was removed."""

    booking_id: str
    reactor_serial_no: str
    product_name: str


class DowntimeCreated(BaseModel):
    downtime_id: str
    reactor_serial_no: str
    actor: str


class DowntimeUpdated(BaseModel):
    downtime_id: str
    reactor_serial_no: str
    actor: str


class DowntimeCancelled(BaseModel):
    """Fired when a downtime record is soft-deleted."""

    downtime_id: str
    reactor_serial_no: str
