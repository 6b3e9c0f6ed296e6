"""Typed validation outcomes for scheduling operations."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel


class ViolationKind(StrEnum):
    CHRONOLOGY = "chronology"
    BOOKING_CONFLICT = "booking_conflict"
    DOWNTIME_CONFLICT = "downtime_conflict"
    POLICY_VIOLATION = "policy_violation"
    NOT_FOUND = "not_found"


class Violation(BaseModel):
    """Why a requested mutation cannot be applied.

    ``conflicting_*`` fields are filled for booking/downtime conflicts so the
    caller can render its own message.
    """

    kind: ViolationKind
    message: str
    conflicting_id: str | None = None
    conflicting_start: datetime | None = None
    conflicting_end: datetime | None = None


class SchedulingError(Exception):
    """Raised by the scheduling service when a mutation is refused."""

    def __init__(self, violation: Violation) -> None:
        super().__init__(violation.message)
        self.violation = violation

    @property
    def kind(self) -> ViolationKind:
        return self.violation.kind


def chronology(message: str = "End time must be after start time.") -> Violation:
    return Violation(kind=ViolationKind.CHRONOLOGY, message=message)


def not_found(entity: str, key: str) -> Violation:
    return Violation(kind=ViolationKind.NOT_FOUND, message=f"{entity} {key} not found")


def policy(message: str) -> Violation:
    return Violation(kind=ViolationKind.POLICY_VIOLATION, message=message)
