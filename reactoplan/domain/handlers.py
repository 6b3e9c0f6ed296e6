"""Domain event handlers — wired up at application startup."""

from __future__ import annotations

import logging

from reactoplan.domain.bus import EventBus
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
from reactoplan.domain.models import AuditAction, AuditEntry, BookingStatus, EntityKind
from reactoplan.repos.memory import AuditRepository

logger = logging.getLogger(__name__)


class AuditHandlers:
    """Records every committed mutation in the audit trail."""

    def __init__(self, bus: EventBus, audit_repo: AuditRepository) -> None:
        self.bus = bus
        self.audit_repo = audit_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(ReactorCreated, self.on_reactor_created)
        self.bus.subscribe(ReactorUpdated, self.on_reactor_updated)
        self.bus.subscribe(ReactorDeleted, self.on_reactor_deleted)
        self.bus.subscribe(BookingCreated, self.on_booking_created)
        self.bus.subscribe(BookingUpdated, self.on_booking_updated)
        self.bus.subscribe(BookingDeleted, self.on_booking_deleted)
        self.bus.subscribe(DowntimeCreated, self.on_downtime_created)
        self.bus.subscribe(DowntimeUpdated, self.on_downtime_updated)
        self.bus.subscribe(DowntimeCancelled, self.on_downtime_cancelled)

    def _record(
        self,
        kind: EntityKind,
        entity_id: str,
        action: AuditAction,
        actor: str | None = None,
        **payload,
    ) -> None:
        self.audit_repo.add(
            AuditEntry(
                entity_kind=kind,
                entity_id=entity_id,
                action=action,
                actor=actor,
                payload=payload,
            )
        )
        logger.info("[Audit] %s %s %s by %s", kind, entity_id, action, actor or "system")

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_reactor_created(self, event: ReactorCreated) -> None:
        self._record(EntityKind.REACTOR, event.serial_no, AuditAction.CREATED)

    def on_reactor_updated(self, event: ReactorUpdated) -> None:
        self._record(EntityKind.REACTOR, event.serial_no, AuditAction.UPDATED)

    def on_reactor_deleted(self, event: ReactorDeleted) -> None:
        self._record(EntityKind.REACTOR, event.serial_no, AuditAction.DELETED)

    def on_booking_created(self, event: BookingCreated) -> None:
        self._record(
            EntityKind.BOOKING,
            event.booking_id,
            AuditAction.CREATED,
            event.actor,
            reactor_serial_no=event.reactor_serial_no,
        )

    def on_booking_updated(self, event: BookingUpdated) -> None:
        # A status change to Cancelled is the booking's soft delete
        action = (
            AuditAction.CANCELLED
            if event.status != event.previous_status and event.status == BookingStatus.CANCELLED
            else AuditAction.UPDATED
        )
        self._record(
            EntityKind.BOOKING,
            event.booking_id,
            action,
            event.actor,
            reactor_serial_no=event.reactor_serial_no,
            previous_status=event.previous_status,
            status=event.status,
        )

    def on_booking_deleted(self, event: BookingDeleted) -> None:
        self._record(
            EntityKind.BOOKING,
            event.booking_id,
            AuditAction.DELETED,
            reactor_serial_no=event.reactor_serial_no,
            product_name=event.product_name,
        )

    def on_downtime_created(self, event: DowntimeCreated) -> None:
        self._record(
            EntityKind.DOWNTIME,
            event.downtime_id,
            AuditAction.CREATED,
            event.actor,
            reactor_serial_no=event.reactor_serial_no,
        )

    def on_downtime_updated(self, event: DowntimeUpdated) -> None:
        self._record(
            EntityKind.DOWNTIME,
            event.downtime_id,
            AuditAction.UPDATED,
            event.actor,
            reactor_serial_no=event.reactor_serial_no,
        )

    def on_downtime_cancelled(self, event: DowntimeCancelled) -> None:
        self._record(
            EntityKind.DOWNTIME,
            event.downtime_id,
            AuditAction.CANCELLED,
            reactor_serial_no=event.reactor_serial_no,
        )
