"""FastAPI application — entry point for the reactor scheduling service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from reactoplan.config import get_settings
from reactoplan.domain.bus import EventBus
from reactoplan.domain.errors import SchedulingError, ViolationKind
from reactoplan.domain.handlers import AuditHandlers
from reactoplan.domain.models import (
    AuditEntry,
    Booking,
    BookingRequest,
    DashboardSummary,
    Downtime,
    DowntimeRequest,
    OccupancyMetric,
    Reactor,
    SlotCheckRequest,
)
from reactoplan.repos.memory import (
    AuditRepository,
    BookingRepository,
    DowntimeRepository,
    ReactorRepository,
    seed_facility,
)
from reactoplan.services.export import occupancy_csv
from reactoplan.services.insights import generate_insights
from reactoplan.services.scheduling import SchedulingService
from reactoplan.services.windows import month_window, parse_month
from reactoplan.utils.logger import configure_logging, get_logger

settings = get_settings()
configure_logging()
logger = get_logger(__name__)

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
reactor_repo = ReactorRepository()
booking_repo = BookingRepository()
downtime_repo = DowntimeRepository()
audit_repo = AuditRepository()

audit_handlers = AuditHandlers(bus=event_bus, audit_repo=audit_repo)
scheduling = SchedulingService(
    reactor_repo=reactor_repo,
    booking_repo=booking_repo,
    downtime_repo=downtime_repo,
    bus=event_bus,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.seed_demo_data and not reactor_repo.list_all():
        seed_facility(datetime.now(timezone.utc), reactor_repo, booking_repo, downtime_repo)
        logger.info("Seeded demo facility data")
    yield


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

_STATUS_BY_KIND = {
    ViolationKind.CHRONOLOGY: 422,
    ViolationKind.BOOKING_CONFLICT: 409,
    ViolationKind.DOWNTIME_CONFLICT: 409,
    ViolationKind.POLICY_VIOLATION: 409,
    ViolationKind.NOT_FOUND: 404,
}


@app.exception_handler(SchedulingError)
async def _scheduling_error(request: Request, exc: SchedulingError) -> JSONResponse:
    return JSONResponse(
        status_code=_STATUS_BY_KIND[exc.kind],
        content={"detail": exc.violation.model_dump(mode="json")},
    )


def _window(month: str | None) -> tuple[datetime, datetime]:
    """Resolve the ``month`` query parameter; defaults to the current month."""
    if not month:
        return month_window(datetime.now(timezone.utc))
    try:
        return month_window(parse_month(month))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


# ── Reactors ──────────────────────────────────────────────────────────


@app.get("/reactors", response_model=list[Reactor])
def list_reactors(search: str | None = None) -> list[Reactor]:
    return scheduling.list_reactors(search)


@app.post("/reactors", response_model=Reactor, status_code=201)
def create_reactor(reactor: Reactor) -> Reactor:
    return scheduling.create_reactor(reactor)


@app.get("/reactors/{serial_no}", response_model=Reactor)
def get_reactor(serial_no: str) -> Reactor:
    return scheduling.get_reactor(serial_no)


@app.put("/reactors/{serial_no}", response_model=Reactor)
def update_reactor(serial_no: str, reactor: Reactor) -> Reactor:
    return scheduling.update_reactor(serial_no, reactor)


@app.delete("/reactors/{serial_no}", status_code=204)
def delete_reactor(serial_no: str) -> Response:
    scheduling.delete_reactor(serial_no)
    return Response(status_code=204)


# ── Bookings ──────────────────────────────────────────────────────────


@app.get("/bookings", response_model=list[Booking])
def list_bookings(search: str | None = None, reactor: str | None = None) -> list[Booking]:
    return scheduling.list_bookings(search=search, reactor_serial_no=reactor)


@app.post("/bookings", response_model=Booking, status_code=201)
def create_booking(payload: BookingRequest) -> Booking:
    """Validate the slot and commit the booking atomically for its reactor."""
    return scheduling.create_booking(payload)


@app.post("/bookings/validate")
def validate_booking_slot(payload: SlotCheckRequest) -> dict:
    """Dry-run conflict check; nothing is persisted."""
    violation = scheduling.validate_slot(
        payload.reactor_serial_no,
        payload.start_date_time,
        payload.end_date_time,
        exclude_id=payload.exclude_id,
    )
    return {
        "ok": violation is None,
        "violation": violation.model_dump(mode="json") if violation else None,
    }


@app.get("/bookings/{booking_id}", response_model=Booking)
def get_booking(booking_id: str) -> Booking:
    return scheduling.get_booking(booking_id)


@app.put("/bookings/{booking_id}", response_model=Booking)
def update_booking(booking_id: str, payload: BookingRequest) -> Booking:
    return scheduling.update_booking(booking_id, payload)


@app.delete("/bookings/{booking_id}", status_code=204)
def delete_booking(booking_id: str) -> Response:
    """Remove a Proposed booking. Actual work logs are refused."""
    scheduling.delete_booking(booking_id)
    return Response(status_code=204)


# ── Downtime ──────────────────────────────────────────────────────────


@app.get("/downtimes", response_model=list[Downtime])
def list_downtimes(reactor: str | None = None) -> list[Downtime]:
    return scheduling.list_downtimes(reactor)


@app.post("/downtimes", response_model=Downtime, status_code=201)
def create_downtime(payload: DowntimeRequest) -> Downtime:
    return scheduling.create_downtime(payload)


@app.get("/downtimes/{downtime_id}", response_model=Downtime)
def get_downtime(downtime_id: str) -> Downtime:
    return scheduling.get_downtime(downtime_id)


@app.put("/downtimes/{downtime_id}", response_model=Downtime)
def update_downtime(downtime_id: str, payload: DowntimeRequest) -> Downtime:
    return scheduling.update_downtime(downtime_id, payload)


@app.post("/downtimes/{downtime_id}/cancel", response_model=Downtime)
def cancel_downtime(downtime_id: str) -> Downtime:
    return scheduling.cancel_downtime(downtime_id)


# ── Reporting ─────────────────────────────────────────────────────────


@app.get("/occupancy", response_model=list[OccupancyMetric])
def occupancy(
    month: str | None = None, plant: str | None = None, block: str | None = None
) -> list[OccupancyMetric]:
    start, end = _window(month)
    return scheduling.occupancy(start, end, plant=plant, block=block)


@app.get("/occupancy/export")
def export_occupancy(
    month: str | None = None, plant: str | None = None, block: str | None = None
) -> Response:
    start, end = _window(month)
    metrics = scheduling.occupancy(start, end, plant=plant, block=block)
    filename = f"occupancy_{start:%Y_%m}.csv"
    return Response(
        content=occupancy_csv(metrics),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/occupancy/insights")
def occupancy_insights(month: str | None = None) -> dict:
    start, end = _window(month)
    return {"insights": generate_insights(scheduling.occupancy(start, end))}


@app.get("/dashboard", response_model=DashboardSummary)
def dashboard(month: str | None = None) -> DashboardSummary:
    start, end = _window(month)
    return scheduling.dashboard(start, end)


@app.get("/audit", response_model=list[AuditEntry])
def list_audit(entity_id: str | None = None) -> list[AuditEntry]:
    if entity_id:
        return audit_repo.list_for_entity(entity_id)
    return audit_repo.list_all()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
