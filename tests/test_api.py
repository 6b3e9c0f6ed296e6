"""End-to-end API tests for reactors, bookings, downtime and reporting."""

from __future__ import annotations

from datetime import date, datetime, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from reactoplan.domain.models import Reactor
from reactoplan.main import app, audit_repo, booking_repo, downtime_repo, reactor_repo


@pytest.fixture(autouse=True)
def _clear_repos():
    """Reset in-memory repos before each test."""
    reactor_repo._store.clear()
    booking_repo._store.clear()
    downtime_repo._store.clear()
    audit_repo._entries.clear()
    reactor_repo.add(
        Reactor(
            serial_no="R-101",
            max_capacity_liters=1000,
            capacity_range="500-1000L",
            moc="SS316",
            agitator_type="Anchor",
            plant_name="Plant Alpha",
            block_name="Block A",
            commission_date=date(2022, 1, 15),
        )
    )
    yield
    reactor_repo._store.clear()
    booking_repo._store.clear()
    downtime_repo._store.clear()
    audit_repo._entries.clear()


@pytest.fixture()
def client():
    return TestClient(app)


def _booking_payload(start: str, end: str, **overrides) -> dict:
    payload = {
        "reactor_serial_no": "R-101",
        "team": "Mfg",
        "product_name": "Ibuprofen",
        "stage": "Final",
        "batch_number": "BT-105",
        "operation": "Crystallization",
        "start_date_time": start,
        "end_date_time": end,
        "status": "Proposed",
        "requested_by_email": "sarah.m@facility.com",
    }
    payload.update(overrides)
    return payload


def _downtime_payload(start: str, end: str) -> dict:
    return {
        "reactor_serial_no": "R-101",
        "start_date_time": start,
        "end_date_time": end,
        "type": "Calibration",
        "reason": "pH sensor calibration",
        "updated_by_email": "maint@facility.com",
    }


# ---------------------------------------------------------------------------
# Reactors
# ---------------------------------------------------------------------------


def test_create_and_get_reactor(client):
    body = {
        "serial_no": "R-301",
        "max_capacity_liters": 3000,
        "capacity_range": "1000L+",
        "moc": "Hastelloy",
        "agitator_type": "Turbine",
        "plant_name": "Plant Gamma",
        "block_name": "Block D",
        "commission_date": "2024-02-01",
    }
    resp = client.post("/reactors", json=body)
    assert resp.status_code == 201

    resp = client.get("/reactors/R-301")
    assert resp.status_code == 200
    assert resp.json()["plant_name"] == "Plant Gamma"


def test_missing_reactor_is_404(client):
    resp = client.get("/reactors/R-999")
    assert resp.status_code == 404
    assert resp.json()["detail"]["kind"] == "not_found"


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


def test_booking_lifecycle(client):
    resp = client.post(
        "/bookings", json=_booking_payload("2026-06-01T10:00:00Z", "2026-06-01T14:00:00Z")
    )
    assert resp.status_code == 201
    booking_id = resp.json()["id"]

    # Overlapping request is refused with conflict context
    resp = client.post(
        "/bookings", json=_booking_payload("2026-06-01T13:00:00Z", "2026-06-01T16:00:00Z")
    )
    assert resp.status_code == 409
    detail = resp.json()["detail"]
    assert detail["kind"] == "booking_conflict"
    assert detail["conflicting_id"] == booking_id

    # Touching request is accepted
    resp = client.post(
        "/bookings", json=_booking_payload("2026-06-01T14:00:00Z", "2026-06-01T18:00:00Z")
    )
    assert resp.status_code == 201

    # Proposed booking can be deleted
    resp = client.delete(f"/bookings/{booking_id}")
    assert resp.status_code == 204
    assert client.get(f"/bookings/{booking_id}").status_code == 404


def test_end_before_start_is_422_chronology(client):
    resp = client.post(
        "/bookings", json=_booking_payload("2026-06-01T14:00:00Z", "2026-06-01T10:00:00Z")
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["kind"] == "chronology"


def test_actual_booking_delete_is_refused(client):
    resp = client.post(
        "/bookings",
        json=_booking_payload(
            "2026-06-01T10:00:00Z", "2026-06-01T14:00:00Z", status="Actual"
        ),
    )
    booking_id = resp.json()["id"]

    resp = client.delete(f"/bookings/{booking_id}")
    assert resp.status_code == 409
    assert resp.json()["detail"]["kind"] == "policy_violation"
    assert client.get(f"/bookings/{booking_id}").status_code == 200


def test_validate_endpoint_is_a_dry_run(client):
    created = client.post(
        "/bookings", json=_booking_payload("2026-06-01T10:00:00Z", "2026-06-01T14:00:00Z")
    ).json()

    check = {
        "reactor_serial_no": "R-101",
        "start_date_time": "2026-06-01T10:00:00Z",
        "end_date_time": "2026-06-01T14:00:00Z",
    }
    resp = client.post("/bookings/validate", json=check)
    assert resp.json()["ok"] is False
    assert resp.json()["violation"]["kind"] == "booking_conflict"

    resp = client.post("/bookings/validate", json={**check, "exclude_id": created["id"]})
    assert resp.json() == {"ok": True, "violation": None}
    assert len(booking_repo.list_all()) == 1


def test_list_bookings_search(client):
    client.post(
        "/bookings", json=_booking_payload("2026-06-01T10:00:00Z", "2026-06-01T14:00:00Z")
    )
    client.post(
        "/bookings",
        json=_booking_payload(
            "2026-06-02T10:00:00Z", "2026-06-02T14:00:00Z", product_name="Paracetamol"
        ),
    )
    resp = client.get("/bookings", params={"search": "para"})
    assert [b["product_name"] for b in resp.json()] == ["Paracetamol"]


def test_naive_timestamps_are_read_as_utc(client):
    resp = client.post(
        "/bookings", json=_booking_payload("2026-06-01T10:00:00Z", "2026-06-01T14:00:00Z")
    )
    assert resp.status_code == 201

    # No offset, different day: stored next to the aware booking
    resp = client.post(
        "/bookings", json=_booking_payload("2026-06-02T10:00:00", "2026-06-02T14:00:00")
    )
    assert resp.status_code == 201
    start = datetime.fromisoformat(resp.json()["start_date_time"].replace("Z", "+00:00"))
    assert start == datetime(2026, 6, 2, 10, tzinfo=timezone.utc)

    # No offset, overlapping the aware booking
    resp = client.post(
        "/bookings", json=_booking_payload("2026-06-01T12:00:00", "2026-06-01T16:00:00")
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["kind"] == "booking_conflict"

    resp = client.post(
        "/bookings/validate",
        json={
            "reactor_serial_no": "R-101",
            "start_date_time": "2026-06-01T13:00:00",
            "end_date_time": "2026-06-01T15:00:00",
        },
    )
    assert resp.status_code == 200
    assert resp.json()["ok"] is False


def test_naive_booking_counts_in_occupancy(client):
    resp = client.post(
        "/bookings",
        json=_booking_payload("2026-06-03T08:00:00", "2026-06-03T20:00:00", status="Actual"),
    )
    assert resp.status_code == 201
    resp = client.post(
        "/downtimes", json=_downtime_payload("2026-06-04T00:00:00", "2026-06-04T06:00:00")
    )
    assert resp.status_code == 201

    resp = client.get("/occupancy", params={"month": "2026-06"})
    assert resp.status_code == 200
    metric = resp.json()[0]
    assert metric["actual_hours"] == 12
    assert metric["downtime_hours"] == 6


# ---------------------------------------------------------------------------
# Downtime
# ---------------------------------------------------------------------------


def test_downtime_blocks_booking_until_cancelled(client):
    downtime = client.post(
        "/downtimes", json=_downtime_payload("2026-06-01T08:00:00Z", "2026-06-01T12:00:00Z")
    ).json()

    resp = client.post(
        "/bookings", json=_booking_payload("2026-06-01T10:00:00Z", "2026-06-01T14:00:00Z")
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["kind"] == "downtime_conflict"

    resp = client.post(f"/downtimes/{downtime['id']}/cancel")
    assert resp.status_code == 200
    assert resp.json()["is_cancelled"] is True

    resp = client.post(
        "/bookings", json=_booking_payload("2026-06-01T10:00:00Z", "2026-06-01T14:00:00Z")
    )
    assert resp.status_code == 201
    assert len(client.get("/downtimes").json()) == 1


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def test_occupancy_for_month(client):
    client.post(
        "/bookings",
        json=_booking_payload("2026-06-10T08:00:00Z", "2026-06-10T12:00:00Z", status="Actual"),
    )
    client.post(
        "/downtimes", json=_downtime_payload("2026-05-31T20:00:00Z", "2026-06-01T06:00:00Z")
    )

    resp = client.get("/occupancy", params={"month": "June 2026"})
    assert resp.status_code == 200
    [metric] = resp.json()
    assert metric["reactor_serial_no"] == "R-101"
    assert metric["downtime_hours"] == 6
    assert metric["available_hours"] == 714
    assert metric["actual_hours"] == 4
    assert metric["month"] == "Jun 2026"


def test_occupancy_bad_month_is_422(client):
    assert client.get("/occupancy", params={"month": "xyzzy-qq"}).status_code == 422


def test_occupancy_export_csv(client):
    client.post(
        "/bookings",
        json=_booking_payload("2026-06-10T08:00:00Z", "2026-06-10T12:00:00Z", status="Actual"),
    )
    resp = client.get("/occupancy/export", params={"month": "June 2026"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    lines = resp.text.strip().splitlines()
    assert lines[0] == (
        "Reactor,Plant,Block,Available Hours,Proposed Hours,Actual Hours,Downtime Hours,Actual %"
    )
    assert lines[1] == "R-101,Plant Alpha,Block A,720,0,4,0,0.6"


def test_occupancy_insights_falls_back_on_failure(client):
    with patch(
        "reactoplan.services.insights._generate_with_llm",
        side_effect=RuntimeError("boom"),
    ):
        resp = client.get("/occupancy/insights", params={"month": "June 2026"})
    assert resp.status_code == 200
    assert resp.json() == {"insights": "Unable to generate insights at this time."}


def test_dashboard_and_audit(client):
    resp = client.post(
        "/bookings", json=_booking_payload("2026-06-01T10:00:00Z", "2026-06-01T14:00:00Z")
    )
    booking_id = resp.json()["id"]

    summary = client.get("/dashboard", params={"month": "June 2026"}).json()
    assert summary["total_reactors"] == 1
    assert summary["active_bookings"] == 1
    assert summary["maintenance_events"] == 0
    assert summary["metrics"][0]["proposed_hours"] == 4

    entries = client.get("/audit", params={"entity_id": booking_id}).json()
    assert [e["action"] for e in entries] == ["created"]
    assert entries[0]["actor"] == "sarah.m@facility.com"
