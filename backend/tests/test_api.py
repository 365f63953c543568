from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from outagewatch.main import app
from outagewatch.models.outage import Outage, OutageStatus, Service
from outagewatch.routers.outage import get_store

REPORT = {"service": "Electricity", "area": "Kilimani", "downTime": "2026-03-02T18:30:00Z"}


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_report_creates_outage(client):
    resp = await client.post("/api/outages", json=REPORT)
    assert resp.status_code == 201
    data = resp.json()
    assert data["service"] == "Electricity"
    assert data["area"] == "Kilimani"
    assert data["status"] == "ongoing"
    assert data["confirmCount"] == 1
    assert data["confidenceLevel"] == "unverified"
    assert data["upTime"] is None
    assert data["durationMinutes"] is None
    assert datetime.fromisoformat(data["downTime"]) == datetime(2026, 3, 2, 18, 30, tzinfo=timezone.utc)
    assert "createdAt" in data
    assert isinstance(data["id"], int)


@pytest.mark.asyncio
async def test_report_duplicate_adds_confirmation(client):
    first = (await client.post("/api/outages", json=REPORT)).json()
    resp = await client.post("/api/outages", json=REPORT)
    assert resp.status_code == 200
    data = resp.json()
    assert data["message"] == "Confirmation added"
    assert data["outage"]["id"] == first["id"]
    assert data["outage"]["confirmCount"] == 2
    assert data["outage"]["confidenceLevel"] == "likely"

    resp = await client.post("/api/outages", json=REPORT)
    assert resp.json()["outage"]["confidenceLevel"] == "confirmed"

    listed = (await client.get("/api/outages")).json()
    assert len(listed) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {"area": "Kilimani", "downTime": "2026-03-02T18:30:00Z"},
    {"service": "Water", "downTime": "2026-03-02T18:30:00Z"},
    {"service": "Water", "area": "Kilimani"},
    {"service": "", "area": "Kilimani", "downTime": "2026-03-02T18:30:00Z"},
    {"service": "Water", "area": "  ", "downTime": "2026-03-02T18:30:00Z"},
])
async def test_report_missing_fields(client, body):
    resp = await client.post("/api/outages", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"message": "Missing required fields"}


@pytest.mark.asyncio
async def test_report_empty_body_is_missing_fields(client):
    resp = await client.post("/api/outages")
    assert resp.status_code == 400
    assert resp.json() == {"message": "Missing required fields"}


@pytest.mark.asyncio
async def test_report_area_too_long(client):
    resp = await client.post("/api/outages", json={**REPORT, "area": "x" * 201})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid request body"}
    assert (await client.get("/api/outages")).json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {"service": "Gas", "area": "Kilimani", "downTime": "2026-03-02T18:30:00Z"},
    {"service": "Water", "area": "Kilimani", "downTime": "yesterday-ish"},
])
async def test_report_malformed_fields(client, body):
    resp = await client.post("/api/outages", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid request body"}


@pytest.mark.asyncio
async def test_list_orders_by_created_at_desc(client, db):
    for area, created in [
        ("B", datetime(2026, 2, 1, tzinfo=timezone.utc)),
        ("C", datetime(2026, 3, 1, tzinfo=timezone.utc)),
        ("A", datetime(2026, 1, 1, tzinfo=timezone.utc)),
    ]:
        db.add(Outage(service=Service.internet, area=area,
                      down_time=datetime(2026, 1, 1, tzinfo=timezone.utc), created_at=created))
    db.commit()

    resp = await client.get("/api/outages")
    assert resp.status_code == 200
    assert [o["area"] for o in resp.json()] == ["C", "B", "A"]


@pytest.mark.asyncio
async def test_restore_flow(client):
    created = (await client.post("/api/outages", json=REPORT)).json()

    resp = await client.put(f"/api/outages/{created['id']}/restore")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "resolved"
    assert data["upTime"] is not None
    assert data["durationMinutes"] > 0

    again = await client.put(f"/api/outages/{created['id']}/restore")
    assert again.status_code == 400
    assert again.json() == {"message": "Already resolved"}


@pytest.mark.asyncio
async def test_restore_errors(client):
    resp = await client.put("/api/outages/not-an-id/restore")
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid ID"}

    resp = await client.put("/api/outages/9999/restore")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Not found"}


@pytest.mark.asyncio
async def test_analytics_empty(client):
    for path in ("/api/outages/stats", "/api/outages/insights", "/api/outages/impact"):
        resp = await client.get(path)
        assert resp.status_code == 200
        assert resp.json() == {}


@pytest.mark.asyncio
async def test_analytics_after_resolution(client, db):
    down = datetime(2026, 3, 3, 14, 0, tzinfo=timezone.utc)
    db.add_all([
        Outage(service=Service.electricity, area="Kilimani", down_time=down,
               up_time=down, duration_minutes=60, status=OutageStatus.resolved),
        Outage(service=Service.electricity, area="Karen", down_time=down,
               up_time=down, duration_minutes=120, status=OutageStatus.resolved),
    ])
    db.commit()

    stats = (await client.get("/api/outages/stats")).json()
    assert stats == {
        "totalDowntimeMinutes": 180,
        "averageDowntimeMinutes": 90,
        "serviceWiseDowntime": {"Electricity": 180},
        "reliabilityScores": {"Electricity": 94},
    }

    insights = (await client.get("/api/outages/insights")).json()
    assert insights == {
        "peakOutageHour": 14,
        "worstDayOfWeek": 2,
        "recurringAreas": {"Kilimani": 1, "Karen": 1},
    }

    impact = (await client.get("/api/outages/impact")).json()
    assert impact == {
        "estimatedTimeLostHours": 3,
        "mostAffectedArea": "Karen",
        "mostDisruptiveService": "Electricity",
    }


@pytest.mark.asyncio
async def test_delete_requires_admin_password(client, admin_password):
    created = (await client.post("/api/outages", json=REPORT)).json()

    resp = await client.delete(f"/api/outages/{created['id']}")
    assert resp.status_code == 403
    assert resp.json() == {"message": "Forbidden"}

    resp = await client.delete("/api/outages/31337", headers={"x-admin-password": "nope"})
    assert resp.status_code == 403

    resp = await client.delete(f"/api/outages/{created['id']}", headers={"x-admin-password": admin_password})
    assert resp.status_code == 200
    assert resp.json() == {"message": "Deleted"}
    assert (await client.get("/api/outages")).json() == []


@pytest.mark.asyncio
async def test_delete_missing_and_invalid_ids(client, admin_password):
    headers = {"x-admin-password": admin_password}

    resp = await client.delete("/api/outages/31337", headers=headers)
    assert resp.status_code == 200

    resp = await client.delete("/api/outages/abc", headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid ID"}


@pytest.mark.asyncio
async def test_unhandled_error_is_generic_500():
    class BrokenStore:
        def scan(self, status=None):
            raise RuntimeError("connection reset by peer")

    app.dependency_overrides[get_store] = lambda: BrokenStore()
    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            resp = await c.get("/api/outages/stats")
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.json() == {"message": "Server error"}
