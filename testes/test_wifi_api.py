from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_wifi_manager
from app.core.security import create_access_token
from app.main import app

CAMPUS_START = {
    "ip_address": "192.168.1.10",
    "ssid": "UNITREE-WIFI",
    "location": {"latitude": 21.0047, "longitude": 105.8434, "accuracy": 12.5},
}


@pytest.fixture
async def client(manager):
    app.dependency_overrides[get_wifi_manager] = lambda: manager
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_requires_token(client):
    r = await client.post("/api/v1/wifi/start", json=CAMPUS_START)
    assert r.status_code == 401

    r = await client.get("/api/v1/wifi/stats", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_session_flow(client, clock, auth):
    r = await client.post("/api/v1/wifi/start", json=CAMPUS_START, headers=auth)
    assert r.status_code == 200, r.text
    started = r.json()
    assert started["is_active"] is True
    assert started["meta"]["validation_methods"] == {"ip_address": True, "bssid": False, "location": True}

    clock.advance(90)
    r = await client.post("/api/v1/wifi/update", headers=auth)
    assert r.status_code == 200, r.text
    live = r.json()
    assert live["current_duration"] == 90
    assert live["potential_points"] == 1

    r = await client.get("/api/v1/wifi/active", headers=auth)
    assert r.json()["id"] == started["id"]

    clock.advance(310)
    r = await client.post("/api/v1/wifi/end", headers=auth)
    assert r.status_code == 200, r.text
    ended = r.json()
    assert ended["duration"] == 400
    assert ended["points_earned"] == 6
    assert ended["is_active"] is False

    r = await client.post("/api/v1/wifi/end", headers=auth)
    assert r.status_code == 404

    r = await client.get("/api/v1/wifi/active", headers=auth)
    assert r.status_code == 200
    assert r.json() is None

    r = await client.get("/api/v1/points/", headers=auth)
    assert r.status_code == 200
    points = r.json()
    assert points["points"] == 6
    assert points["all_time_points"] == 6
    assert [t["amount"] for t in points["transactions"]] == [6]

    r = await client.get("/api/v1/wifi/history", headers=auth)
    assert [s["id"] for s in r.json()] == [started["id"]]

    r = await client.get("/api/v1/wifi/session-count", headers=auth)
    assert r.json() == {"session_count": 1}

    r = await client.get("/api/v1/wifi/stats", headers=auth)
    stats = r.json()
    assert stats["periods"]["today"] == {"duration": 400, "points": 6}
    assert stats["current_session"] is None

    r = await client.post("/api/v1/wifi/sync", headers=auth)
    assert r.status_code == 200
    body = r.json()
    assert body["reports"][0]["corrections"] == {}
    assert body["reports"][0]["total_session_points"] == 6


@pytest.mark.asyncio
async def test_start_rejections(client, auth):
    r = await client.post(
        "/api/v1/wifi/start",
        json={"ip_address": "192.168.1.10", "ssid": "UNITREE-WIFI"},
        headers=auth,
    )
    assert r.status_code == 400
    assert r.json()["detail"]["validation"]["location"] is False

    r = await client.post(
        "/api/v1/wifi/start/legacy",
        json={"ip_address": "192.168.1.10", "ssid": "UNITREE-WIFI"},
        headers=auth,
    )
    assert r.status_code == 200, r.text

    r = await client.post("/api/v1/wifi/update", headers=auth)
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_background_sync_endpoint(client, clock, auth):
    payload = {
        "session_id": "bg-api-1",
        "start_time": (clock.now - timedelta(hours=2)).isoformat() + "Z",
        "end_time": (clock.now - timedelta(hours=1)).isoformat() + "Z",
        "duration": 3600,
        "ip_address": "192.168.9.9",
    }
    r = await client.post("/api/v1/wifi/background-sync", json=payload, headers=auth)
    assert r.status_code == 200, r.text
    first = r.json()
    assert first["already_synced"] is False
    assert first["points_earned"] == 60

    r = await client.post("/api/v1/wifi/background-sync", json=payload, headers=auth)
    second = r.json()
    assert second["already_synced"] is True
    assert second["session"]["id"] == first["session"]["id"]

    future = dict(payload, session_id="bg-api-2", end_time=(clock.now + timedelta(hours=1)).isoformat() + "Z")
    r = await client.post("/api/v1/wifi/background-sync", json=future, headers=auth)
    assert r.status_code == 422

    r = await client.post(
        "/api/v1/wifi/background-sync",
        json=dict(payload, session_id="bg-api-3", duration=-5),
        headers=auth,
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_cleanup_endpoint(client, clock, auth):
    r = await client.post("/api/v1/wifi/start", json=CAMPUS_START, headers=auth)
    assert r.status_code == 200

    clock.advance(25 * 60 * 60)
    r = await client.post("/api/v1/wifi/cleanup", headers=auth)
    assert r.status_code == 200
    assert r.json()["cleaned"] == 1

    r = await client.get("/api/v1/wifi/active", headers=auth)
    assert r.json() is None
