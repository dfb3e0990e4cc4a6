from datetime import timedelta

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select

from app.crud.point_transaction import point_transaction as crud_point_transaction
from app.crud.user import user as crud_user
from app.models.wifi_session import WifiSession
from app.schemas.wifi_session import BackgroundSyncRequest
from app.services.wifi_sessions import BackgroundSyncError, InvalidAccessError
from app.utils.meta import safe_json_load


def _payload(clock, **overrides) -> BackgroundSyncRequest:
    data = {
        "session_id": "bg-2025-03-12-0001",
        "start_time": clock.now - timedelta(hours=2),
        "end_time": clock.now - timedelta(hours=1),
        "duration": 3600,
        "ip_address": "192.168.4.44",
        "ssid": "UNITREE-WIFI",
    }
    data.update(overrides)
    return BackgroundSyncRequest(**data)


@pytest.mark.asyncio
async def test_background_sync_replay_is_idempotent(manager, clock, user, db):
    payload = _payload(clock)

    first = await manager.background_sync(db, user.id, payload)
    assert first.already_synced is False
    assert first.points_earned == 60
    assert first.session.is_active is False
    assert first.session.source == "background"
    assert first.session.background_session_id == payload.session_id

    second = await manager.background_sync(db, user.id, payload)
    assert second.already_synced is True
    assert second.session.id == first.session.id
    assert second.points_earned == 60

    res = await db.execute(select(func.count(WifiSession.id)).where(WifiSession.user_id == user.id))
    assert res.scalar_one() == 1

    ledger = await crud_point_transaction.list_for_user(db, user_id=user.id)
    assert len(ledger) == 1
    assert ledger[0].amount == 60
    assert safe_json_load(ledger[0].meta)["background_session_id"] == payload.session_id

    fresh = await crud_user.get_fresh(db, user.id)
    assert fresh.points == 60
    assert fresh.all_time_points == 60
    assert fresh.total_time_connected == 3600


@pytest.mark.asyncio
async def test_background_duration_is_clamped_to_interval(manager, clock, user, db):
    payload = _payload(
        clock,
        start_time=clock.now - timedelta(minutes=30),
        end_time=clock.now - timedelta(minutes=10),
        duration=99_999,
    )
    outcome = await manager.background_sync(db, user.id, payload)

    assert outcome.session.duration == 1200
    assert outcome.points_earned == 20


@pytest.mark.asyncio
async def test_background_short_session_earns_no_points(manager, clock, user, db):
    payload = _payload(clock, duration=120)
    outcome = await manager.background_sync(db, user.id, payload)

    assert outcome.points_earned == 0
    assert await crud_point_transaction.list_for_user(db, user_id=user.id) == []
    fresh = await crud_user.get_fresh(db, user.id)
    assert fresh.total_time_connected == 120


@pytest.mark.asyncio
async def test_background_sync_rejects_future_and_oversized_intervals(manager, clock, user, db):
    future = _payload(
        clock,
        start_time=clock.now,
        end_time=clock.now + timedelta(minutes=30),
    )
    with pytest.raises(BackgroundSyncError):
        await manager.background_sync(db, user.id, future)

    too_long = _payload(
        clock,
        session_id="bg-long",
        start_time=clock.now - timedelta(hours=7),
        end_time=clock.now - timedelta(hours=1),
        duration=6 * 3600,
    )
    with pytest.raises(BackgroundSyncError):
        await manager.background_sync(db, user.id, too_long)

    # tolerância de relógio do cliente
    skewed = _payload(
        clock,
        session_id="bg-skew",
        start_time=clock.now - timedelta(minutes=20),
        end_time=clock.now + timedelta(seconds=30),
        duration=600,
    )
    outcome = await manager.background_sync(db, user.id, skewed)
    assert outcome.points_earned == 10


@pytest.mark.asyncio
async def test_background_sync_requires_campus_network(manager, clock, user, db):
    with pytest.raises(InvalidAccessError):
        await manager.background_sync(db, user.id, _payload(clock, ip_address="10.1.1.1"))


@pytest.mark.asyncio
async def test_background_session_id_belongs_to_one_user(manager, clock, user, other_user, db):
    payload = _payload(clock)
    await manager.background_sync(db, user.id, payload)

    with pytest.raises(BackgroundSyncError):
        await manager.background_sync(db, other_user.id, payload)

    fresh = await crud_user.get_fresh(db, other_user.id)
    assert fresh.points == 0


def test_background_payload_validation(clock):
    with pytest.raises(ValidationError):
        _payload(clock, end_time=clock.now - timedelta(hours=3))
    with pytest.raises(ValidationError):
        _payload(clock, session_id="   ")
    with pytest.raises(ValidationError):
        _payload(clock, duration=-1)
    with pytest.raises(ValidationError):
        _payload(clock, ip_address=None)
