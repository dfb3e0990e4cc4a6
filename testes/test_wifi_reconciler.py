from datetime import timedelta

import pytest

from app.crud.point_transaction import point_transaction as crud_point_transaction
from app.crud.user import user as crud_user
from app.crud.wifi_session import wifi_session as crud_wifi_session
from app.services.wifi_reconciler import WifiReconciler
from app.utils.meta import safe_json_load

from conftest import CAMPUS_LOCATION, CAMPUS_NETWORK


@pytest.mark.asyncio
async def test_sweep_closes_stale_session_once(manager, clock, user, db):
    started = await manager.start_session(db, user.id, network=CAMPUS_NETWORK, location=CAMPUS_LOCATION)
    clock.advance(3 * 60 * 60)

    reconciler = WifiReconciler(manager)
    assert await reconciler.run_once() == 1

    closed = await crud_wifi_session.get(db, started.id)
    await db.refresh(closed)
    assert closed.is_active is False
    assert closed.end_time == clock.now
    assert closed.duration == 3 * 60 * 60
    assert closed.points_earned == 180
    assert safe_json_load(closed.meta)["close_reason"] == "timeout"

    # próximo tick não encontra nada
    clock.advance(10 * 60)
    assert await reconciler.run_once() == 0

    fresh = await crud_user.get_fresh(db, user.id)
    assert fresh.points == 180
    assert fresh.total_time_connected == 3 * 60 * 60
    ledger = await crud_point_transaction.list_for_user(db, user_id=user.id)
    assert len(ledger) == 1
    assert "(timeout cleanup)" in safe_json_load(ledger[0].meta)["description"]


@pytest.mark.asyncio
async def test_sweep_ignores_recent_sessions(manager, clock, user, db):
    await manager.start_session(db, user.id, network=CAMPUS_NETWORK, location=CAMPUS_LOCATION)
    clock.advance(30 * 60)

    assert await WifiReconciler(manager).run_once() == 0
    assert await crud_wifi_session.get_active_for_user(db, user.id) is not None


@pytest.mark.asyncio
async def test_sweep_continues_after_item_failure(manager, clock, user, other_user, db, monkeypatch):
    broken = await manager.start_session(db, user.id, network=CAMPUS_NETWORK, location=CAMPUS_LOCATION)
    await manager.start_session(db, other_user.id, network=CAMPUS_NETWORK, location=CAMPUS_LOCATION)
    clock.advance(3 * 60 * 60)

    original = manager.close_session

    async def flaky_close(session_db, session, **kwargs):
        if session.id == broken.id:
            raise RuntimeError("corrupted row")
        return await original(session_db, session, **kwargs)

    monkeypatch.setattr(manager, "close_session", flaky_close)

    assert await WifiReconciler(manager).run_once() == 1
    assert await crud_wifi_session.get_active_for_user(db, other_user.id) is None


@pytest.mark.asyncio
async def test_user_cleanup_uses_orphan_cutoff(manager, clock, user, db):
    started = await manager.start_session(db, user.id, network=CAMPUS_NETWORK, location=CAMPUS_LOCATION)
    reconciler = WifiReconciler(manager)

    clock.advance(3 * 60 * 60)
    assert await reconciler.cleanup_user(user.id) == 0

    clock.advance(22 * 60 * 60)
    assert await reconciler.cleanup_user(user.id) == 1

    closed = await crud_wifi_session.get(db, started.id)
    await db.refresh(closed)
    assert closed.is_active is False
    assert safe_json_load(closed.meta)["close_reason"] == "orphan_cleanup"
    assert closed.end_time == clock.now


@pytest.mark.asyncio
async def test_sweep_after_client_end_does_nothing(manager, clock, user, db):
    await manager.start_session(db, user.id, network=CAMPUS_NETWORK, location=CAMPUS_LOCATION)
    clock.advance(3 * 60 * 60)
    await manager.end_session(db, user.id)

    assert await WifiReconciler(manager).run_once(now=clock.now + timedelta(minutes=1)) == 0
    assert len(await crud_point_transaction.list_for_user(db, user_id=user.id)) == 1
