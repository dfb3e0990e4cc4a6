# app/services/wifi_stats.py
"""
Estatísticas de conexão por período (hoje / semana / mês / total).

Duração de cada período = contador armazenado + duração da sessão aberta.
Pontos de cada período = floor(duração / 60).
"""

from __future__ import annotations

from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import elapsed_seconds, period_starts
from app.crud.user import user as crud_user
from app.crud.wifi_session import wifi_session as crud_wifi_session
from app.schemas.wifi_stats import (
    CurrentSessionStats,
    LastResets,
    PeriodStats,
    PeriodsStats,
    WifiStats,
)
from app.services.wifi_sessions import WifiSessionManager, potential_points


def _period(duration: int) -> PeriodStats:
    return PeriodStats(duration=duration, points=potential_points(duration))


async def get_session_count(db: AsyncSession, manager: WifiSessionManager, user_id: int) -> int:
    """Sessões cujo session_date cai no dia local corrente."""
    now = manager.clock()
    async with manager.store.unit(db):
        await manager.reset_periods(db, user_id, now)

    day_start = period_starts(now, manager.settings.PERIOD_TIMEZONE).day
    return await crud_wifi_session.count_started_between(
        db,
        user_id=user_id,
        from_ts=day_start,
        to_ts=day_start + timedelta(days=1),
    )


async def get_stats(db: AsyncSession, manager: WifiSessionManager, user_id: int) -> WifiStats:
    now = manager.clock()
    async with manager.store.unit(db):
        await manager.reset_periods(db, user_id, now)

    user = await crud_user.get_fresh(db, user_id)
    if user is None:
        raise LookupError(f"user {user_id} not found")

    active = await crud_wifi_session.get_active_for_user(db, user_id)
    current_duration = elapsed_seconds(active.start_time, now) if active else 0

    current = None
    if active is not None:
        current = CurrentSessionStats(
            duration=current_duration,
            points=potential_points(current_duration),
            start_time=active.start_time,
            ip_address=active.ip_address,
        )

    day_start = period_starts(now, manager.settings.PERIOD_TIMEZONE).day
    session_count = await crud_wifi_session.count_started_between(
        db,
        user_id=user_id,
        from_ts=day_start,
        to_ts=day_start + timedelta(days=1),
    )

    return WifiStats(
        periods=PeriodsStats(
            today=_period(user.day_time_connected + current_duration),
            this_week=_period(user.week_time_connected + current_duration),
            this_month=_period(user.month_time_connected + current_duration),
            all_time=_period(user.total_time_connected + current_duration),
        ),
        current_session=current,
        session_count=session_count,
        last_resets=LastResets(
            day=user.last_day_reset,
            week=user.last_week_reset,
            month=user.last_month_reset,
        ),
    )
