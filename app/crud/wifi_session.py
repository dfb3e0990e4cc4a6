# app/crud/wifi_session.py
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.wifi_session import WifiSession


@dataclass(frozen=True)
class ClosedTotals:
    sessions: int
    duration: int
    points: int


class CRUDWifiSession(CRUDBase[WifiSession]):
    async def get_active_for_user(
        self,
        db: AsyncSession,
        user_id: int,
    ) -> Optional[WifiSession]:
        stmt = (
            select(WifiSession)
            .where(
                WifiSession.user_id == user_id,
                WifiSession.is_active.is_(True),
                WifiSession.end_time.is_(None),
            )
            .order_by(WifiSession.start_time.desc())
            .limit(1)
        )
        res = await db.execute(stmt)
        return res.scalar_one_or_none()

    async def get_by_background_id(
        self,
        db: AsyncSession,
        background_session_id: str,
    ) -> Optional[WifiSession]:
        stmt = select(WifiSession).where(
            WifiSession.background_session_id == background_session_id
        )
        res = await db.execute(stmt)
        return res.scalar_one_or_none()

    async def list_active_started_before(
        self,
        db: AsyncSession,
        *,
        cutoff: datetime,
        user_id: int | None = None,
    ) -> List[WifiSession]:
        stmt = select(WifiSession).where(
            WifiSession.is_active.is_(True),
            WifiSession.start_time < cutoff,
        )
        if user_id is not None:
            stmt = stmt.where(WifiSession.user_id == user_id)

        stmt = stmt.order_by(WifiSession.start_time.asc())
        res = await db.execute(stmt)
        return list(res.scalars().all())

    async def list_closed_for_user(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        skip: int = 0,
        limit: int = 100,
    ) -> List[WifiSession]:
        stmt = (
            select(WifiSession)
            .where(
                WifiSession.user_id == user_id,
                WifiSession.end_time.is_not(None),
            )
            .order_by(WifiSession.start_time.desc())
            .offset(skip)
            .limit(limit)
        )
        res = await db.execute(stmt)
        return list(res.scalars().all())

    async def list_closed_with_points(
        self,
        db: AsyncSession,
        *,
        user_id: int,
    ) -> List[WifiSession]:
        stmt = (
            select(WifiSession)
            .where(
                WifiSession.user_id == user_id,
                WifiSession.is_active.is_(False),
                WifiSession.end_time.is_not(None),
                WifiSession.points_earned > 0,
            )
            .order_by(WifiSession.start_time.asc())
        )
        res = await db.execute(stmt)
        return list(res.scalars().all())

    async def count_started_between(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        from_ts: datetime,
        to_ts: datetime,
    ) -> int:
        stmt = select(func.count(WifiSession.id)).where(
            WifiSession.user_id == user_id,
            WifiSession.session_date >= from_ts,
            WifiSession.session_date < to_ts,
        )
        res = await db.execute(stmt)
        return int(res.scalar_one() or 0)

    async def closed_totals(self, db: AsyncSession, *, user_id: int) -> ClosedTotals:
        stmt = select(
            func.count(WifiSession.id),
            func.coalesce(func.sum(WifiSession.duration), 0),
            func.coalesce(func.sum(WifiSession.points_earned), 0),
        ).where(
            WifiSession.user_id == user_id,
            WifiSession.is_active.is_(False),
            WifiSession.end_time.is_not(None),
        )
        res = await db.execute(stmt)
        count, duration, points = res.one()
        return ClosedTotals(sessions=int(count), duration=int(duration), points=int(points))

    async def close_if_active(
        self,
        db: AsyncSession,
        *,
        session_id: int,
        end_time: datetime,
        duration: int,
        points_earned: int,
        meta: str | None,
    ) -> bool:
        """
        Fechamento condicional: só altera a linha se ela ainda estiver ativa.

        Retorna False quando outro fluxo (End do cliente x varredura) já fechou.
        """
        stmt = (
            update(WifiSession)
            .where(
                WifiSession.id == session_id,
                WifiSession.is_active.is_(True),
            )
            .values(
                is_active=False,
                end_time=end_time,
                duration=duration,
                points_earned=points_earned,
                meta=meta,
            )
            .execution_options(synchronize_session=False)
        )
        res = await db.execute(stmt)
        return bool(res.rowcount)


wifi_session = CRUDWifiSession(WifiSession)
