# app/crud/point_transaction.py
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.base import CRUDBase
from app.models.point_transaction import WIFI_SESSION, PointTransaction
from app.utils.meta import safe_json_dump


class CRUDPointTransaction(CRUDBase[PointTransaction]):
    async def get_wifi_entry(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        start_time: datetime,
        end_time: datetime,
    ) -> Optional[PointTransaction]:
        """Busca pela chave de deduplicação (usuário, início, fim)."""
        stmt = select(PointTransaction).where(
            PointTransaction.user_id == user_id,
            PointTransaction.type == WIFI_SESSION,
            PointTransaction.session_start_time == start_time,
            PointTransaction.session_end_time == end_time,
        )
        res = await db.execute(stmt)
        return res.scalars().first()

    async def create_wifi_entry(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        amount: int,
        start_time: datetime,
        end_time: datetime,
        duration: int,
        description: str,
        created_at: datetime,
        background_session_id: str | None = None,
    ) -> PointTransaction:
        meta = {
            "start_time": start_time,
            "end_time": end_time,
            "duration": duration,
            "description": description,
        }
        if background_session_id:
            meta["background_session_id"] = background_session_id

        return await self.create(
            db,
            {
                "user_id": user_id,
                "amount": amount,
                "type": WIFI_SESSION,
                "session_start_time": start_time,
                "session_end_time": end_time,
                "meta": safe_json_dump(meta),
                "created_at": created_at,
            },
        )

    async def list_for_user(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        limit: int = 50,
    ) -> List[PointTransaction]:
        stmt = (
            select(PointTransaction)
            .where(PointTransaction.user_id == user_id)
            .order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
            .limit(limit)
        )
        res = await db.execute(stmt)
        return list(res.scalars().all())

    async def ledger_totals(self, db: AsyncSession, *, user_id: int) -> Tuple[int, int]:
        """(saldo atual, total vitalício = soma só dos positivos)"""
        stmt = select(
            func.coalesce(func.sum(PointTransaction.amount), 0),
            func.coalesce(
                func.sum(case((PointTransaction.amount > 0, PointTransaction.amount), else_=0)),
                0,
            ),
        ).where(PointTransaction.user_id == user_id)
        res = await db.execute(stmt)
        current, lifetime = res.one()
        return int(current), int(lifetime)


point_transaction = CRUDPointTransaction(PointTransaction)
