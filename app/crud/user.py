# app/crud/user.py
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import PeriodStarts
from app.crud.base import CRUDBase
from app.models.point_transaction import PointTransaction
from app.models.user import User
from app.models.wifi_session import WifiSession

# campos da projeção que o sync de consistência sabe reconstruir
REBUILDABLE_FIELDS = ("points", "all_time_points", "total_time_connected")


class CRUDUser(CRUDBase[User]):
    async def list_ids(self, db: AsyncSession) -> List[int]:
        res = await db.execute(select(User.id).order_by(User.id))
        return [row[0] for row in res.fetchall()]

    async def increment_counters(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        points: int,
        duration: int,
    ) -> None:
        """
        Incremento atômico (col = col + n) dos pontos e dos 4 contadores de tempo.
        """
        values: Dict[str, object] = {
            "day_time_connected": User.day_time_connected + duration,
            "week_time_connected": User.week_time_connected + duration,
            "month_time_connected": User.month_time_connected + duration,
            "total_time_connected": User.total_time_connected + duration,
        }
        if points:
            values["points"] = User.points + points
            values["all_time_points"] = User.all_time_points + points

        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await db.execute(stmt)

    async def reset_periods(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        starts: PeriodStarts,
        now: datetime,
    ) -> List[str]:
        """
        Zera day/week/month quando o último reset é anterior ao início do período.

        Cada reset é um UPDATE condicional, então duas requisições
        concorrentes não zeram o mesmo período duas vezes.
        """
        periods = (
            ("day", User.day_time_connected, User.last_day_reset, starts.day),
            ("week", User.week_time_connected, User.last_week_reset, starts.week),
            ("month", User.month_time_connected, User.last_month_reset, starts.month),
        )

        reset: List[str] = []
        for name, counter_col, reset_col, period_start in periods:
            stmt = (
                update(User)
                .where(
                    User.id == user_id,
                    or_(reset_col.is_(None), reset_col < period_start),
                )
                .values({counter_col: 0, reset_col: now})
                .execution_options(synchronize_session=False)
            )
            res = await db.execute(stmt)
            if res.rowcount:
                reset.append(name)
        return reset

    async def rebuild_projection(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        fields: Iterable[str],
    ) -> None:
        """
        Sobrescreve campos da projeção com valores recalculados NO PRÓPRIO UPDATE
        (sub-selects correlacionados no ledger e nas sessões fechadas).
        """
        ledger_sum = (
            select(func.coalesce(func.sum(PointTransaction.amount), 0))
            .where(PointTransaction.user_id == User.id)
            .scalar_subquery()
        )
        ledger_positive_sum = (
            select(
                func.coalesce(
                    func.sum(
                        case((PointTransaction.amount > 0, PointTransaction.amount), else_=0)
                    ),
                    0,
                )
            )
            .where(PointTransaction.user_id == User.id)
            .scalar_subquery()
        )
        closed_duration_sum = (
            select(func.coalesce(func.sum(WifiSession.duration), 0))
            .where(
                WifiSession.user_id == User.id,
                WifiSession.is_active.is_(False),
                WifiSession.end_time.is_not(None),
            )
            .scalar_subquery()
        )
        expressions = {
            "points": ledger_sum,
            "all_time_points": ledger_positive_sum,
            "total_time_connected": closed_duration_sum,
        }

        values = {name: expressions[name] for name in fields if name in REBUILDABLE_FIELDS}
        if not values:
            return

        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await db.execute(stmt)

    async def get_fresh(self, db: AsyncSession, user_id: int) -> Optional[User]:
        """Relê o usuário ignorando o estado em cache na sessão."""
        stmt = (
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        res = await db.execute(stmt)
        return res.scalar_one_or_none()


user = CRUDUser(User)
