# app/services/wifi_consistency.py
"""
Sync de consistência: reconstrói a projeção de contadores do usuário a
partir do ledger e das sessões fechadas.

Por usuário, em uma única operação:
  1) cria as entradas de ledger que faltam para sessões fechadas com pontos
  2) recalcula saldo, total vitalício e tempo total conectado
  3) sobrescreve só os campos que divergem (UPDATE com sub-selects, nunca
     a partir de valores em memória) e reporta {old, new} de cada um

Reexecutar é seguro: na segunda rodada não há nada para criar nem corrigir.
"""

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud.point_transaction import point_transaction as crud_point_transaction
from app.crud.user import user as crud_user
from app.crud.wifi_session import wifi_session as crud_wifi_session
from app.schemas.wifi_stats import ConsistencyReport, FieldCorrection
from app.services.wifi_sessions import WifiSessionManager, describe_session

logger = logging.getLogger("unitree.wifi_consistency")


class WifiConsistencySync:
    def __init__(self, manager: Optional[WifiSessionManager] = None) -> None:
        self.manager = manager or WifiSessionManager()

    async def _heal_ledger(self, db: AsyncSession, user_id: int) -> int:
        created = 0
        for session in await crud_wifi_session.list_closed_with_points(db, user_id=user_id):
            existing = await crud_point_transaction.get_wifi_entry(
                db,
                user_id=user_id,
                start_time=session.start_time,
                end_time=session.end_time,
            )
            if existing is not None:
                continue

            await crud_point_transaction.create_wifi_entry(
                db,
                user_id=user_id,
                amount=session.points_earned,
                start_time=session.start_time,
                end_time=session.end_time,
                duration=session.duration,
                description=describe_session(session, "sync"),
                created_at=session.end_time,
                background_session_id=session.background_session_id,
            )
            await self.manager.store.checkpoint(db)
            created += 1
            logger.info(
                "Created missing ledger entry for session %s (user %s, %s points)",
                session.id,
                user_id,
                session.points_earned,
            )
        return created

    async def sync_user(self, db: AsyncSession, user_id: int) -> ConsistencyReport:
        report = ConsistencyReport(user_id=user_id)

        async with self.manager.store.unit(db):
            user = await crud_user.get_fresh(db, user_id)
            if user is None:
                raise LookupError(f"user {user_id} not found")

            report.created_transactions = await self._heal_ledger(db, user_id)

            totals = await crud_wifi_session.closed_totals(db, user_id=user_id)
            current, lifetime = await crud_point_transaction.ledger_totals(db, user_id=user_id)
            report.total_sessions = totals.sessions
            report.total_duration = totals.duration
            report.total_session_points = totals.points

            user = await crud_user.get_fresh(db, user_id)
            expected = {
                "points": current,
                "all_time_points": lifetime,
                "total_time_connected": totals.duration,
            }
            drift: Dict[str, Tuple[int, int]] = {
                field: (getattr(user, field), value)
                for field, value in expected.items()
                if getattr(user, field) != value
            }
            if drift:
                logger.warning(
                    "Counter drift for user %s: %s",
                    user_id,
                    ", ".join(f"{f} {old}->{new}" for f, (old, new) in drift.items()),
                )
                await crud_user.rebuild_projection(db, user_id=user_id, fields=drift.keys())
                user = await crud_user.get_fresh(db, user_id)
                for field, (old, _) in drift.items():
                    report.corrections[field] = FieldCorrection(old=old, new=getattr(user, field))

        if not drift and not report.created_transactions:
            logger.info("User %s is consistent (%s closed sessions)", user_id, report.total_sessions)
        return report

    async def run(self, user_id: Optional[int] = None) -> List[ConsistencyReport]:
        """Sync de um usuário ou de todos; falhas viram `error` no relatório."""
        store = self.manager.store
        if user_id is not None:
            user_ids = [user_id]
        else:
            async with store.session() as db:
                user_ids = await crud_user.list_ids(db)

        reports: List[ConsistencyReport] = []
        for uid in user_ids:
            async with store.session() as db:
                try:
                    reports.append(await self.sync_user(db, uid))
                except Exception as exc:
                    logger.exception("Consistency sync failed for user %s", uid)
                    reports.append(ConsistencyReport(user_id=uid, error=str(exc)))

        corrected = sum(1 for r in reports if r.corrections or r.created_transactions)
        logger.info("Consistency sync finished: %s users checked, %s corrected", len(reports), corrected)
        return reports
