import asyncio
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from app.crud.wifi_session import wifi_session as crud_wifi_session
from app.services.wifi_sessions import (
    CLOSE_ORPHAN_CLEANUP,
    CLOSE_TIMEOUT,
    WifiSessionManager,
)

logger = logging.getLogger("unitree.wifi_reconciler")


class WifiReconciler:
    """
    Varredura de sessões abandonadas (cliente caiu antes do End).

    Cada sessão é fechada em uma sessão de banco própria, com o mesmo
    procedimento de fechamento do End; a falha de uma não interrompe as outras.
    """

    def __init__(self, manager: Optional[WifiSessionManager] = None) -> None:
        self.manager = manager or WifiSessionManager()

    async def _stale_ids(self, *, cutoff: datetime, user_id: Optional[int]) -> List[int]:
        async with self.manager.store.session() as db:
            stale = await crud_wifi_session.list_active_started_before(
                db,
                cutoff=cutoff,
                user_id=user_id,
            )
            return [s.id for s in stale]

    async def run_once(
        self,
        *,
        now: Optional[datetime] = None,
        user_id: Optional[int] = None,
        older_than_seconds: Optional[int] = None,
        reason: str = CLOSE_TIMEOUT,
    ) -> int:
        manager = self.manager
        now = now or manager.clock()
        if older_than_seconds is None:
            older_than_seconds = manager.settings.WIFI_SESSION_TIMEOUT_SECONDS
        cutoff = now - timedelta(seconds=older_than_seconds)

        ids = await self._stale_ids(cutoff=cutoff, user_id=user_id)
        if not ids:
            logger.debug("No stale WiFi sessions (cutoff=%s)", cutoff.isoformat())
            return 0

        logger.info("Found %s stale WiFi sessions (cutoff=%s)", len(ids), cutoff.isoformat())

        cleaned = 0
        for session_id in ids:
            try:
                async with manager.store.session() as db:
                    session = await crud_wifi_session.get(db, session_id)
                    if session is None or not session.is_active:
                        continue

                    outcome = await manager.close_session(db, session, reason=reason, end_time=now)
                    if outcome.closed:
                        cleaned += 1
                        logger.info(
                            "Closed stale session %s for user %s. Duration: %ss, Points: %s",
                            session_id,
                            outcome.session.user_id,
                            outcome.session.duration,
                            outcome.points_earned,
                        )
            except Exception:
                logger.exception("Failed to close stale WiFi session %s", session_id)

        logger.info("Cleaned up %s stale WiFi sessions", cleaned)
        return cleaned

    async def cleanup_user(self, user_id: int, *, now: Optional[datetime] = None) -> int:
        """Fecha as sessões ativas do usuário mais antigas que WIFI_ORPHAN_CUTOFF_HOURS."""
        hours = self.manager.settings.WIFI_ORPHAN_CUTOFF_HOURS
        return await self.run_once(
            now=now,
            user_id=user_id,
            older_than_seconds=hours * 3600,
            reason=CLOSE_ORPHAN_CLEANUP,
        )

    async def run_loop(self, *, interval_minutes: int) -> None:
        interval_seconds = max(interval_minutes, 1) * 60
        logger.info(
            "WiFi session cleanup loop enabled (interval_minutes=%s timeout_seconds=%s)",
            interval_minutes,
            self.manager.settings.WIFI_SESSION_TIMEOUT_SECONDS,
        )
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("WiFi session cleanup failed")
            try:
                await asyncio.sleep(interval_seconds)
            except asyncio.CancelledError:
                logger.info("WiFi session cleanup loop cancelled")
                raise
