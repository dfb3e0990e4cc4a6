# app/services/wifi_sessions.py
"""
Ciclo de vida das sessões WiFi e crédito de pontos.

Estados por sessão: NONE -> ACTIVE -> CLOSED.

Fechamento (End, troca de rede, varredura de timeout, background sync):
  0) reset de períodos (dia/semana/mês) se a fronteira foi cruzada
  1) UPDATE condicional "fecha se ainda ativa"; se outro fluxo já fechou, para aqui
  2) entrada no ledger, protegida pela chave (usuário, início, fim)
  3) incremento atômico dos contadores do usuário

Regra de pontos: 1 ponto por minuto completo, só para sessões com
duração >= MIN_SESSION_DURATION_SECONDS. O tempo é contabilizado sempre.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, elapsed_seconds, normalize_utc_naive, period_starts, utcnow
from app.core.config import Settings, settings
from app.crud.point_transaction import point_transaction as crud_point_transaction
from app.crud.user import user as crud_user
from app.crud.wifi_session import wifi_session as crud_wifi_session
from app.models.wifi_session import SOURCE_BACKGROUND, SOURCE_FOREGROUND, WifiSession
from app.schemas.wifi_session import BackgroundSyncRequest
from app.services.access_validator import (
    AccessDecision,
    AccessPolicy,
    LocationEvidence,
    NetworkEvidence,
    evaluate_access,
)
from app.services.wifi_store import WifiStore
from app.utils.meta import merge_meta

logger = logging.getLogger("unitree.wifi_sessions")

# motivos de fechamento (gravados em meta.close_reason)
CLOSE_USER_END = "user_end"
CLOSE_NETWORK_SWITCH = "network_switch"
CLOSE_TIMEOUT = "timeout"
CLOSE_ORPHAN_CLEANUP = "orphan_cleanup"

_DESCRIPTION_SUFFIX = {
    CLOSE_TIMEOUT: " (timeout cleanup)",
    CLOSE_ORPHAN_CLEANUP: " (cleanup)",
    SOURCE_BACKGROUND: " (background sync)",
    "sync": " (sync)",
}


# ---------------------------------------------------------------------------
# Erros de domínio
# ---------------------------------------------------------------------------


class WifiSessionError(Exception):
    """Base dos erros de cliente das operações de sessão WiFi."""


class InvalidAccessError(WifiSessionError):
    def __init__(self, decision: AccessDecision, message: str = "Invalid university WiFi access") -> None:
        super().__init__(message)
        self.decision = decision


class NoActiveSessionError(WifiSessionError):
    def __init__(self, user_id: int) -> None:
        super().__init__("No active session found")
        self.user_id = user_id


class BackgroundSyncError(WifiSessionError, ValueError):
    pass


# ---------------------------------------------------------------------------
# Regras de pontuação
# ---------------------------------------------------------------------------


def potential_points(duration_seconds: int) -> int:
    return max(0, int(duration_seconds)) // 60


def calculate_points(duration_seconds: int, min_duration_seconds: int) -> int:
    if duration_seconds < min_duration_seconds:
        return 0
    return potential_points(duration_seconds)


# ---------------------------------------------------------------------------
# Resultados
# ---------------------------------------------------------------------------


@dataclass
class LiveSession:
    session: WifiSession
    current_duration: int
    potential_points: int


@dataclass
class CloseOutcome:
    session: WifiSession
    points_earned: int
    # False quando outro fluxo já tinha fechado a sessão
    closed: bool
    # False quando o intervalo já estava no ledger (nada foi incrementado)
    credited: bool


@dataclass
class BackgroundSyncOutcome:
    session: WifiSession
    points_earned: int
    already_synced: bool


def describe_session(session: WifiSession, reason: str) -> str:
    network = session.ssid or session.ip_address or session.bssid or "unknown network"
    return f"WiFi session on {network}{_DESCRIPTION_SUFFIX.get(reason, '')}"


class WifiSessionManager:
    def __init__(
        self,
        store: Optional[WifiStore] = None,
        *,
        cfg: Settings = settings,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store or WifiStore()
        self.settings = cfg
        self.clock = clock

    @property
    def min_duration(self) -> int:
        return self.settings.MIN_SESSION_DURATION_SECONDS

    # ------------------------------------------------------------------
    # Períodos
    # ------------------------------------------------------------------

    async def reset_periods(self, db: AsyncSession, user_id: int, now: datetime) -> List[str]:
        starts = period_starts(now, self.settings.PERIOD_TIMEZONE)
        reset = await crud_user.reset_periods(db, user_id=user_id, starts=starts, now=now)
        if reset:
            logger.info("Reset time periods for user %s: %s", user_id, ",".join(reset))
        return reset

    # ------------------------------------------------------------------
    # Start / Update / End
    # ------------------------------------------------------------------

    async def start_session(
        self,
        db: AsyncSession,
        user_id: int,
        *,
        network: NetworkEvidence,
        location: Optional[LocationEvidence] = None,
        policy: AccessPolicy = AccessPolicy.STRICT,
    ) -> WifiSession:
        decision = evaluate_access(network, location, policy=policy, cfg=self.settings)
        if not decision.allowed:
            logger.warning(
                "Rejected WiFi start for user %s (policy=%s methods=%s)",
                user_id,
                policy.value,
                decision.validation_methods(),
            )
            raise InvalidAccessError(decision)

        now = self.clock()
        retries = 1
        while True:
            try:
                return await self._open(
                    db,
                    user_id,
                    network=network,
                    location=location,
                    policy=policy,
                    decision=decision,
                    now=now,
                )
            except IntegrityError:
                winner = await crud_wifi_session.get_active_for_user(db, user_id)
                if winner is not None and winner.network_key == network.key:
                    # outra requisição do mesmo usuário abriu a sessão ativa primeiro
                    logger.info("Concurrent start for user %s; returning session %s", user_id, winner.id)
                    return winner
                if retries == 0:
                    raise
                retries -= 1
                # conflito no ledger ao fechar a sessão da rede anterior
                logger.warning(
                    "Start for user %s on %s hit a write conflict; retrying once",
                    user_id,
                    network.key,
                )

    async def _open(
        self,
        db: AsyncSession,
        user_id: int,
        *,
        network: NetworkEvidence,
        location: Optional[LocationEvidence],
        policy: AccessPolicy,
        decision: AccessDecision,
        now: datetime,
    ) -> WifiSession:
        async with self.store.unit(db):
            await self.reset_periods(db, user_id, now)

            active = await crud_wifi_session.get_active_for_user(db, user_id)
            if active is not None:
                if active.network_key is not None and active.network_key == network.key:
                    logger.info(
                        "Returning existing active session %s for user %s on %s",
                        active.id,
                        user_id,
                        network.key,
                    )
                    return active

                logger.info(
                    "Ending previous session %s for user %s (old=%s new=%s)",
                    active.id,
                    user_id,
                    active.network_key,
                    network.key,
                )
                await self._close(db, active, end_time=now, reason=CLOSE_NETWORK_SWITCH)

            session = await crud_wifi_session.create(
                db,
                {
                    "user_id": user_id,
                    "ip_address": network.ip_address,
                    "ssid": network.ssid,
                    "bssid": network.bssid,
                    "latitude": location.latitude if location else None,
                    "longitude": location.longitude if location else None,
                    "location_accuracy": location.accuracy if location else None,
                    "location_timestamp": normalize_utc_naive(location.timestamp) if location else None,
                    "start_time": now,
                    "end_time": None,
                    "duration": 0,
                    "points_earned": 0,
                    "is_active": True,
                    "session_date": now,
                    "source": SOURCE_FOREGROUND,
                    "meta": merge_meta(
                        None,
                        validation_methods=decision.validation_methods(),
                        policy=policy.value,
                    ),
                },
            )

        logger.info("WiFi session %s started for user %s on %s", session.id, user_id, network.key)
        return session

    async def update_session(self, db: AsyncSession, user_id: int) -> LiveSession:
        """Projeção somente leitura para o polling da UI."""
        active = await crud_wifi_session.get_active_for_user(db, user_id)
        if active is None:
            raise NoActiveSessionError(user_id)

        current = elapsed_seconds(active.start_time, self.clock())
        return LiveSession(
            session=active,
            current_duration=current,
            potential_points=potential_points(current),
        )

    async def get_active(self, db: AsyncSession, user_id: int) -> Optional[LiveSession]:
        try:
            return await self.update_session(db, user_id)
        except NoActiveSessionError:
            return None

    async def end_session(self, db: AsyncSession, user_id: int) -> CloseOutcome:
        active = await crud_wifi_session.get_active_for_user(db, user_id)
        if active is None:
            raise NoActiveSessionError(user_id)

        outcome = await self.close_session(db, active, reason=CLOSE_USER_END)
        logger.info(
            "WiFi session %s ended for user %s. Duration: %ss, Points: %s",
            outcome.session.id,
            user_id,
            outcome.session.duration,
            outcome.points_earned,
        )
        return outcome

    async def close_session(
        self,
        db: AsyncSession,
        session: WifiSession,
        *,
        reason: str,
        end_time: Optional[datetime] = None,
    ) -> CloseOutcome:
        """Procedimento de fechamento como uma operação completa (commit no fim)."""
        end_time = end_time or self.clock()
        try:
            async with self.store.unit(db):
                return await self._close(db, session, end_time=end_time, reason=reason)
        except IntegrityError:
            # o intervalo entrou no ledger por outro escritor; vale o que está no banco
            logger.warning(
                "Ledger conflict while closing session %s (reason=%s); keeping stored state",
                session.id,
                reason,
            )
            await db.refresh(session)
            return CloseOutcome(
                session=session,
                points_earned=session.points_earned,
                closed=False,
                credited=False,
            )

    # ------------------------------------------------------------------
    # Background sync
    # ------------------------------------------------------------------

    async def background_sync(
        self,
        db: AsyncSession,
        user_id: int,
        payload: BackgroundSyncRequest,
    ) -> BackgroundSyncOutcome:
        existing = await crud_wifi_session.get_by_background_id(db, payload.session_id)
        if existing is not None:
            return self._replayed(existing, user_id)

        network = NetworkEvidence(
            ip_address=payload.ip_address,
            ssid=payload.ssid,
            bssid=payload.bssid,
        )
        decision = evaluate_access(network, None, policy=AccessPolicy.NETWORK_ONLY, cfg=self.settings)
        if not decision.allowed:
            logger.warning("Rejected background sync %s for user %s", payload.session_id, user_id)
            raise InvalidAccessError(decision)

        now = self.clock()
        start_time, end_time = payload.start_time, payload.end_time
        if end_time > now + timedelta(seconds=self.settings.WIFI_CLOCK_SKEW_SECONDS):
            raise BackgroundSyncError("end_time is in the future")

        interval = elapsed_seconds(start_time, end_time)
        if interval > self.settings.WIFI_BACKGROUND_MAX_DURATION_SECONDS:
            raise BackgroundSyncError(
                f"session longer than {self.settings.WIFI_BACKGROUND_MAX_DURATION_SECONDS}s"
            )

        duration = min(payload.duration, interval)
        points = calculate_points(duration, self.min_duration)

        try:
            async with self.store.unit(db):
                await self.reset_periods(db, user_id, now)
                session = await crud_wifi_session.create(
                    db,
                    {
                        "user_id": user_id,
                        "ip_address": payload.ip_address,
                        "ssid": payload.ssid,
                        "bssid": payload.bssid,
                        "start_time": start_time,
                        "end_time": end_time,
                        "duration": duration,
                        "points_earned": points,
                        "is_active": False,
                        "session_date": start_time,
                        "source": SOURCE_BACKGROUND,
                        "background_session_id": payload.session_id,
                        "meta": merge_meta(
                            None,
                            validation_methods=decision.validation_methods(),
                            synced_at=now,
                            source=SOURCE_BACKGROUND,
                            reported_duration=payload.duration,
                        ),
                    },
                )
                await self.store.checkpoint(db)

                await self._credit_interval(
                    db,
                    user_id=user_id,
                    start_time=start_time,
                    end_time=end_time,
                    duration=duration,
                    points=points,
                    description=describe_session(session, SOURCE_BACKGROUND),
                    background_session_id=payload.session_id,
                )
        except IntegrityError:
            existing = await crud_wifi_session.get_by_background_id(db, payload.session_id)
            if existing is None:
                raise
            return self._replayed(existing, user_id)

        logger.info(
            "Background session %s synced for user %s. Duration: %ss, Points: %s",
            payload.session_id,
            user_id,
            duration,
            points,
        )
        return BackgroundSyncOutcome(session=session, points_earned=points, already_synced=False)

    def _replayed(self, existing: WifiSession, user_id: int) -> BackgroundSyncOutcome:
        if existing.user_id != user_id:
            raise BackgroundSyncError("session_id already used by another user")
        logger.info("Background session %s already synced for user %s", existing.background_session_id, user_id)
        return BackgroundSyncOutcome(
            session=existing,
            points_earned=existing.points_earned,
            already_synced=True,
        )

    # ------------------------------------------------------------------
    # Passos internos (sem commit final: quem chama está dentro de store.unit)
    # ------------------------------------------------------------------

    async def _close(
        self,
        db: AsyncSession,
        session: WifiSession,
        *,
        end_time: datetime,
        reason: str,
    ) -> CloseOutcome:
        await self.reset_periods(db, session.user_id, end_time)

        duration = elapsed_seconds(session.start_time, end_time)
        points = calculate_points(duration, self.min_duration)

        won = await crud_wifi_session.close_if_active(
            db,
            session_id=session.id,
            end_time=end_time,
            duration=duration,
            points_earned=points,
            meta=merge_meta(session.meta, close_reason=reason, closed_at=end_time),
        )
        if not won:
            await db.refresh(session)
            logger.info("Session %s was already closed (reason=%s)", session.id, reason)
            return CloseOutcome(
                session=session,
                points_earned=session.points_earned,
                closed=False,
                credited=False,
            )
        await self.store.checkpoint(db)

        credited = await self._credit_interval(
            db,
            user_id=session.user_id,
            start_time=session.start_time,
            end_time=end_time,
            duration=duration,
            points=points,
            description=describe_session(session, reason),
        )
        await db.refresh(session)
        return CloseOutcome(session=session, points_earned=points, closed=True, credited=credited)

    async def _credit_interval(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        start_time: datetime,
        end_time: datetime,
        duration: int,
        points: int,
        description: str,
        background_session_id: Optional[str] = None,
    ) -> bool:
        credited = True
        if points > 0:
            existing = await crud_point_transaction.get_wifi_entry(
                db,
                user_id=user_id,
                start_time=start_time,
                end_time=end_time,
            )
            if existing is not None:
                # o tempo conectado ainda conta; só os pontos ficam de fora
                logger.info(
                    "Transaction %s already exists for user %s interval %s..%s; counting time only",
                    existing.id,
                    user_id,
                    start_time.isoformat(),
                    end_time.isoformat(),
                )
                credited = False
                points = 0

        if points > 0:
            await crud_point_transaction.create_wifi_entry(
                db,
                user_id=user_id,
                amount=points,
                start_time=start_time,
                end_time=end_time,
                duration=duration,
                description=description,
                created_at=self.clock(),
                background_session_id=background_session_id,
            )
            await self.store.checkpoint(db)

        await crud_user.increment_counters(db, user_id=user_id, points=points, duration=duration)
        await self.store.checkpoint(db)
        return credited
