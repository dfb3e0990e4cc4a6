# app/api/routes/wifi.py
"""
Rotas de sessão WiFi do usuário autenticado.

Adaptador fino sobre WifiSessionManager: converte payloads em evidências,
chama o serviço e traduz erros de domínio em HTTPException.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import (
    get_consistency_sync,
    get_current_active_user,
    get_db_session,
    get_wifi_manager,
    get_wifi_reconciler,
)
from app.crud.wifi_session import wifi_session as crud_wifi_session
from app.models.user import User
from app.schemas.wifi_session import (
    BackgroundSyncRequest,
    BackgroundSyncResult,
    WifiSessionEnded,
    WifiSessionLive,
    WifiSessionRead,
    WifiSessionStart,
)
from app.schemas.wifi_stats import (
    CleanupResult,
    ConsistencySyncResult,
    SessionCount,
    WifiStats,
)
from app.services import wifi_stats
from app.services.access_validator import AccessPolicy, LocationEvidence, NetworkEvidence
from app.services.wifi_consistency import WifiConsistencySync
from app.services.wifi_reconciler import WifiReconciler
from app.services.wifi_sessions import (
    BackgroundSyncError,
    InvalidAccessError,
    LiveSession,
    NoActiveSessionError,
    WifiSessionError,
    WifiSessionManager,
)

router = APIRouter()


def _to_http(exc: WifiSessionError) -> HTTPException:
    if isinstance(exc, InvalidAccessError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": str(exc),
                "validation": exc.decision.validation_methods(),
            },
        )
    if isinstance(exc, NoActiveSessionError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, BackgroundSyncError):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _live(live: LiveSession) -> WifiSessionLive:
    data = WifiSessionRead.model_validate(live.session).model_dump()
    return WifiSessionLive(
        **data,
        current_duration=live.current_duration,
        potential_points=live.potential_points,
    )


def _evidence(payload: WifiSessionStart):
    network = NetworkEvidence(
        ip_address=payload.ip_address,
        ssid=payload.ssid,
        bssid=payload.bssid,
    )
    location = None
    if payload.location is not None:
        location = LocationEvidence(
            latitude=payload.location.latitude,
            longitude=payload.location.longitude,
            accuracy=payload.location.accuracy,
            timestamp=payload.location.timestamp,
        )
    return network, location


async def _start(
    payload: WifiSessionStart,
    policy: AccessPolicy,
    db: AsyncSession,
    current_user: User,
    manager: WifiSessionManager,
):
    network, location = _evidence(payload)
    try:
        return await manager.start_session(
            db,
            current_user.id,
            network=network,
            location=location,
            policy=policy,
        )
    except WifiSessionError as exc:
        raise _to_http(exc)


@router.post("/start", response_model=WifiSessionRead)
async def start_session(
    payload: WifiSessionStart,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_active_user),
    manager: WifiSessionManager = Depends(get_wifi_manager),
):
    """Abre uma sessão exigindo rede E localização no campus."""
    return await _start(payload, AccessPolicy.STRICT, db, current_user, manager)


@router.post("/start/legacy", response_model=WifiSessionRead)
async def start_session_legacy(
    payload: WifiSessionStart,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_active_user),
    manager: WifiSessionManager = Depends(get_wifi_manager),
):
    """Versões antigas do app: só a evidência de rede é exigida."""
    return await _start(payload, AccessPolicy.NETWORK_ONLY, db, current_user, manager)


@router.post("/update", response_model=WifiSessionLive)
async def update_session(
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_active_user),
    manager: WifiSessionManager = Depends(get_wifi_manager),
):
    try:
        live = await manager.update_session(db, current_user.id)
    except WifiSessionError as exc:
        raise _to_http(exc)
    return _live(live)


@router.post("/end", response_model=WifiSessionEnded)
async def end_session(
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_active_user),
    manager: WifiSessionManager = Depends(get_wifi_manager),
):
    try:
        outcome = await manager.end_session(db, current_user.id)
    except WifiSessionError as exc:
        raise _to_http(exc)

    data = WifiSessionRead.model_validate(outcome.session).model_dump()
    return WifiSessionEnded(**data, current_duration=outcome.session.duration)


@router.get("/active", response_model=Optional[WifiSessionLive])
async def get_active_session(
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_active_user),
    manager: WifiSessionManager = Depends(get_wifi_manager),
):
    live = await manager.get_active(db, current_user.id)
    if live is None:
        return None
    return _live(live)


@router.get("/history", response_model=List[WifiSessionRead])
async def get_history(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_active_user),
):
    return await crud_wifi_session.list_closed_for_user(
        db,
        user_id=current_user.id,
        skip=skip,
        limit=limit,
    )


@router.get("/session-count", response_model=SessionCount)
async def get_session_count(
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_active_user),
    manager: WifiSessionManager = Depends(get_wifi_manager),
):
    count = await wifi_stats.get_session_count(db, manager, current_user.id)
    return SessionCount(session_count=count)


@router.post("/cleanup", response_model=CleanupResult)
async def cleanup_orphaned_sessions(
    current_user: User = Depends(get_current_active_user),
    reconciler: WifiReconciler = Depends(get_wifi_reconciler),
):
    cleaned = await reconciler.cleanup_user(current_user.id)
    return CleanupResult(cleaned=cleaned, message=f"Cleaned up {cleaned} orphaned sessions")


@router.get("/stats", response_model=WifiStats)
async def get_stats(
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_active_user),
    manager: WifiSessionManager = Depends(get_wifi_manager),
):
    return await wifi_stats.get_stats(db, manager, current_user.id)


@router.post("/sync", response_model=ConsistencySyncResult)
async def sync_wifi_transactions(
    current_user: User = Depends(get_current_active_user),
    sync: WifiConsistencySync = Depends(get_consistency_sync),
):
    reports = await sync.run(user_id=current_user.id)
    corrected = any(r.corrections or r.created_transactions for r in reports)
    message = "Counters repaired" if corrected else "Counters already consistent"
    return ConsistencySyncResult(message=message, reports=reports)


@router.post("/background-sync", response_model=BackgroundSyncResult)
async def background_sync(
    payload: BackgroundSyncRequest,
    db: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_active_user),
    manager: WifiSessionManager = Depends(get_wifi_manager),
):
    try:
        outcome = await manager.background_sync(db, current_user.id, payload)
    except WifiSessionError as exc:
        raise _to_http(exc)

    message = "Session already synced" if outcome.already_synced else "Background session synced"
    return BackgroundSyncResult(
        message=message,
        already_synced=outcome.already_synced,
        points_earned=outcome.points_earned,
        session=WifiSessionRead.model_validate(outcome.session),
    )
