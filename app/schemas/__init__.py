# app/schemas/__init__.py
from app.schemas.wifi_session import (
    LocationIn,
    WifiSessionStart,
    WifiSessionRead,
    WifiSessionLive,
    WifiSessionEnded,
    BackgroundSyncRequest,
    BackgroundSyncResult,
)
from app.schemas.point_transaction import PointTransactionRead, PointsSummary
from app.schemas.user import TokenPayload
from app.schemas.wifi_stats import (
    PeriodStats,
    PeriodsStats,
    CurrentSessionStats,
    LastResets,
    WifiStats,
    SessionCount,
    CleanupResult,
    FieldCorrection,
    ConsistencyReport,
    ConsistencySyncResult,
)

__all__ = [
    "LocationIn",
    "WifiSessionStart",
    "WifiSessionRead",
    "WifiSessionLive",
    "WifiSessionEnded",
    "BackgroundSyncRequest",
    "BackgroundSyncResult",
    "PointTransactionRead",
    "PointsSummary",
    "TokenPayload",
    "PeriodStats",
    "PeriodsStats",
    "CurrentSessionStats",
    "LastResets",
    "WifiStats",
    "SessionCount",
    "CleanupResult",
    "FieldCorrection",
    "ConsistencyReport",
    "ConsistencySyncResult",
]
