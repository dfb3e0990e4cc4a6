# app/schemas/wifi_stats.py
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class PeriodStats(BaseModel):
    duration: int
    points: int


class PeriodsStats(BaseModel):
    today: PeriodStats
    this_week: PeriodStats
    this_month: PeriodStats
    all_time: PeriodStats


class CurrentSessionStats(BaseModel):
    duration: int
    points: int
    is_active: bool = True
    start_time: datetime
    ip_address: Optional[str] = None


class LastResets(BaseModel):
    day: Optional[datetime] = None
    week: Optional[datetime] = None
    month: Optional[datetime] = None


class WifiStats(BaseModel):
    periods: PeriodsStats
    current_session: Optional[CurrentSessionStats] = None
    session_count: int
    last_resets: LastResets


class SessionCount(BaseModel):
    session_count: int


class CleanupResult(BaseModel):
    cleaned: int
    message: str


class FieldCorrection(BaseModel):
    old: int
    new: int


class ConsistencyReport(BaseModel):
    user_id: int
    total_sessions: int = 0
    total_duration: int = 0
    total_session_points: int = 0
    created_transactions: int = 0
    corrections: Dict[str, FieldCorrection] = Field(default_factory=dict)
    error: Optional[str] = None


class ConsistencySyncResult(BaseModel):
    message: str
    reports: List[ConsistencyReport]
