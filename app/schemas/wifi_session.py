# app/schemas/wifi_session.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.clock import normalize_utc_naive
from app.utils.meta import safe_json_load


class LocationIn(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: Optional[float] = Field(default=None, ge=0)
    timestamp: Optional[datetime] = None


class WifiSessionStart(BaseModel):
    """Evidências enviadas pelo app ao iniciar uma sessão."""

    ip_address: Optional[str] = Field(default=None, max_length=64)
    ssid: Optional[str] = Field(default=None, max_length=255)
    bssid: Optional[str] = Field(default=None, max_length=64)
    location: Optional[LocationIn] = None


class WifiSessionRead(BaseModel):
    id: int
    user_id: int
    ip_address: Optional[str] = None
    ssid: Optional[str] = None
    bssid: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_accuracy: Optional[float] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: int
    points_earned: int
    is_active: bool
    session_date: datetime
    source: str
    background_session_id: Optional[str] = None
    meta: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)

    @field_validator("meta", mode="before")
    @classmethod
    def _parse_meta(cls, v: Any) -> Dict[str, Any]:
        if isinstance(v, dict):
            return v
        return safe_json_load(v)


class WifiSessionLive(WifiSessionRead):
    """Sessão + projeção em tempo real (nada disso é persistido)."""

    current_duration: int
    potential_points: int


class WifiSessionEnded(WifiSessionRead):
    current_duration: int


class BackgroundSyncRequest(BaseModel):
    """
    Sessão rastreada pelo app enquanto estava sem falar com o servidor.

    `session_id` é o id de correlação gerado no app (idempotência).
    """

    session_id: str = Field(..., min_length=1, max_length=128)
    start_time: datetime
    end_time: datetime
    duration: int = Field(..., ge=0)
    ip_address: Optional[str] = Field(default=None, max_length=64)
    ssid: Optional[str] = Field(default=None, max_length=255)
    bssid: Optional[str] = Field(default=None, max_length=64)

    @field_validator("session_id")
    @classmethod
    def _strip_session_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("session_id não pode ser vazio")
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def _to_utc_naive(cls, v: datetime) -> datetime:
        return normalize_utc_naive(v)

    @model_validator(mode="after")
    def _check_interval(self) -> "BackgroundSyncRequest":
        if self.end_time <= self.start_time:
            raise ValueError("end_time deve ser posterior a start_time")
        if not (self.ip_address or self.bssid):
            raise ValueError("informe ip_address ou bssid")
        return self


class BackgroundSyncResult(BaseModel):
    message: str
    already_synced: bool
    points_earned: int
    session: WifiSessionRead
