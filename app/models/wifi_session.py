# app/models/wifi_session.py
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base

if TYPE_CHECKING:
    from app.models.user import User

SOURCE_FOREGROUND = "foreground"
SOURCE_BACKGROUND = "background"


class WifiSession(Base):
    """
    Um intervalo de conexão ao WiFi do campus.

    Aberta: is_active=True, end_time=None, duration=0.
    Fechada: end_time/duration/points_earned preenchidos e is_active=False.
    """

    __tablename__ = "wifi_sessions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # evidência de rede informada pelo cliente
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    ssid: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    bssid: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # evidência de localização
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    location_accuracy: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    location_timestamp: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # duração em segundos (0 enquanto aberta)
    duration: Mapped[int] = mapped_column(
        BigInteger, nullable=False, server_default=text("0"), default=0
    )
    points_earned: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0"), default=0
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("TRUE"),
        default=True,
    )

    # bucket de dia (UTC naive do início da sessão)
    session_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    source: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        server_default=text("'foreground'"),
        default=SOURCE_FOREGROUND,
    )
    # id de correlação do sync em background (idempotência)
    background_session_id: Mapped[Optional[str]] = mapped_column(
        String(128),
        unique=True,
        nullable=True,
    )
    # JSON livre: validation_methods, synced_at, close_reason...
    meta: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
    )

    user: Mapped["User"] = relationship(back_populates="wifi_sessions")

    @property
    def network_key(self) -> Optional[str]:
        """Identificador de rede usado para comparar sessões (BSSID > IP)."""
        key = self.bssid or self.ip_address
        return key.lower() if key else None


Index("ix_wifi_sessions_user_active", WifiSession.user_id, WifiSession.is_active)
Index("ix_wifi_sessions_user_date", WifiSession.user_id, WifiSession.session_date)
Index("ix_wifi_sessions_active_start", WifiSession.is_active, WifiSession.start_time)
# no máximo uma sessão ativa por usuário
Index(
    "uq_wifi_sessions_one_active_per_user",
    WifiSession.user_id,
    unique=True,
    postgresql_where=WifiSession.is_active.is_(True),
    sqlite_where=WifiSession.is_active.is_(True),
)
