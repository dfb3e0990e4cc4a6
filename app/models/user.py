# app/models/user.py
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base

if TYPE_CHECKING:
    from app.models.point_transaction import PointTransaction
    from app.models.wifi_session import WifiSession


class User(Base):
    """
    Estudante.

    Os campos de pontos/tempo são uma projeção desnormalizada do ledger
    (point_transactions) e das sessões WiFi; podem ser reconstruídos a
    qualquer momento pelo sync de consistência.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    student_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        unique=True,
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("TRUE"),
        default=True,
    )

    # --- pontos (projeção do ledger) ---
    points: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0"), default=0
    )
    all_time_points: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0"), default=0
    )

    # --- tempo conectado, em segundos ---
    total_time_connected: Mapped[int] = mapped_column(
        BigInteger, nullable=False, server_default=text("0"), default=0
    )
    day_time_connected: Mapped[int] = mapped_column(
        BigInteger, nullable=False, server_default=text("0"), default=0
    )
    week_time_connected: Mapped[int] = mapped_column(
        BigInteger, nullable=False, server_default=text("0"), default=0
    )
    month_time_connected: Mapped[int] = mapped_column(
        BigInteger, nullable=False, server_default=text("0"), default=0
    )

    last_day_reset: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_week_reset: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_month_reset: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

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

    wifi_sessions: Mapped[List["WifiSession"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    point_transactions: Mapped[List["PointTransaction"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
