# app/models/point_transaction.py
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base

if TYPE_CHECKING:
    from app.models.user import User

# Tipos de transação
WIFI_SESSION = "WIFI_SESSION"
TREE_REDEMPTION = "TREE_REDEMPTION"


class PointTransaction(Base):
    """
    Entrada do ledger de pontos (imutável).

    amount > 0 = ganho, amount < 0 = gasto. Para WIFI_SESSION, a chave
    (user_id, session_start_time, session_end_time) identifica o intervalo
    creditado e é única.
    """

    __tablename__ = "point_transactions"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "type",
            "session_start_time",
            "session_end_time",
            name="uq_point_transactions_session_interval",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)

    # só preenchidos para WIFI_SESSION (NULL não conflita na unique)
    session_start_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    session_end_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # JSON: start_time, end_time, duration, description, background_session_id
    meta: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    user: Mapped["User"] = relationship(back_populates="point_transactions")


Index(
    "ix_point_transactions_user_created",
    PointTransaction.user_id,
    PointTransaction.created_at,
)
