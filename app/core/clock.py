# app/core/clock.py
"""
Relógio e fronteiras de período (dia/semana/mês).

Tudo que é persistido usa UTC *naive* (sem tzinfo), compatível com
TIMESTAMP WITHOUT TIME ZONE e com SQLite. As fronteiras de período são
calculadas no calendário local (settings.PERIOD_TIMEZONE) e convertidas
de volta para UTC naive antes de comparar com o banco.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable
from zoneinfo import ZoneInfo

from app.core.config import settings

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_utc_naive(dt: datetime | None) -> datetime | None:
    """Converte datetime aware para UTC naive (remove tzinfo)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def elapsed_seconds(start: datetime, end: datetime) -> int:
    return max(0, int((end - start).total_seconds()))


@dataclass(frozen=True)
class PeriodStarts:
    day: datetime
    week: datetime
    month: datetime


def period_starts(now: datetime, tz_name: str | None = None) -> PeriodStarts:
    """
    Início do dia, da semana (domingo) e do mês que contêm `now`.

    `now` é UTC naive; o retorno também.
    """
    tz = ZoneInfo(tz_name or settings.PERIOD_TIMEZONE)
    local_now = now.replace(tzinfo=timezone.utc).astimezone(tz)

    day_local = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    # weekday(): segunda=0 ... domingo=6 -> dias desde o último domingo
    days_since_sunday = (day_local.weekday() + 1) % 7
    week_local = day_local - timedelta(days=days_since_sunday)
    month_local = day_local.replace(day=1)

    def _to_utc_naive(dt: datetime) -> datetime:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)

    return PeriodStarts(
        day=_to_utc_naive(day_local),
        week=_to_utc_naive(week_local),
        month=_to_utc_naive(month_local),
    )
