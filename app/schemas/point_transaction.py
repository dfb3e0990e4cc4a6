# app/schemas/point_transaction.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.utils.meta import safe_json_load


class PointTransactionRead(BaseModel):
    id: int
    user_id: int
    amount: int
    type: str
    session_start_time: Optional[datetime] = None
    session_end_time: Optional[datetime] = None
    meta: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("meta", mode="before")
    @classmethod
    def _parse_meta(cls, v: Any) -> Dict[str, Any]:
        if isinstance(v, dict):
            return v
        return safe_json_load(v)


class PointsSummary(BaseModel):
    points: int
    all_time_points: int
    transactions: List[PointTransactionRead]
