"""Helpers para os campos `meta` (JSON em Text)."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict


def safe_json_load(s: str | None) -> Dict[str, Any]:
    if not s:
        return {}
    try:
        obj = json.loads(s)
        return obj if isinstance(obj, dict) else {}
    except ValueError:
        return {}


def _default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def safe_json_dump(d: Dict[str, Any]) -> str:
    return json.dumps(d, ensure_ascii=False, default=_default)


def merge_meta(current: str | None, **updates: Any) -> str:
    """Mescla `updates` no JSON existente, ignorando valores None."""
    data = safe_json_load(current)
    data.update({k: v for k, v in updates.items() if v is not None})
    return safe_json_dump(data)
