# app/models/__init__.py
from app.models.user import User
from app.models.wifi_session import WifiSession
from app.models.point_transaction import PointTransaction

__all__ = [
    "User",
    "WifiSession",
    "PointTransaction",
]
