# app/crud/__init__.py
from app.crud.user import user
from app.crud.wifi_session import wifi_session
from app.crud.point_transaction import point_transaction

__all__ = [
    "user",
    "wifi_session",
    "point_transaction",
]
