from app.db.base_class import Base  # noqa

from app.models.user import User  # noqa
from app.models.wifi_session import WifiSession  # noqa
from app.models.point_transaction import PointTransaction  # noqa

__all__ = [
    "Base",
    "User",
    "WifiSession",
    "PointTransaction",
]
