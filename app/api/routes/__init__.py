from app.api.routes import points
from app.api.routes import wifi

__all__ = [
    "points",
    "wifi",
]
