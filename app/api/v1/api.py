# app/api/v1/api.py
from fastapi import APIRouter

from app.api.routes import points, wifi

api_router = APIRouter()

api_router.include_router(
    wifi.router,
    prefix="/wifi",
    tags=["wifi"],
)
api_router.include_router(
    points.router,
    prefix="/points",
    tags=["points"],
)
