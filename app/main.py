# app/main.py
import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.deps import get_wifi_manager
from app.api.v1.api import api_router
from app.core.config import settings
from app.db.session import init_db
from app.services.wifi_reconciler import WifiReconciler

logger = logging.getLogger("unitree.main")

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
)
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_cleanup_task: asyncio.Task | None = None


@app.on_event("startup")
async def on_startup() -> None:
    global _cleanup_task

    await init_db()

    # varredura de sessões abandonadas
    if settings.WIFI_CLEANUP_ENABLED:
        logger.info("Starting WiFi session cleanup task...")
        reconciler = WifiReconciler(get_wifi_manager())
        _cleanup_task = asyncio.create_task(
            reconciler.run_loop(interval_minutes=settings.WIFI_CLEANUP_INTERVAL_MINUTES),
            name="wifi_session_cleanup",
        )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    global _cleanup_task

    if _cleanup_task:
        logger.info("Stopping WiFi session cleanup task...")
        _cleanup_task.cancel()
        try:
            await _cleanup_task
        except asyncio.CancelledError:
            logger.info("WiFi session cleanup task cancelled")
        _cleanup_task = None


@app.get("/health", tags=["health"])
async def healthcheck():
    return {"status": "ok"}


app.include_router(api_router, prefix="/api/v1")
