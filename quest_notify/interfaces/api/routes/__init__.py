from fastapi import FastAPI

from .device_tokens import router as device_tokens_router
from .events import router as events_router
from .notifications import router as notifications_router
from .preferences import router as preferences_router
from .tasks import router as tasks_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(events_router)
    app.include_router(notifications_router)
    app.include_router(preferences_router)
    app.include_router(device_tokens_router)
    app.include_router(tasks_router)
