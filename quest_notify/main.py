from contextlib import asynccontextmanager

from fastapi import FastAPI

from quest_notify.infrastructure.database import engine, initialize_database
from quest_notify.interfaces.api.routes import register_routes



@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database on startup and release resources on shutdown."""

    initialize_database()
    yield
    engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(title="Quest Notify", lifespan=lifespan)
    register_routes(app)
    return app


app = create_app()
