import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from routes.destination_route import router as destination_router
from routes.image_feed_ws import router as image_feed_router
from routes.image_route import router as image_router
from services.destination_store import DestinationStore
from utils.database_init import AsyncDatabaseInitializer

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the SQLite image catalog (kept across restarts, at DATABASE_DIR/travelupa.db)
      - the in-memory destination list
    and attach them to `app.state`.
    """
    db_initializer = AsyncDatabaseInitializer()
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer

    app.state.destination_store = DestinationStore()

    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(lifespan=lifespan)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that verifies the image catalog handle is present.
        """
        has_db = hasattr(request.app.state, "db_initializer")
        return {"ok": True, "db_initialized": has_db}

    # Register application routers
    app.include_router(image_router)
    app.include_router(image_feed_router)
    app.include_router(destination_router)

    return app


app = create_app()
