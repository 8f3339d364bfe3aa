import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import pymongo
from pymongo.database import Database
from pymongo.errors import PyMongoError

import auth
import campaigns
import categories
from config import Settings, configure_logging, get_settings
from database import SHORT_TIMEOUT, connect, ensure_indexes
from errors import setup_exception_handlers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    owns_client = app.state.db is None
    if owns_client:
        app.state.db = connect(settings)
    try:
        ensure_indexes(app.state.db)
    except PyMongoError as e:
        # The API still starts; store-backed endpoints will answer 500
        logger.error("Could not create indexes: %s", e)
    logger.info("E-commerce API started")
    try:
        yield
    finally:
        if owns_client:
            app.state.db.client.close()
        logger.info("Shutdown complete")


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application.

    Pass ``database`` to run against an existing handle (tests use an
    in-memory one); otherwise the lifespan connects using ``settings``.
    """
    if settings is None:
        settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="E-commerce API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(categories.router)
    app.include_router(campaigns.category_router)
    app.include_router(campaigns.router)

    @app.get("/")
    def read_root():
        return {"message": "E-commerce API ready"}

    @app.get("/health", tags=["System"])
    def health(request: Request):
        response = {"status": "ok", "database": "unavailable"}
        try:
            with pymongo.timeout(SHORT_TIMEOUT):
                request.app.state.db.command("ping")
            response["database"] = "connected"
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e)[:80])
        return response

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
