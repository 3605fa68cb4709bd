"""
Main entrypoint for the RahaSeva API.

``create_app`` assembles the FastAPI application: logging, the
connectivity state, middleware, error handlers and the ``/api``
routers.  The module level ``app`` makes it easy to serve with uvicorn::

    uvicorn rahaseva_api.app.main:app --reload

On startup the live SQLite store is opened if ``DATABASE_URL`` is
configured.  Until it is connected (or if it never is) requests are
served from the in‑memory mock store.
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .api.router import router as api_router
from .core.config import Settings, settings as default_settings
from .core.connectivity import ConnectionState, connect_with_retry, open_live_store
from .core.errors import register_exception_handlers
from .core.logging_config import setup_logging
from .core.middleware import DatabaseFallbackMiddleware, RequestLoggingMiddleware
from .store import MockDataStore

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None, mock_store: Optional[MockDataStore] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    app_settings : Optional[Settings]
        Settings to use instead of the environment‑derived defaults.
    mock_store : Optional[MockDataStore]
        Mock store to fall back to; a freshly seeded one by default.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    app_settings = app_settings or default_settings
    setup_logging(app_settings.log_level, app_settings.log_file or None)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        connection: ConnectionState = app.state.connection
        retry_task = None
        if app_settings.uses_default_secret:
            logger.warning("JWT_SECRET is not set; signing tokens with the development fallback secret")
        if not app_settings.database_url:
            logger.info("DATABASE_URL not set; serving requests from mock data")
        elif not open_live_store(connection, app_settings) and app_settings.db_max_retry_attempts > 1:
            retry_task = asyncio.create_task(connect_with_retry(connection, app_settings))
        try:
            yield
        finally:
            if retry_task is not None:
                retry_task.cancel()
                with suppress(asyncio.CancelledError):
                    await retry_task
            connection.on_disconnected()

    app = FastAPI(
        title=app_settings.project_name,
        version=app_settings.api_version,
        debug=app_settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.connection = ConnectionState(mock_store=mock_store)

    app.add_middleware(DatabaseFallbackMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    @app.get("/health", tags=["system"])
    async def health(request: Request) -> dict:
        return {"status": "ok", "database": request.app.state.connection.status()}

    @app.get("/", tags=["system"])
    async def root(request: Request) -> dict:
        db = request.app.state.connection.status()
        return {
            "message": f"Welcome to {app_settings.project_name}",
            "version": app_settings.api_version,
            "database": db["status"],
            "using": db["using"],
        }

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
