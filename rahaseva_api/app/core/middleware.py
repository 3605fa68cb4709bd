"""
HTTP middleware: request logging and database fallback stamping.
"""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.exception("%s %s failed after %.1fms", request.method, request.url.path, elapsed_ms)
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("%s %s -> %s (%.1fms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response


class DatabaseFallbackMiddleware(BaseHTTPMiddleware):
    """Stamp each request with the connectivity mode it will be served in.

    Sets ``request.state.is_db_connected`` and ``request.state.store``
    (the selected ``DocumentStore``).  When disconnected the mock store
    is additionally exposed as ``request.state.mock_store``.
    """

    async def dispatch(self, request: Request, call_next):
        connected, store = request.app.state.connection.snapshot()
        request.state.is_db_connected = connected
        request.state.store = store
        if not connected:
            request.state.mock_store = store
        return await call_next(request)
