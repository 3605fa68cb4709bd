"""
Database connectivity state and the connect/retry routine.

``ConnectionState`` is created once per application and kept on
``app.state.connection``.  It holds the connected flag behind a lock
and is changed only through the three lifecycle events
``on_connected``, ``on_disconnected`` and ``on_error``.  Requests read
it once, through ``snapshot``, and keep the mode they got for their
whole lifetime.
"""

import asyncio
import logging
import sqlite3
import threading
from typing import Any, Dict, Optional, Tuple

from rahaseva_api.app.store import DocumentStore, MockDataStore, SQLiteDocumentStore

from .config import Settings

logger = logging.getLogger(__name__)


class ConnectionState:
    """Guarded connectivity flag plus the two stores it selects between."""

    def __init__(self, mock_store: Optional[MockDataStore] = None) -> None:
        self._lock = threading.Lock()
        self._connected = False
        self._last_error: Optional[str] = None
        self.live_store: Optional[DocumentStore] = None
        self.mock_store = mock_store if mock_store is not None else MockDataStore()

    @property
    def is_connected(self) -> bool:
        with self._lock:
            return self._connected

    def on_connected(self, store: DocumentStore) -> None:
        with self._lock:
            self.live_store = store
            self._connected = True
            self._last_error = None
        logger.info("Database connected, serving from %s", store.name)

    def on_disconnected(self) -> None:
        with self._lock:
            was_connected = self._connected
            self._connected = False
        if was_connected:
            logger.warning("Database disconnected, falling back to mock data")

    def on_error(self, exc: BaseException) -> None:
        with self._lock:
            self._connected = False
            self._last_error = str(exc)
        logger.error("Database connection error: %s", exc)

    def snapshot(self) -> Tuple[bool, DocumentStore]:
        """Return the flag and the store it selects, read atomically."""
        with self._lock:
            if self._connected and self.live_store is not None:
                return True, self.live_store
            return False, self.mock_store

    def status(self) -> Dict[str, Any]:
        connected, store = self.snapshot()
        with self._lock:
            last_error = self._last_error
        return {
            "is_connected": connected,
            "status": "connected" if connected else "disconnected",
            "using": store.name,
            "last_error": last_error,
        }


def open_live_store(state: ConnectionState, settings: Settings) -> bool:
    """Try once to open the configured SQLite store.

    Emits ``on_connected`` or ``on_error`` and returns whether it worked.
    """
    try:
        store = SQLiteDocumentStore(settings.database_url)
        store.open()
    except sqlite3.Error as exc:
        state.on_error(exc)
        return False
    state.on_connected(store)
    return True


async def connect_with_retry(state: ConnectionState, settings: Settings, sleep=asyncio.sleep) -> bool:
    """Retry ``open_live_store`` with exponential backoff.

    Meant to run as a background task after the first attempt failed at
    startup.  Waits ``base_delay * 2 ** n`` seconds before attempt
    ``n + 1`` and gives up after ``db_max_retry_attempts`` attempts in
    total, leaving the service on mock data.
    """
    for attempt in range(1, settings.db_max_retry_attempts):
        delay = settings.db_retry_base_delay * 2 ** attempt
        logger.info(
            "Retrying database connection in %.1fs (attempt %s/%s)",
            delay,
            attempt + 1,
            settings.db_max_retry_attempts,
        )
        await sleep(delay)
        if open_live_store(state, settings):
            return True
    logger.error(
        "Giving up on the database after %s attempts; continuing with mock data",
        settings.db_max_retry_attempts,
    )
    return False
