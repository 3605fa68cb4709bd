"""
SQLite connection handling and a small migration system.

The live document store keeps every collection in one ``documents``
table (JSON text per row) plus a ``counters`` table used for atomic
per‑collection sequences.  ``init_db`` creates the ``migrations``
table if needed and applies pending migrations in order; to change the
schema append a new ``(version, sql)`` pair to ``MIGRATIONS``.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .config import settings

logger = logging.getLogger(__name__)

MIGRATIONS: List[Tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS documents (
            collection TEXT NOT NULL,
            id TEXT NOT NULL,
            data TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (collection, id)
        );

        CREATE TABLE IF NOT EXISTS counters (
            collection TEXT PRIMARY KEY,
            value INTEGER NOT NULL
        );
        """,
    ),
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_documents_collection_created
            ON documents (collection, created_at);
        """,
    ),
]


def get_database_path(database_url: Optional[str] = None) -> str:
    """Compute the path to the SQLite database file.

    Accepts a bare path or a ``sqlite:///`` URL.  Relative paths are
    resolved against the project root (the directory containing the
    ``rahaseva_api`` package).
    """
    db_url = database_url if database_url is not None else settings.database_url
    if db_url.startswith("sqlite:///"):
        db_url = db_url[len("sqlite:///"):]
    if not db_url:
        raise ValueError("No database path configured")
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / db_url).resolve())


def get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Create and return a new SQLite connection with rows keyed by column name."""
    conn = sqlite3.connect(db_path or get_database_path())
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_cursor(db_path: Optional[str] = None) -> Iterator[sqlite3.Cursor]:
    """Yield a cursor, commit on success and always close the connection."""
    conn = get_connection(db_path)
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


def init_db(db_path: Optional[str] = None) -> int:
    """Initialise the database and apply pending migrations.

    Returns the schema version after migrating.  ``sqlite3.Error`` is
    propagated so callers can treat the store as unreachable.
    """
    path = db_path or get_database_path()
    with get_cursor(path) as cursor:
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS migrations (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        row = cursor.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
        current = row["version"] or 0
        for version, sql in MIGRATIONS:
            if version <= current:
                continue
            cursor.executescript(sql)
            cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
            logger.info("Applied migration %s to %s", version, path)
            current = version
    return current
