"""
Live document store backed by a SQLite file.

Each document is one row of the ``documents`` table with its JSON body
in ``data``.  Filtering happens in Python after loading a collection,
which is adequate for the data volumes of a single marketplace
deployment.  ``next_sequence`` runs inside ``BEGIN IMMEDIATE`` so two
processes sharing the file never hand out the same number.
"""

import json
import logging
import sqlite3
import uuid
from typing import Any, Dict, List, Optional

from rahaseva_api.app.core.db import get_connection, get_cursor, get_database_path, init_db

from .base import DocumentStore, Filter, matches, utcnow_iso

logger = logging.getLogger(__name__)


class SQLiteDocumentStore(DocumentStore):
    """Document store persisting JSON documents in SQLite."""

    name = "sqlite"

    def __init__(self, database_url: str) -> None:
        self.path = get_database_path(database_url)

    def open(self) -> None:
        """Create the schema if needed.  Raises ``sqlite3.Error`` when unreachable."""
        version = init_db(self.path)
        logger.info("SQLite store ready at %s (schema v%s)", self.path, version)

    def ping(self) -> None:
        with get_cursor(self.path) as cursor:
            cursor.execute("SELECT 1")

    @staticmethod
    def _load(row: sqlite3.Row) -> Dict[str, Any]:
        document = json.loads(row["data"])
        document["id"] = row["id"]
        return document

    async def find_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with get_cursor(self.path) as cursor:
            row = cursor.execute(
                "SELECT id, data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
        return self._load(row) if row else None

    async def find(self, collection: str, query: Optional[Filter] = None) -> List[Dict[str, Any]]:
        with get_cursor(self.path) as cursor:
            rows = cursor.execute(
                "SELECT id, data FROM documents WHERE collection = ? ORDER BY rowid",
                (collection,),
            ).fetchall()
        documents = (self._load(row) for row in rows)
        return [doc for doc in documents if matches(doc, query)]

    async def insert(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        document = dict(data)
        document["id"] = document.get("id") or uuid.uuid4().hex
        now = utcnow_iso()
        document["created_at"] = document.get("created_at") or now
        document["updated_at"] = document.get("updated_at") or now
        try:
            with get_cursor(self.path) as cursor:
                cursor.execute(
                    "INSERT INTO documents (collection, id, data, created_at, updated_at)"
                    " VALUES (?, ?, ?, ?, ?)",
                    (
                        collection,
                        document["id"],
                        json.dumps(document),
                        document["created_at"],
                        document["updated_at"],
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"Duplicate id {document['id']} in {collection}") from exc
        return document

    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with get_cursor(self.path) as cursor:
            row = cursor.execute(
                "SELECT id, data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
            if row is None:
                return None
            current = self._load(row)
            merged = {**current, **data}
            merged["id"] = doc_id
            merged["created_at"] = current.get("created_at")
            merged["updated_at"] = utcnow_iso()
            cursor.execute(
                "UPDATE documents SET data = ?, updated_at = ? WHERE collection = ? AND id = ?",
                (json.dumps(merged), merged["updated_at"], collection, doc_id),
            )
        return merged

    async def delete(self, collection: str, doc_id: str) -> bool:
        with get_cursor(self.path) as cursor:
            cursor.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            return cursor.rowcount > 0

    async def next_sequence(self, collection: str) -> int:
        conn = get_connection(self.path)
        conn.isolation_level = None
        try:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute("SELECT value FROM counters WHERE collection = ?", (collection,)).fetchone()
            if row is None:
                count = conn.execute(
                    "SELECT COUNT(*) AS total FROM documents WHERE collection = ?",
                    (collection,),
                ).fetchone()
                value = count["total"] + 1
                conn.execute("INSERT INTO counters (collection, value) VALUES (?, ?)", (collection, value))
            else:
                value = row["value"] + 1
                conn.execute("UPDATE counters SET value = ? WHERE collection = ?", (value, collection))
            conn.execute("COMMIT")
            return value
        except sqlite3.Error:
            conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()
