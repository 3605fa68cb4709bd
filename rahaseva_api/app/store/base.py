"""
The document store capability shared by the live and mock backends.

Documents are plain JSON‑compatible dictionaries identified by a
string ``id`` inside a named collection.  Filters are dictionaries of
equality conditions on top‑level keys; a dotted key such as
``"verification.is_verified"`` reaches into nested objects.
"""

import abc
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

Filter = Dict[str, Any]


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _lookup(document: Dict[str, Any], dotted_key: str) -> Any:
    value: Any = document
    for part in dotted_key.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def matches(document: Dict[str, Any], query: Optional[Filter]) -> bool:
    """Return True when ``document`` satisfies every condition in ``query``."""
    if not query:
        return True
    return all(_lookup(document, key) == expected for key, expected in query.items())


class DocumentStore(abc.ABC):
    """Asynchronous keyed document storage.

    Handlers and services depend only on this interface; the
    connectivity layer decides which implementation serves a request.
    """

    #: Reported by ``/health`` as the data source in use.
    name = "abstract"

    @abc.abstractmethod
    async def find_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abc.abstractmethod
    async def find(self, collection: str, query: Optional[Filter] = None) -> List[Dict[str, Any]]:
        """Return matching documents in insertion order."""

    async def find_one(self, collection: str, query: Filter) -> Optional[Dict[str, Any]]:
        found = await self.find(collection, query)
        return found[0] if found else None

    async def list(self, collection: str) -> List[Dict[str, Any]]:
        return await self.find(collection)

    @abc.abstractmethod
    async def insert(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Store a new document, assigning ``id`` and timestamps when absent."""

    @abc.abstractmethod
    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Merge ``data`` into an existing document; ``id`` never changes.

        Returns the stored document or ``None`` if it does not exist.
        """

    @abc.abstractmethod
    async def delete(self, collection: str, doc_id: str) -> bool:
        ...

    @abc.abstractmethod
    async def next_sequence(self, collection: str) -> int:
        """Atomically increment and return the sequence for ``collection``.

        The first call starts from the number of documents already in the
        collection, so sequences continue from pre‑existing data.
        """
