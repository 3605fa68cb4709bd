"""
In‑memory document store used when no live database is connected.

Every method is a coroutine so callers cannot tell it apart from the
live store.  Documents are deep‑copied on the way in and out, which
keeps handlers from mutating stored state by accident.  A lock guards
mutations and sequences so concurrent requests served from worker
threads see consistent data.
"""

import copy
import logging
import threading
import uuid
from typing import Any, Dict, List, Optional

from .base import DocumentStore, Filter, matches, utcnow_iso
from .seed import default_collections

logger = logging.getLogger(__name__)


class MockDataStore(DocumentStore):
    """Process‑local store seeded with demo data."""

    name = "mock-data"

    def __init__(self, seed: bool = True) -> None:
        self._lock = threading.RLock()
        self.collections: Dict[str, List[Dict[str, Any]]] = {}
        self._sequences: Dict[str, int] = {}
        self._seed = seed
        self.reset()

    def reset(self) -> None:
        """Drop all changes and reload the demo data (or nothing if unseeded)."""
        with self._lock:
            self.collections = default_collections() if self._seed else {}
            self._sequences = {}
        logger.debug("Mock data store reset (seeded=%s)", self._seed)

    def _collection(self, name: str) -> List[Dict[str, Any]]:
        return self.collections.setdefault(name, [])

    def _index_of(self, collection: str, doc_id: str) -> Optional[int]:
        for index, document in enumerate(self._collection(collection)):
            if document.get("id") == doc_id:
                return index
        return None

    async def find_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            index = self._index_of(collection, doc_id)
            if index is None:
                return None
            return copy.deepcopy(self._collection(collection)[index])

    async def find(self, collection: str, query: Optional[Filter] = None) -> List[Dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(doc) for doc in self._collection(collection) if matches(doc, query)]

    async def insert(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        document = copy.deepcopy(data)
        document["id"] = document.get("id") or f"mock_{uuid.uuid4().hex}"
        now = utcnow_iso()
        document["created_at"] = document.get("created_at") or now
        document["updated_at"] = document.get("updated_at") or now
        with self._lock:
            if self._index_of(collection, document["id"]) is not None:
                raise ValueError(f"Duplicate id {document['id']} in {collection}")
            self._collection(collection).append(document)
        return copy.deepcopy(document)

    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            index = self._index_of(collection, doc_id)
            if index is None:
                return None
            current = self._collection(collection)[index]
            merged = {**current, **copy.deepcopy(data)}
            merged["id"] = doc_id
            merged["created_at"] = current.get("created_at")
            merged["updated_at"] = utcnow_iso()
            self._collection(collection)[index] = merged
            return copy.deepcopy(merged)

    async def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            index = self._index_of(collection, doc_id)
            if index is None:
                return False
            del self._collection(collection)[index]
            return True

    async def next_sequence(self, collection: str) -> int:
        with self._lock:
            current = self._sequences.get(collection)
            if current is None:
                current = len(self._collection(collection))
            current += 1
            self._sequences[collection] = current
            return current
