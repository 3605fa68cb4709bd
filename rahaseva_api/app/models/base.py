"""
Base class for persisted documents.

A ``Document`` is a pydantic model bound to a store collection.  Fields
declared with ``computed_field`` are the read‑time *virtuals*: they are
part of ``model_dump`` (and therefore of API responses) but are left
out of ``to_document`` so they are never persisted.

Documents with a public identifier name it in ``public_id_field``.  It
is assigned exactly once, right before the first insert, as
``prefix + epoch milliseconds + 4‑digit sequence`` where the sequence
comes from the store's atomic ``next_sequence``.  Later saves update
the stored record and never touch the identifier.
"""

import time
from datetime import datetime
from typing import Any, ClassVar, Dict, Optional, Type, TypeVar

from pydantic import BaseModel

from rahaseva_api.app.store import DocumentStore

D = TypeVar("D", bound="Document")


def format_public_id(prefix: str, sequence: int, millis: Optional[int] = None) -> str:
    if millis is None:
        millis = time.time_ns() // 1_000_000
    return f"{prefix}{millis}{sequence:04d}"


class Document(BaseModel):
    """A record stored in ``collection`` of a ``DocumentStore``."""

    model_config = {"from_attributes": True, "extra": "ignore"}

    collection: ClassVar[str] = ""
    public_id_field: ClassVar[Optional[str]] = None
    public_id_prefix: ClassVar[str] = ""

    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def public_id(self) -> Optional[str]:
        if self.public_id_field is None:
            return None
        return getattr(self, self.public_id_field)

    def to_document(self) -> Dict[str, Any]:
        """JSON‑compatible representation without virtual fields."""
        return self.model_dump(mode="json", exclude=set(type(self).model_computed_fields))

    @classmethod
    def from_document(cls: Type[D], data: Dict[str, Any]) -> D:
        return cls.model_validate(data)

    @classmethod
    async def get(cls: Type[D], store: DocumentStore, doc_id: str) -> Optional[D]:
        data = await store.find_by_id(cls.collection, doc_id)
        return cls.from_document(data) if data else None

    @classmethod
    async def find_one(cls: Type[D], store: DocumentStore, **query: Any) -> Optional[D]:
        data = await store.find_one(cls.collection, query)
        return cls.from_document(data) if data else None

    @classmethod
    async def find(cls: Type[D], store: DocumentStore, **query: Any) -> list:
        return [cls.from_document(data) for data in await store.find(cls.collection, query)]

    async def assign_public_id(self, store: DocumentStore) -> None:
        if self.public_id_field is None or self.public_id:
            return
        sequence = await store.next_sequence(self.collection)
        setattr(self, self.public_id_field, format_public_id(self.public_id_prefix, sequence))

    async def before_save(self, store: DocumentStore) -> None:
        """Hook for subclasses; runs before every save."""

    async def save(self: D, store: DocumentStore) -> D:
        await self.before_save(store)
        if self.id is None:
            await self.assign_public_id(store)
            stored = await store.insert(self.collection, self.to_document())
        else:
            stored = await store.update(self.collection, self.id, self.to_document())
            if stored is None:
                raise LookupError(f"{type(self).__name__} {self.id} no longer exists")
        refreshed = self.from_document(stored)
        self.id = refreshed.id
        self.created_at = refreshed.created_at
        self.updated_at = refreshed.updated_at
        return self
