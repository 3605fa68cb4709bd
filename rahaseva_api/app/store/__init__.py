"""
Document stores.

``DocumentStore`` is the single persistence interface used by the
services.  ``SQLiteDocumentStore`` backs it with a database file and
``MockDataStore`` with seeded in‑memory data for when the database is
not connected.
"""

from .base import DocumentStore  # noqa: F401
from .mock import MockDataStore  # noqa: F401
from .sqlite import SQLiteDocumentStore  # noqa: F401
