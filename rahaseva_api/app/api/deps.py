"""Shared dependencies for API routes."""

from fastapi import Request

from rahaseva_api.app.core.config import Settings
from rahaseva_api.app.store import DocumentStore


def get_store(request: Request) -> DocumentStore:
    """The store ``DatabaseFallbackMiddleware`` selected for this request."""
    store = getattr(request.state, "store", None)
    if store is None:
        _, store = request.app.state.connection.snapshot()
    return store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
