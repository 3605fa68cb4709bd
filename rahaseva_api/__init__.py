"""
Top‑level package for the RahaSeva API.

All functionality lives in ``rahaseva_api.app``; the ASGI application
is ``rahaseva_api.app.main:app``.
"""

__all__ = []
