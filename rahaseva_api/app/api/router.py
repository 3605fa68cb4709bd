"""
Top‑level API router.

Aggregates the domain routers under the ``/api`` prefix applied in
``main.create_app``.  Add new domains here.
"""

from fastapi import APIRouter

from .endpoints import auth, bookings, community, wallet

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
router.include_router(wallet.router, prefix="/wallet", tags=["wallet"])
router.include_router(community.router, prefix="/community", tags=["community"])
