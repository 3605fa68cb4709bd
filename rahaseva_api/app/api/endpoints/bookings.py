"""
Booking endpoints.

``booking_id`` path parameters accept either the store id or the public
``RS...`` booking id.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from rahaseva_api.app.api.deps import get_store
from rahaseva_api.app.core.errors import service_errors
from rahaseva_api.app.core.security import require_user
from rahaseva_api.app.schemas.booking import BookingCreate, BookingFeedbackCreate, BookingStatusUpdate
from rahaseva_api.app.services.booking_service import BookingService
from rahaseva_api.app.store import DocumentStore

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    """Book a helper.  The booking is confirmed immediately."""
    with service_errors():
        booking = await BookingService.create_booking(store, current_user, payload)
    return {"success": True, "message": "Booking created successfully", "booking": booking.summary()}


@router.get("")
async def list_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = Query(None, description="Only bookings in this status"),
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    result = await BookingService.list_bookings(store, current_user, page=page, limit=limit, status=status)
    return {
        "success": True,
        "count": result["count"],
        "page": result["page"],
        "total_pages": result["total_pages"],
        "bookings": [booking.model_dump(mode="json") for booking in result["items"]],
    }


@router.get("/{booking_id}")
async def get_booking(
    booking_id: str = Path(..., description="Store id or public booking id"),
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    """Fetch one booking.  Visible to its customer, its provider and admins."""
    with service_errors():
        booking = await BookingService.get_booking(store, current_user, booking_id)
    return {"success": True, "booking": booking.model_dump(mode="json")}


@router.put("/{booking_id}/status")
async def update_booking_status(
    update: BookingStatusUpdate,
    booking_id: str = Path(...),
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        booking = await BookingService.update_status(store, current_user, booking_id, update)
    return {
        "success": True,
        "message": f"Booking {booking.status} successfully",
        "booking": {"id": booking.id, "status": booking.status, "status_display": booking.status_display},
    }


@router.post("/{booking_id}/feedback")
async def add_booking_feedback(
    feedback: BookingFeedbackCreate,
    booking_id: str = Path(...),
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        await BookingService.add_feedback(store, current_user, booking_id, feedback)
    return {"success": True, "message": "Feedback added successfully"}
