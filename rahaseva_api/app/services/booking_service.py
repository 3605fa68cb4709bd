"""
Business logic for bookings.

The ``BookingService`` creates bookings against helper accounts, lists
and fetches them for the people involved, moves them through the
booking state machine and records customer feedback.  Side effects of
a status change (cancellation details, completion counters, reward
coins and wallet points) are applied here, in one place, after the
transition has been validated.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from rahaseva_api.app.models import Booking, User, Wallet
from rahaseva_api.app.models.booking import (
    BookingCommunication,
    GeoLocation,
    Payment,
    Pricing,
    Schedule,
    ServiceDetails,
)
from rahaseva_api.app.models.transitions import BOOKING_STATUS
from rahaseva_api.app.schemas.booking import BookingCreate, BookingFeedbackCreate, BookingStatusUpdate
from rahaseva_api.app.store import DocumentStore
from rahaseva_api.app.store.seed import DEFAULT_COORDINATES

logger = logging.getLogger(__name__)

COMPLETION_COINS = 10
DEFAULT_REQUESTED_TIME = "10:00"


def paginate(items: list, page: int, limit: int) -> Dict[str, Any]:
    page = max(page, 1)
    limit = max(limit, 1)
    start = (page - 1) * limit
    return {
        "count": len(items),
        "page": page,
        "total_pages": (len(items) + limit - 1) // limit,
        "items": items[start:start + limit],
    }


class BookingService:
    """Service for managing bookings."""

    @classmethod
    async def resolve(cls, store: DocumentStore, booking_id: str) -> Booking:
        """Find a booking by store id or by its public ``RS...`` id."""
        booking = await Booking.get(store, booking_id)
        if booking is None:
            booking = await Booking.find_one(store, booking_id=booking_id)
        if booking is None:
            raise LookupError("Booking not found")
        return booking

    @classmethod
    async def create_booking(cls, store: DocumentStore, current_user: Dict[str, Any], payload: BookingCreate) -> Booking:
        """Create a booking for the caller with the given helper.

        New bookings are confirmed straight away and both parties'
        ``total_bookings`` counters are incremented.  Raises
        ``ValueError`` for missing fields and ``LookupError`` when the
        provider (a ``helper`` account) or the caller does not exist.
        """
        if not (
            payload.provider_id
            and payload.service_type
            and payload.problem_description
            and payload.booking_type
            and payload.location
        ):
            raise ValueError("Missing required fields")

        provider = await User.get(store, payload.provider_id)
        if provider is None or not provider.is_helper:
            raise LookupError("Service provider not found")
        user = await User.get(store, current_user["id"])
        if user is None:
            raise LookupError("User not found")

        amount = payload.base_amount or provider.price_per_hour
        if not amount:
            raise ValueError("Booking amount is required")

        booking = Booking(
            user=user.id,
            provider=provider.id,
            service_details=ServiceDetails(
                service_type=payload.service_type,
                problem_description=payload.problem_description,
                urgency=payload.urgency,
                estimated_duration=payload.estimated_duration,
            ),
            booking_type=payload.booking_type,
            location=GeoLocation(
                address=payload.location,
                coordinates=payload.coordinates or list(DEFAULT_COORDINATES),
            ),
            schedule=Schedule(
                requested_date=payload.requested_date or datetime.now(timezone.utc),
                requested_time=payload.requested_time or DEFAULT_REQUESTED_TIME,
            ),
            pricing=Pricing(base_amount=amount, total_amount=amount),
            payment=Payment(method=payload.payment_method),
            communication=BookingCommunication(
                provider_phone=provider.phone,
                user_phone=user.phone,
                notes=payload.notes,
            ),
            status="confirmed",
        )
        await booking.save(store)

        user.total_bookings += 1
        await user.save(store)
        provider.total_bookings += 1
        await provider.save(store)

        logger.info("Booking %s created by %s with provider %s", booking.booking_id, user.id, provider.id)
        return booking

    @classmethod
    async def list_bookings(
        cls,
        store: DocumentStore,
        current_user: Dict[str, Any],
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Bookings the caller made or, for helpers, received; newest first."""
        field = "provider" if current_user.get("role") == "helper" else "user"
        query: Dict[str, Any] = {field: current_user["id"]}
        if status:
            query["status"] = status
        bookings = await Booking.find(store, **query)
        bookings.sort(key=lambda b: b.created_at or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
        return paginate(bookings, page, limit)

    @classmethod
    async def get_booking(cls, store: DocumentStore, current_user: Dict[str, Any], booking_id: str) -> Booking:
        booking = await cls.resolve(store, booking_id)
        if booking.actor_for(current_user) is None:
            raise PermissionError("Not authorized to view this booking")
        return booking

    @classmethod
    async def update_status(
        cls,
        store: DocumentStore,
        current_user: Dict[str, Any],
        booking_id: str,
        update: BookingStatusUpdate,
    ) -> Booking:
        """Move a booking to ``update.status`` if the state machine allows it."""
        booking = await cls.resolve(store, booking_id)
        actor = booking.actor_for(current_user)
        if actor is None:
            raise PermissionError("Not authorized")
        BOOKING_STATUS.check(booking.status, update.status, actor)

        previous = booking.status
        booking.status = update.status
        now = datetime.now(timezone.utc)

        if update.status == "confirmed":
            booking.schedule.confirmed_date = now
            booking.schedule.confirmed_time = now.strftime("%H:%M")
        elif update.status == "cancelled":
            booking.cancellation.cancelled_by = actor
            booking.cancellation.reason = update.reason or "No reason provided"
            booking.cancellation.cancelled_at = now
        elif update.status == "completed":
            booking.schedule.completed_at = now
            await cls._reward_completion(store, booking)
        elif update.status == "refunded":
            booking.payment.status = "refunded"
            booking.cancellation.refund_amount = booking.pricing.total_amount

        await booking.save(store)
        logger.info("Booking %s moved %s -> %s by %s", booking.booking_id, previous, booking.status, actor)
        return booking

    @classmethod
    async def _reward_completion(cls, store: DocumentStore, booking: Booking) -> None:
        user = await User.get(store, booking.user)
        if user is not None:
            user.completed_bookings += 1
            user.coins_earned += COMPLETION_COINS
            await user.save(store)
        provider = await User.get(store, booking.provider)
        if provider is not None:
            provider.completed_bookings += 1
            await provider.save(store)

        wallet = await Wallet.find_one(store, user=booking.user)
        if wallet is None:
            wallet = Wallet(user=booking.user)
        points = wallet.add_booking_points(booking.pricing.total_amount, booking.booking_id)
        await wallet.save(store)
        logger.debug("Awarded %s points for booking %s", points, booking.booking_id)

    @classmethod
    async def add_feedback(
        cls,
        store: DocumentStore,
        current_user: Dict[str, Any],
        booking_id: str,
        feedback: BookingFeedbackCreate,
    ) -> Booking:
        if feedback.rating is None or not 1 <= feedback.rating <= 5:
            raise ValueError("Rating must be between 1 and 5")
        booking = await cls.resolve(store, booking_id)
        if booking.user != current_user["id"]:
            raise PermissionError("Not authorized")
        if booking.status != "completed":
            raise ValueError("Can only rate completed bookings")

        previous_rating = booking.feedback.user_rating
        booking.feedback.user_rating = feedback.rating
        booking.feedback.user_review = feedback.review or ""
        await booking.save(store)

        provider = await User.get(store, booking.provider)
        if provider is not None:
            provider.add_rating(feedback.rating, replaces=previous_rating)
            await provider.save(store)
        return booking
