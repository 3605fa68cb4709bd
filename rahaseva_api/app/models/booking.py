"""
Bookings of a helper by a user.

``booking_id`` is the human readable identifier (``RS...``) shown to
customers; it is assigned on first save and never changes.  The
``status`` field only moves through ``BOOKING_STATUS``.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, computed_field

from .base import Document

ServiceType = Literal["plumber", "electrician", "carpenter", "doctor", "emergency", "other"]
BookingType = Literal["In-Person Visit", "Video Consultation", "Emergency Call"]
BookingStatus = Literal["pending", "confirmed", "in-progress", "completed", "cancelled", "refunded"]
PaymentMethod = Literal["cash", "upi", "card", "wallet", "coins"]
PaymentStatus = Literal["pending", "paid", "refunded", "failed"]

BOOKING_STATUS_DISPLAY = {
    "pending": "Pending Confirmation",
    "confirmed": "Confirmed",
    "in-progress": "In Progress",
    "completed": "Completed",
    "cancelled": "Cancelled",
    "refunded": "Refunded",
}


class ServiceDetails(BaseModel):
    service_type: ServiceType
    problem_description: str = Field(..., max_length=1000)
    urgency: Literal["normal", "urgent", "emergency"] = "normal"
    estimated_duration: Optional[str] = None


class GeoLocation(BaseModel):
    address: str
    # [longitude, latitude]
    coordinates: List[float] = Field(default_factory=list)


class Schedule(BaseModel):
    requested_date: datetime
    requested_time: str
    confirmed_date: Optional[datetime] = None
    confirmed_time: Optional[str] = None
    completed_at: Optional[datetime] = None


class Pricing(BaseModel):
    base_amount: float
    additional_charges: float = 0
    discount: float = 0
    total_amount: float
    currency: str = "INR"


class Payment(BaseModel):
    method: PaymentMethod = "cash"
    status: PaymentStatus = "pending"
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None


class BookingCommunication(BaseModel):
    provider_phone: Optional[str] = None
    user_phone: Optional[str] = None
    meeting_link: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class BookingFeedback(BaseModel):
    user_rating: Optional[int] = Field(default=None, ge=1, le=5)
    user_review: Optional[str] = Field(default=None, max_length=500)
    provider_rating: Optional[int] = Field(default=None, ge=1, le=5)
    provider_review: Optional[str] = Field(default=None, max_length=500)


class Cancellation(BaseModel):
    cancelled_by: Optional[Literal["user", "provider", "admin"]] = None
    reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    refund_amount: float = 0


class Booking(Document):
    collection = "bookings"
    public_id_field = "booking_id"
    public_id_prefix = "RS"

    booking_id: Optional[str] = None
    user: str
    provider: str
    service_details: ServiceDetails
    booking_type: BookingType = "In-Person Visit"
    location: GeoLocation
    schedule: Schedule
    pricing: Pricing
    payment: Payment = Field(default_factory=Payment)
    status: BookingStatus = "pending"
    communication: BookingCommunication = Field(default_factory=BookingCommunication)
    feedback: BookingFeedback = Field(default_factory=BookingFeedback)
    cancellation: Cancellation = Field(default_factory=Cancellation)

    @computed_field
    @property
    def formatted_date(self) -> Optional[str]:
        stamp = self.created_at or datetime.now(timezone.utc)
        return stamp.date().isoformat()

    @computed_field
    @property
    def status_display(self) -> str:
        return BOOKING_STATUS_DISPLAY.get(self.status, self.status)

    def actor_for(self, claim: dict) -> Optional[str]:
        """Role the caller plays on this booking, or ``None`` for outsiders."""
        if claim.get("role") == "admin":
            return "admin"
        if claim.get("id") == self.user:
            return "user"
        if claim.get("id") == self.provider:
            return "provider"
        return None

    def summary(self) -> dict:
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "service": self.service_details.service_type,
            "date": self.formatted_date,
            "status": self.status_display,
            "amount": f"₹{self.pricing.total_amount:g}",
            "type": self.booking_type,
        }
