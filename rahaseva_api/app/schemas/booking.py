"""Payloads for creating bookings, changing their status and leaving feedback."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class BookingCreate(BaseModel):
    provider_id: Optional[str] = None
    service_type: Optional[str] = None
    problem_description: Optional[str] = None
    urgency: str = "normal"
    booking_type: Optional[str] = None
    location: Optional[str] = Field(default=None, description="Address where the service is needed")
    coordinates: Optional[List[float]] = Field(default=None, description="[longitude, latitude]")
    requested_date: Optional[datetime] = None
    requested_time: Optional[str] = None
    base_amount: Optional[float] = Field(default=None, gt=0)
    estimated_duration: Optional[str] = None
    payment_method: str = "cash"
    notes: Optional[str] = None


class BookingStatusUpdate(BaseModel):
    status: str
    reason: Optional[str] = None


class BookingFeedbackCreate(BaseModel):
    rating: Optional[int] = None
    review: Optional[str] = Field(default=None, max_length=500)
