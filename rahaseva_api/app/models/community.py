"""
Community help: volunteers and the help requests they pick up.

Help requests keep an append‑only ``tracking`` log; add entries with
``track`` rather than editing the list.
"""

import math
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, computed_field

from .base import Document
from .booking import GeoLocation

HelpType = Literal[
    "plumber",
    "electrician",
    "carpenter",
    "doctor",
    "emergency",
    "cleaning",
    "painting",
    "mechanic",
    "tutor",
    "gardener",
    "other",
]
HelpStatus = Literal["pending", "searching", "accepted", "in-progress", "completed", "cancelled"]
Urgency = Literal["low", "medium", "high", "critical"]
TrackingActor = Literal["user", "volunteer", "admin"]
Weekday = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

HELP_STATUS_DISPLAY = {
    "pending": "Request Pending",
    "searching": "Looking for Volunteers",
    "accepted": "Volunteer Assigned",
    "in-progress": "Help in Progress",
    "completed": "Help Completed",
    "cancelled": "Request Cancelled",
}

URGENCY_DISPLAY = {
    "low": "Low Priority",
    "medium": "Normal Priority",
    "high": "High Priority",
    "critical": "Critical - Urgent Help Needed",
}

EARTH_RADIUS_KM = 6371.0


def distance_km(a: List[float], b: List[float]) -> float:
    """Great‑circle distance between two ``[longitude, latitude]`` points."""
    lon1, lat1 = map(math.radians, a[:2])
    lon2, lat2 = map(math.radians, b[:2])
    h = math.sin((lat2 - lat1) / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HelpSchedule(BaseModel):
    requested_date: datetime
    requested_time: str = "10:00"
    confirmed_date: Optional[datetime] = None
    confirmed_time: Optional[str] = None
    completed_at: Optional[datetime] = None


class HelpCommunication(BaseModel):
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    notes: Optional[str] = None


class TrackingEntry(BaseModel):
    status: str
    timestamp: datetime = Field(default_factory=_utcnow)
    notes: Optional[str] = None
    updated_by: TrackingActor


class HelpFeedback(BaseModel):
    user_rating: Optional[int] = Field(default=None, ge=1, le=5)
    user_review: Optional[str] = None
    volunteer_rating: Optional[int] = Field(default=None, ge=1, le=5)
    volunteer_review: Optional[str] = None
    review_date: Optional[datetime] = None


class HelpDetails(BaseModel):
    hours_spent: Optional[float] = None
    materials_provided: Optional[str] = None
    additional_people_helped: Optional[int] = None


class CommunityHelpRequest(Document):
    collection = "community_help_requests"
    public_id_field = "request_id"
    public_id_prefix = "CH"

    request_id: Optional[str] = None
    user: str
    volunteer: Optional[str] = None
    help_type: HelpType
    description: str = Field(..., max_length=1000)
    location: GeoLocation
    status: HelpStatus = "pending"
    schedule: HelpSchedule
    urgency: Urgency = "medium"
    is_on_site: bool = True
    is_public: bool = True
    communication: HelpCommunication = Field(default_factory=HelpCommunication)
    tracking: List[TrackingEntry] = Field(default_factory=list)
    feedback: HelpFeedback = Field(default_factory=HelpFeedback)
    help_details: HelpDetails = Field(default_factory=HelpDetails)
    source: Literal["app", "sms", "call", "partner", "other"] = "app"

    @computed_field
    @property
    def formatted_date(self) -> str:
        return self.schedule.requested_date.date().isoformat()

    @computed_field
    @property
    def status_display(self) -> str:
        return HELP_STATUS_DISPLAY.get(self.status, self.status)

    @computed_field
    @property
    def urgency_display(self) -> str:
        return URGENCY_DISPLAY.get(self.urgency, self.urgency)

    def track(self, status: str, updated_by: str, notes: Optional[str] = None) -> TrackingEntry:
        entry = TrackingEntry(status=status, notes=notes, updated_by=updated_by)
        self.tracking.append(entry)
        return entry


class VolunteerContact(BaseModel):
    phone: str
    email: str
    whatsapp: Optional[str] = None


class AvailabilityHours(BaseModel):
    start: str = "09:00"
    end: str = "18:00"


class Availability(BaseModel):
    days: List[Weekday] = Field(default_factory=lambda: ["monday", "tuesday", "wednesday", "thursday", "friday"])
    hours: AvailabilityHours = Field(default_factory=AvailabilityHours)
    frequency: Literal["daily", "weekly", "monthly", "on-call"] = "on-call"


class VolunteerLocation(GeoLocation):
    city: str = ""
    state: str = ""
    service_radius: float = Field(default=10, ge=1, le=50)


class Verification(BaseModel):
    is_verified: bool = False
    id_proof_type: Optional[Literal["aadhar", "pan", "voter", "passport", "driving", "other"]] = None
    id_proof_verified: bool = False
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None


class ServiceOffered(BaseModel):
    service: str
    description: str = ""
    is_active: bool = True


class VolunteerStats(BaseModel):
    total_help_requests: int = 0
    completed_requests: int = 0
    people_helped: int = 0
    hours_donated: float = 0
    rating: float = Field(default=5, ge=1, le=5)
    total_reviews: int = 0


class CommunityVolunteer(Document):
    collection = "community_volunteers"
    public_id_field = "volunteer_id"
    public_id_prefix = "CV"

    volunteer_id: Optional[str] = None
    user: str
    name: str
    skills: List[HelpType] = Field(default_factory=list)
    organization: str = ""
    is_ngo: bool = False
    contact: VolunteerContact
    availability: Availability = Field(default_factory=Availability)
    location: VolunteerLocation
    verification: Verification = Field(default_factory=Verification)
    bio: str = Field(default="", max_length=1000)
    experience: float = Field(default=0, ge=0)
    profile_picture: Optional[str] = None
    services_offered: List[ServiceOffered] = Field(default_factory=list)
    stats: VolunteerStats = Field(default_factory=VolunteerStats)
    is_active: bool = True
    is_featured: bool = False
    last_active: datetime = Field(default_factory=_utcnow)

    @computed_field
    @property
    def formatted_experience(self) -> str:
        if not self.experience:
            return "Not specified"
        years = f"{self.experience:g}"
        return f"{years} year{'' if self.experience == 1 else 's'}"

    @computed_field
    @property
    def rating_display(self) -> str:
        return f"{self.stats.rating:.1f} ({self.stats.total_reviews} reviews)"

    @computed_field
    @property
    def completion_rate(self) -> int:
        if self.stats.total_help_requests == 0:
            return 0
        return round(self.stats.completed_requests / self.stats.total_help_requests * 100)

    def distance_to(self, coordinates: List[float]) -> Optional[float]:
        if len(self.location.coordinates) < 2 or len(coordinates) < 2:
            return None
        return distance_km(self.location.coordinates, coordinates)

    def add_rating(self, rating: float, replaces: Optional[float] = None) -> None:
        if replaces is not None and self.stats.total_reviews > 0:
            total = self.stats.rating * self.stats.total_reviews - replaces + rating
        else:
            total = self.stats.rating * self.stats.total_reviews + rating
            self.stats.total_reviews += 1
        self.stats.rating = min(5.0, max(1.0, total / self.stats.total_reviews))
