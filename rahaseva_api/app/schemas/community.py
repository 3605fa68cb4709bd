"""
Payloads for the community help endpoints.

Nested objects reuse the document sub‑models where the shape is the
same; anything the caller may leave out is optional and defaulted by
``CommunityService``.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from rahaseva_api.app.models.community import (
    Availability,
    HelpCommunication,
    ServiceOffered,
)


class VolunteerContactIn(BaseModel):
    phone: Optional[str] = None
    email: Optional[str] = None
    whatsapp: Optional[str] = None


class VolunteerLocationIn(BaseModel):
    address: Optional[str] = None
    city: str = ""
    state: str = ""
    coordinates: Optional[List[float]] = None
    service_radius: Optional[float] = None


class VolunteerRegister(BaseModel):
    name: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    organization: str = ""
    is_ngo: bool = False
    contact: Optional[VolunteerContactIn] = None
    availability: Optional[Availability] = None
    location: Optional[VolunteerLocationIn] = None
    bio: str = ""
    experience: float = 0
    services_offered: Optional[List[ServiceOffered]] = None


class VolunteerUpdate(BaseModel):
    name: Optional[str] = None
    skills: Optional[List[str]] = None
    organization: Optional[str] = None
    is_ngo: Optional[bool] = None
    contact: Optional[VolunteerContactIn] = None
    availability: Optional[Availability] = None
    location: Optional[VolunteerLocationIn] = None
    bio: Optional[str] = None
    experience: Optional[float] = None
    services_offered: Optional[List[ServiceOffered]] = None
    is_active: Optional[bool] = None


class HelpLocationIn(BaseModel):
    address: Optional[str] = None
    coordinates: Optional[List[float]] = None


class HelpScheduleIn(BaseModel):
    requested_date: Optional[datetime] = None
    requested_time: Optional[str] = None


class HelpRequestCreate(BaseModel):
    help_type: Optional[str] = None
    description: Optional[str] = None
    location: Optional[HelpLocationIn] = None
    schedule: Optional[HelpScheduleIn] = None
    urgency: str = "medium"
    is_on_site: bool = True
    is_public: bool = True
    communication: Optional[HelpCommunication] = None


class HelpStatusUpdate(BaseModel):
    status: Optional[str] = None
    notes: Optional[str] = None


class HelpFeedbackCreate(BaseModel):
    rating: Optional[int] = None
    review: Optional[str] = None
    hours_spent: Optional[float] = None
    materials_provided: Optional[str] = None
    additional_people_helped: Optional[int] = None


class VolunteerVerify(BaseModel):
    is_verified: bool = True
    id_proof_type: Optional[str] = None
    id_proof_verified: Optional[bool] = None
