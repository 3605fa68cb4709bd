"""
Payloads for registration, login and profile updates.

Fields are optional at the schema level so the service can answer
with the specific messages clients rely on ("Name, email, and password
are required", ...) instead of a generic validation error.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    role: str = Field("user", description="user or helper")
    location: Optional[str] = Field(default=None, description="Address of the user or helper")

    # Required when ``role`` is ``helper``
    service: Optional[str] = None
    experience: Optional[int] = None
    price_per_hour: Optional[float] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    location: Optional[str] = Field(default=None, description="Alias of ``address``")
    profile_picture: Optional[str] = None


class AuthResponse(BaseModel):
    success: bool = True
    msg: str
    token: str
    role: str
    user: Dict[str, Any]
