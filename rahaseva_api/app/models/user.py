"""User accounts: customers, helpers (service providers) and admins."""

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import Field, field_validator

from .base import Document

UserRole = Literal["user", "helper", "admin"]

WELCOME_COINS = 250


class User(Document):
    collection = "users"

    name: str = Field(..., min_length=1, max_length=100)
    email: str
    password: str = ""
    phone: Optional[str] = None
    role: UserRole = "user"
    address: Optional[str] = None

    # Helper specific
    service: Optional[str] = None
    experience: Optional[int] = Field(default=None, ge=0, le=50)
    price_per_hour: Optional[float] = Field(default=None, ge=100, le=2000)
    rating: float = 0.0
    rating_count: int = 0

    is_verified: bool = False
    is_active: bool = True
    coins_earned: int = WELCOME_COINS
    total_bookings: int = 0
    completed_bookings: int = 0
    profile_picture: Optional[str] = None
    last_login: Optional[datetime] = None

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def is_helper(self) -> bool:
        return self.role == "helper"

    def claim(self) -> Dict[str, Any]:
        """Identity claim embedded in access tokens."""
        return {"id": self.id, "role": self.role, "name": self.name, "email": self.email}

    def profile(self) -> Dict[str, Any]:
        """Public view of the account; never includes the password hash."""
        data = self.model_dump(mode="json", exclude={"password"})
        if not self.is_helper:
            for key in ("service", "experience", "price_per_hour", "rating", "rating_count"):
                data.pop(key, None)
        return data

    def add_rating(self, rating: float, replaces: Optional[float] = None) -> None:
        """Fold ``rating`` into the average.

        With ``replaces`` the earlier rating from the same reviewer is swapped
        out and the count stays the same.
        """
        if replaces is not None and self.rating_count > 0:
            total = self.rating * self.rating_count - replaces + rating
        else:
            total = self.rating * self.rating_count + rating
            self.rating_count += 1
        self.rating = round(total / self.rating_count, 2)
