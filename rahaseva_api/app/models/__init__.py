"""
Persisted document models.

Each model maps to one store collection and carries its read‑time
virtual fields as pydantic computed fields.
"""

from .base import Document  # noqa: F401
from .booking import Booking  # noqa: F401
from .community import CommunityHelpRequest, CommunityVolunteer  # noqa: F401
from .user import User  # noqa: F401
from .wallet import Wallet  # noqa: F401
