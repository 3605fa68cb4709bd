"""
Demo records loaded into the mock store.

All demo accounts share the password ``password123``.  The hash is
computed once per process because PBKDF2 is deliberately slow.
"""

import copy
from functools import lru_cache
from typing import Any, Dict, List

from rahaseva_api.app.core.security import hash_password

DEMO_PASSWORD = "password123"

# [longitude, latitude]
DEFAULT_COORDINATES = [78.486671, 17.385044]


@lru_cache(maxsize=1)
def demo_password_hash() -> str:
    return hash_password(DEMO_PASSWORD)


_USERS: List[Dict[str, Any]] = [
    {
        "id": "user1",
        "name": "Test User",
        "email": "test@example.com",
        "phone": "9876543210",
        "role": "user",
        "address": "123 Main St, City",
        "is_verified": True,
        "coins_earned": 250,
        "total_bookings": 2,
        "completed_bookings": 1,
        "created_at": "2025-01-15T00:00:00+00:00",
    },
    {
        "id": "provider1",
        "name": "Test Provider",
        "email": "provider@example.com",
        "phone": "9876543211",
        "role": "helper",
        "address": "456 Park Ave, City",
        "service": "plumber",
        "experience": 5,
        "price_per_hour": 500,
        "rating": 4.0,
        "rating_count": 1,
        "is_verified": True,
        "total_bookings": 2,
        "completed_bookings": 1,
        "created_at": "2025-01-10T00:00:00+00:00",
    },
    {
        "id": "admin1",
        "name": "Admin User",
        "email": "admin@example.com",
        "phone": "9876543212",
        "role": "admin",
        "is_verified": True,
        "created_at": "2025-01-01T00:00:00+00:00",
    },
]

_BOOKINGS: List[Dict[str, Any]] = [
    {
        "id": "booking1",
        "booking_id": "RS17547840000000001",
        "user": "user1",
        "provider": "provider1",
        "service_details": {
            "service_type": "plumber",
            "problem_description": "Kitchen sink leaking",
            "urgency": "normal",
        },
        "booking_type": "In-Person Visit",
        "location": {"address": "123 Main St, City", "coordinates": DEFAULT_COORDINATES},
        "schedule": {
            "requested_date": "2025-08-15T00:00:00+00:00",
            "requested_time": "14:00",
            "completed_at": "2025-08-15T16:00:00+00:00",
        },
        "pricing": {"base_amount": 600, "total_amount": 600},
        "payment": {"method": "cash", "status": "paid"},
        "status": "completed",
        "feedback": {"user_rating": 4, "user_review": "Good service"},
        "created_at": "2025-08-10T00:00:00+00:00",
    },
    {
        "id": "booking2",
        "booking_id": "RS17572896000000002",
        "user": "user1",
        "provider": "provider1",
        "service_details": {
            "service_type": "electrician",
            "problem_description": "Ceiling fan not working",
            "urgency": "normal",
        },
        "booking_type": "In-Person Visit",
        "location": {"address": "456 Park Ave, City", "coordinates": DEFAULT_COORDINATES},
        "schedule": {"requested_date": "2025-09-20T00:00:00+00:00", "requested_time": "10:00"},
        "pricing": {"base_amount": 800, "total_amount": 800},
        "status": "pending",
        "created_at": "2025-09-08T00:00:00+00:00",
    },
]

_WALLETS: List[Dict[str, Any]] = [
    {
        "id": "wallet1",
        "user": "user1",
        "balance": {"money": 1000, "points": 150},
        "referral_code": "RHTEST0001",
        "transactions": [
            {
                "type": "credit",
                "amount": 500,
                "description": "Welcome bonus",
                "created_at": "2025-06-15T00:00:00+00:00",
            },
            {
                "type": "credit",
                "amount": 500,
                "description": "Referral bonus",
                "created_at": "2025-07-01T00:00:00+00:00",
            },
        ],
        "total_earned": {"money": 1000, "points": 150},
        "created_at": "2025-06-15T00:00:00+00:00",
    },
    {
        "id": "wallet2",
        "user": "provider1",
        "balance": {"money": 5000, "points": 300},
        "referral_code": "RHPROV0001",
        "transactions": [
            {
                "type": "credit",
                "amount": 5000,
                "description": "Service payment",
                "created_at": "2025-08-16T00:00:00+00:00",
            }
        ],
        "total_earned": {"money": 5000, "points": 300},
        "created_at": "2025-06-10T00:00:00+00:00",
    },
]

_VOLUNTEERS: List[Dict[str, Any]] = [
    {
        "id": "volunteer1",
        "volunteer_id": "CV17523648000000001",
        "user": "provider1",
        "name": "Community Helper",
        "skills": ["plumber", "electrician", "carpenter"],
        "organization": "Helping Hands",
        "is_ngo": True,
        "contact": {"phone": "9876543211", "email": "provider@example.com"},
        "availability": {
            "days": ["monday", "wednesday", "friday", "saturday"],
            "hours": {"start": "09:00", "end": "17:00"},
            "frequency": "weekly",
        },
        "location": {
            "address": "789 Community Center, City",
            "city": "Hyderabad",
            "state": "Telangana",
            "coordinates": DEFAULT_COORDINATES,
            "service_radius": 15,
        },
        "verification": {"is_verified": True, "id_proof_type": "aadhar", "id_proof_verified": True},
        "bio": "Experienced in home repairs and maintenance",
        "experience": 5,
        "stats": {
            "total_help_requests": 12,
            "completed_requests": 10,
            "people_helped": 15,
            "hours_donated": 36,
            "rating": 4.7,
            "total_reviews": 8,
        },
        "created_at": "2025-07-01T00:00:00+00:00",
    }
]

_HELP_REQUESTS: List[Dict[str, Any]] = [
    {
        "id": "helpreq1",
        "request_id": "CH17561088000000001",
        "user": "user1",
        "volunteer": "volunteer1",
        "help_type": "plumber",
        "description": "Elderly person needs help fixing a leaking tap",
        "location": {"address": "123 Main St, City", "coordinates": DEFAULT_COORDINATES},
        "status": "completed",
        "schedule": {
            "requested_date": "2025-08-25T00:00:00+00:00",
            "requested_time": "11:00",
            "completed_at": "2025-08-25T13:00:00+00:00",
        },
        "urgency": "medium",
        "tracking": [
            {"status": "pending", "timestamp": "2025-08-24T00:00:00+00:00", "notes": "Help request created", "updated_by": "user"},
            {"status": "accepted", "timestamp": "2025-08-24T02:00:00+00:00", "notes": "Accepted by volunteer Community Helper", "updated_by": "volunteer"},
            {"status": "completed", "timestamp": "2025-08-25T13:00:00+00:00", "notes": "Tap fixed", "updated_by": "volunteer"},
        ],
        "feedback": {"user_rating": 5, "user_review": "Very helpful, thank you!"},
        "created_at": "2025-08-24T00:00:00+00:00",
    }
]


def default_collections() -> Dict[str, List[Dict[str, Any]]]:
    """Return a fresh, independent copy of the demo data."""
    password = demo_password_hash()
    users = [dict(copy.deepcopy(user), password=password) for user in _USERS]
    return {
        "users": users,
        "bookings": copy.deepcopy(_BOOKINGS),
        "wallets": copy.deepcopy(_WALLETS),
        "community_volunteers": copy.deepcopy(_VOLUNTEERS),
        "community_help_requests": copy.deepcopy(_HELP_REQUESTS),
    }
