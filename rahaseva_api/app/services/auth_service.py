"""
Business logic for accounts: registration, login and profile.

Every method receives the ``DocumentStore`` selected for the current
request, so the same code path serves the live database and the mock
store.  Failures are reported with ``ValueError`` (400) and
``LookupError`` (404); endpoints translate them into HTTP errors.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from rahaseva_api.app.core.config import Settings, settings as default_settings
from rahaseva_api.app.core.security import create_access_token, hash_password, verify_password
from rahaseva_api.app.models import User
from rahaseva_api.app.schemas.auth import LoginRequest, ProfileUpdate, RegisterRequest
from rahaseva_api.app.store import DocumentStore

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6
# Admin accounts are provisioned out of band (seed data, create_token.py).
SELF_SERVICE_ROLES = ("user", "helper")


class AuthService:
    """Service for registering users, issuing tokens and managing profiles."""

    @classmethod
    def issue_token(cls, user: User, app_settings: Optional[Settings] = None) -> str:
        app_settings = app_settings or default_settings
        return create_access_token(
            {"user": user.claim()},
            expires_delta=app_settings.access_token_expire_minutes * 60,
            secret=app_settings.jwt_secret,
        )

    @classmethod
    def _check_credentials_shape(cls, email: str, password: str) -> None:
        if not EMAIL_RE.match(email):
            raise ValueError("Please enter a valid email address")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValueError("Password must be at least 6 characters long")

    @classmethod
    async def register(cls, store: DocumentStore, payload: RegisterRequest) -> User:
        """Create a new account.

        Helpers must also supply their service, location, experience and
        hourly price.  The stored password is a PBKDF2 hash; the plain
        text is never logged or persisted.
        """
        if not payload.name or not payload.email or not payload.password:
            raise ValueError("Name, email, and password are required")
        email = payload.email.strip().lower()
        cls._check_credentials_shape(email, payload.password)
        if payload.role not in SELF_SERVICE_ROLES:
            raise ValueError("Role must be user or helper")

        if await User.find_one(store, email=email):
            raise ValueError("User already exists with this email")

        if payload.role == "helper" and not (
            payload.service and payload.location and payload.experience is not None and payload.price_per_hour
        ):
            raise ValueError("Service type, location, experience, and pricing are required for helpers")

        user = User(
            name=payload.name.strip(),
            email=email,
            password=hash_password(payload.password),
            phone=payload.phone,
            role=payload.role,
            address=payload.location,
            service=payload.service if payload.role == "helper" else None,
            experience=payload.experience if payload.role == "helper" else None,
            price_per_hour=payload.price_per_hour if payload.role == "helper" else None,
        )
        await user.save(store)
        logger.info("Registered %s account %s (%s)", user.role, user.id, store.name)
        return user

    @classmethod
    async def login(cls, store: DocumentStore, payload: LoginRequest) -> User:
        if not payload.email or not payload.password:
            raise ValueError("Email and password are required")
        email = payload.email.strip().lower()
        cls._check_credentials_shape(email, payload.password)

        user = await User.find_one(store, email=email)
        if user is None:
            logger.info("Login failed: unknown email")
            raise ValueError("Invalid email or password")
        if not user.is_active:
            raise ValueError("Account is deactivated. Please contact support.")
        if not verify_password(payload.password, user.password):
            logger.info("Login failed: wrong password for user %s", user.id)
            raise ValueError("Invalid email or password")

        user.last_login = datetime.now(timezone.utc)
        await user.save(store)
        return user

    @classmethod
    async def get_profile(cls, store: DocumentStore, user_id: str) -> User:
        user = await User.get(store, user_id)
        if user is None:
            raise LookupError("User not found")
        return user

    @classmethod
    async def update_profile(cls, store: DocumentStore, user_id: str, update: ProfileUpdate) -> User:
        user = await cls.get_profile(store, user_id)
        if update.name is not None:
            if not update.name.strip():
                raise ValueError("Name cannot be empty")
            user.name = update.name.strip()
        if update.phone is not None:
            user.phone = update.phone
        address = update.address if update.address is not None else update.location
        if address is not None:
            user.address = address
        if update.profile_picture is not None:
            user.profile_picture = update.profile_picture
        if update.email is not None:
            email = update.email.strip().lower()
            if not EMAIL_RE.match(email):
                raise ValueError("Please enter a valid email address")
            existing = await User.find_one(store, email=email)
            if existing is not None and existing.id != user.id:
                raise ValueError("Email already exists")
            user.email = email
        await user.save(store)
        return user

    @classmethod
    def session_payload(cls, user: User, msg: str, app_settings: Optional[Settings] = None) -> dict:
        """Body returned by register and login: a fresh token plus the profile."""
        return {
            "success": True,
            "msg": msg,
            "token": cls.issue_token(user, app_settings),
            "role": user.role,
            "user": user.profile(),
        }
