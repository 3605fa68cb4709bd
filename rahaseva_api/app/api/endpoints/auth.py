"""
Authentication endpoints.

``register`` and ``login`` are public and answer with a fresh token;
``profile`` requires a valid token.  Requests are served from whichever
store the connectivity layer selected, so the demo accounts of the mock
store can log in when no database is configured.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from rahaseva_api.app.api.deps import get_settings, get_store
from rahaseva_api.app.core.config import Settings
from rahaseva_api.app.core.errors import service_errors
from rahaseva_api.app.core.security import require_user
from rahaseva_api.app.schemas.auth import AuthResponse, LoginRequest, ProfileUpdate, RegisterRequest
from rahaseva_api.app.services.auth_service import AuthService
from rahaseva_api.app.store import DocumentStore

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    store: DocumentStore = Depends(get_store),
    app_settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Create an account and return a token for it."""
    with service_errors():
        user = await AuthService.register(store, payload)
    return AuthService.session_payload(user, "User registered successfully", app_settings)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    store: DocumentStore = Depends(get_store),
    app_settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    with service_errors():
        user = await AuthService.login(store, payload)
    return AuthService.session_payload(user, "Logged in successfully", app_settings)


@router.get("/profile")
async def get_profile(
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        user = await AuthService.get_profile(store, current_user["id"])
    return {"success": True, "user": user.profile(), "role": user.role}


@router.put("/profile")
async def update_profile(
    update: ProfileUpdate,
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        user = await AuthService.update_profile(store, current_user["id"], update)
    return {"success": True, "msg": "Profile updated successfully", "user": user.profile()}
