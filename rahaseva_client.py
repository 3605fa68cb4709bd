"""RahaSeva API client.

A thin wrapper around the REST API built on ``requests``, plus the
session state a front end keeps about the signed‑in user.  Every
authentication outcome is turned into an action and fed through
:func:`reduce`, so the session mirrors what the server said:

* ``LOGIN_SUCCESS`` stores the token, role and user.
* ``REGISTER_SUCCESS`` leaves the session signed out; the user logs in
  separately.
* ``UPDATE_USER`` merges changed profile fields into the stored user.
* ``AUTH_ERROR`` and ``LOGOUT`` clear the session.

Methods return ``(data, error)`` tuples.  ``error`` is ``None`` on
success, otherwise a dictionary with ``status_code`` and ``message``.
Any ``requests.Session`` compatible object can be passed in, which
includes Starlette's ``TestClient``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

LOADING = "LOADING"
LOGIN_SUCCESS = "LOGIN_SUCCESS"
REGISTER_SUCCESS = "REGISTER_SUCCESS"
UPDATE_USER = "UPDATE_USER"
AUTH_ERROR = "AUTH_ERROR"
LOGOUT = "LOGOUT"

Result = Tuple[Optional[Dict[str, Any]], Optional[Dict[str, Any]]]


@dataclass(frozen=True)
class SessionState:
    """Client side view of the current session."""

    token: Optional[str] = None
    is_authenticated: bool = False
    loading: bool = True
    user_role: Optional[str] = None
    user: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class Action:
    type: str
    payload: Dict[str, Any] = field(default_factory=dict)


def _signed_out(state: SessionState) -> SessionState:
    return replace(state, token=None, is_authenticated=False, loading=False, user_role=None, user=None)


def reduce(state: SessionState, action: Action) -> SessionState:
    """Return the session state that follows ``action``.

    States are immutable; unknown action types return ``state`` itself.
    """
    if action.type == LOADING:
        return replace(state, loading=True)
    if action.type == LOGIN_SUCCESS:
        return replace(
            state,
            token=action.payload.get("token"),
            is_authenticated=True,
            loading=False,
            user_role=action.payload.get("role"),
            user=action.payload.get("user"),
        )
    if action.type == UPDATE_USER:
        merged = dict(state.user or {})
        merged.update(action.payload.get("user") or {})
        return replace(state, user=merged)
    if action.type in (REGISTER_SUCCESS, AUTH_ERROR, LOGOUT):
        return _signed_out(state)
    return state


class RahaSevaClient:
    """Client for the RahaSeva API.

    Args:
        base_url: Base URL of the server, e.g. ``http://localhost:5000``.
            Paths are joined as ``{base_url}/api/...``.
        session: Optional requests session.  If not supplied a session
            will be created automatically.
        token: Optional token from an earlier login.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        session: Optional[requests.Session] = None,
        token: Optional[str] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.state = SessionState(token=token, is_authenticated=False, loading=token is not None)

    def dispatch(self, action_type: str, **payload: Any) -> SessionState:
        self.state = reduce(self.state, Action(action_type, payload))
        return self.state

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Dict[str, Any] | None = None,
        json_body: Any | None = None,
        authenticated: bool = True,
    ) -> Result:
        url = f"{self.base_url}/api{path}"
        headers: Dict[str, str] = {}
        if authenticated and self.state.token:
            headers["x-auth-token"] = self.state.token
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=15,
            )
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

        try:
            data = response.json() if response.content else None
        except ValueError:
            data = None
        if response.status_code >= 400:
            message = ""
            if isinstance(data, dict):
                message = data.get("msg") or data.get("message") or data.get("detail") or ""
            message = message or response.text or f"HTTP {response.status_code}"
            logger.error("API request failed (%s): %s", response.status_code, message)
            if response.status_code == 401 and authenticated:
                self.dispatch(AUTH_ERROR)
            return None, {"status_code": response.status_code, "message": message}
        return data, None

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def register(self, payload: Dict[str, Any]) -> Result:
        """Create an account.  The session stays signed out afterwards."""
        data, error = self._request("POST", "/auth/register", json_body=payload, authenticated=False)
        if error:
            self.dispatch(AUTH_ERROR)
            return None, error
        self.dispatch(REGISTER_SUCCESS)
        return data, None

    def login(self, email: str, password: str) -> Result:
        self.dispatch(LOADING)
        data, error = self._request(
            "POST", "/auth/login", json_body={"email": email, "password": password}, authenticated=False
        )
        if error:
            self.dispatch(AUTH_ERROR)
            return None, error
        self.dispatch(LOGIN_SUCCESS, token=data["token"], role=data["role"], user=data["user"])
        return data, None

    def profile(self) -> Result:
        """Load the profile for the stored token and refresh the session.

        Used after start‑up when only a token is known.  A rejected token
        signs the session out.
        """
        data, error = self._request("GET", "/auth/profile")
        if error:
            return None, error
        self.dispatch(LOGIN_SUCCESS, token=self.state.token, role=data.get("role"), user=data.get("user"))
        return data, None

    def update_profile(self, changes: Dict[str, Any]) -> Result:
        data, error = self._request("PUT", "/auth/profile", json_body=changes)
        if error:
            return None, error
        self.dispatch(UPDATE_USER, user=data.get("user") or {})
        return data, None

    def logout(self) -> SessionState:
        return self.dispatch(LOGOUT)

    # ------------------------------------------------------------------
    # Bookings and wallet
    # ------------------------------------------------------------------
    def bookings(self, page: int = 1, limit: int = 10, status: Optional[str] = None) -> Result:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        return self._request("GET", "/bookings", params=params)

    def create_booking(self, payload: Dict[str, Any]) -> Result:
        return self._request("POST", "/bookings", json_body=payload)

    def wallet(self) -> Result:
        return self._request("GET", "/wallet")
