"""
Credential and password helpers plus the authentication dependencies.

Tokens are compact JWTs signed with HMAC‑SHA256 and base64url encoded
(``header.payload.signature``).  The payload carries the identity
claim under ``user`` (``id``, ``role``, ``name``, ``email``) together
with ``iat`` and ``exp`` timestamps.  Verification is a pure function
of the token and the shared secret: the signature is checked first and
only a correctly signed token can be reported as *expired*; everything
else is *invalid*.

Clients send the token either in the ``x-auth-token`` header or as
``Authorization: Bearer <token>``.  The dependencies below turn the
three failure outcomes (missing, expired, invalid) into 401 responses
with distinct messages, and ``require_user`` additionally re‑checks
the identity against the mock store when the request is being served
without a live database.

Passwords are hashed with PBKDF2‑HMAC‑SHA256 and stored as
``salthex$hashhex``.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import time
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from .config import settings

logger = logging.getLogger(__name__)

MISSING_TOKEN_MSG = "No token provided, authorization denied"
EXPIRED_TOKEN_MSG = "Token has expired, please login again"
INVALID_TOKEN_MSG = "Token is not valid"
UNKNOWN_USER_MSG = "User not found, token invalid"
AUTH_SERVER_ERROR_MSG = "Server error during authentication"
FORBIDDEN_ROLE_MSG = "Access denied: You do not have the required role"

PBKDF2_ITERATIONS = 100_000


class TokenError(Exception):
    """Base class for credential verification failures."""


class TokenExpiredError(TokenError):
    """The token is correctly signed but its ``exp`` has passed."""


class InvalidTokenError(TokenError):
    """The token is malformed, tampered with or signed with another key."""


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC‑SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[int] = None,
    secret: Optional[str] = None,
) -> str:
    """Create a signed JWT token with the given payload.

    Parameters
    ----------
    data : dict
        Claims to embed in the token, typically ``{"user": {...}}``.
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.  A negative value
        produces a token that is already expired.
    secret : Optional[str]
        Signing key.  Defaults to ``settings.jwt_secret``.

    Returns
    -------
    str
        A signed JWT token.
    """
    if expires_delta is None:
        expires_delta = settings.access_token_expire_minutes * 60
    now = int(time.time())
    to_encode = dict(data)
    to_encode["iat"] = now
    to_encode["exp"] = now + int(expires_delta)
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature = _sign(signing_input, secret or settings.jwt_secret)
    return f"{header_b64}.{payload_b64}.{_b64_url_encode(signature)}"


def decode_access_token(token: str, secret: Optional[str] = None) -> Dict[str, Any]:
    """Verify and decode a JWT token.

    Raises
    ------
    TokenExpiredError
        If the signature is valid but the ``exp`` claim lies in the past.
    InvalidTokenError
        For any other failure: wrong number of segments, undecodable
        parts, unsupported algorithm, bad signature or missing ``exp``.
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise InvalidTokenError("token must have three segments")
    header_b64, payload_b64, signature_b64 = parts
    try:
        header = json.loads(_b64_url_decode(header_b64).decode("utf-8"))
        actual_sig = _b64_url_decode(signature_b64)
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidTokenError("token is not decodable") from exc
    if not isinstance(header, dict) or header.get("alg") != "HS256":
        raise InvalidTokenError("unsupported token algorithm")

    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    expected_sig = _sign(signing_input, secret or settings.jwt_secret)
    # Constant‑time comparison
    if not hmac.compare_digest(expected_sig, actual_sig):
        raise InvalidTokenError("signature mismatch")

    try:
        payload = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidTokenError("payload is not decodable") from exc
    if not isinstance(payload, dict) or not isinstance(payload.get("exp"), (int, float)):
        raise InvalidTokenError("payload has no expiry")
    if payload["exp"] < time.time():
        raise TokenExpiredError("token has expired")
    return payload


def extract_token(request: Request) -> Optional[str]:
    """Return the raw credential carried by ``request``, if any.

    ``x-auth-token`` wins over ``Authorization``; a ``Bearer `` prefix on
    either header is stripped.
    """
    raw = request.headers.get("x-auth-token") or request.headers.get("authorization")
    if not raw:
        return None
    raw = raw.strip()
    scheme, _, value = raw.partition(" ")
    if scheme.lower() == "bearer":
        raw = value.strip()
    return raw or None


# Declared so the OpenAPI docs offer both transports.  The values are not
# used directly because ``extract_token`` applies the precedence rules.
bearer_scheme = HTTPBearer(auto_error=False)
api_key_scheme = APIKeyHeader(name="x-auth-token", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    request: Request,
    _bearer: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    _api_key: Optional[str] = Security(api_key_scheme),
) -> Dict[str, Any]:
    """Dependency that verifies the credential and returns the identity claim.

    On success the claim (``{"id", "role", "name", "email"}``) is also
    attached to ``request.state.user``.  Failures raise 401 with the
    missing/expired/invalid message.
    """
    token = extract_token(request)
    if token is None:
        raise _unauthorized(MISSING_TOKEN_MSG)

    app_settings = getattr(request.app.state, "settings", settings)
    try:
        payload = decode_access_token(token, secret=app_settings.jwt_secret)
    except TokenExpiredError:
        logger.info("Rejected expired token for %s %s", request.method, request.url.path)
        raise _unauthorized(EXPIRED_TOKEN_MSG)
    except InvalidTokenError as exc:
        logger.info("Rejected invalid token for %s %s: %s", request.method, request.url.path, exc)
        raise _unauthorized(INVALID_TOKEN_MSG)

    claim = payload.get("user")
    if not isinstance(claim, dict) or not claim.get("id"):
        raise _unauthorized(INVALID_TOKEN_MSG)
    request.state.user = claim
    return claim


async def require_user(
    request: Request,
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    """Verify the credential and, on mock data, that the identity still exists.

    When the request was stamped as disconnected the identity is looked
    up in the mock store before the handler runs.  An unknown identity
    is rejected like an invalid token (401); a failing lookup yields
    500 and the cause is logged.
    """
    if getattr(request.state, "is_db_connected", False):
        return current_user

    mock_store = getattr(request.state, "mock_store", None)
    if mock_store is None:
        mock_store = request.app.state.connection.mock_store
    try:
        record = await mock_store.find_by_id("users", current_user["id"])
    except Exception:
        logger.exception("Mock store lookup failed for user %s", current_user.get("id"))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=AUTH_SERVER_ERROR_MSG,
        )
    if record is None:
        logger.info("Token identity %s not present in mock store", current_user.get("id"))
        raise _unauthorized(UNKNOWN_USER_MSG)
    return current_user


def require_roles(*roles: str) -> Callable[..., Dict[str, Any]]:
    """Dependency factory restricting a route to the given user roles.

    Use as ``Depends(require_roles("admin"))``.  The returned dependency
    runs ``require_user`` first, so the usual 401 outcomes still apply;
    an authenticated caller outside ``roles`` gets 403.
    """

    def _role_dependency(current_user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
        if current_user.get("role") not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN_ROLE_MSG)
        return current_user

    return _role_dependency


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2‑HMAC with SHA‑256.

    A 16‑byte random salt is generated for each password and the result
    is returned as ``salthex$hashhex``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored ``salthex$hashhex`` string."""
    try:
        salt_hex, hash_hex = hashed_password.split("$", 1)
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
    except (AttributeError, ValueError):
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, expected)
