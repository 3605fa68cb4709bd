"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
API can be started on a developer machine without any setup: with no
``DATABASE_URL`` the service runs entirely on the in‑memory mock
store, and with no ``JWT_SECRET`` tokens are signed with a well known
development secret (a warning is logged at startup in that case).
"""

import os
from dataclasses import dataclass, field
from typing import List

DEFAULT_JWT_SECRET = "mock-jwt-secret"


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "RahaSeva API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Secret used to sign and verify credentials.  Leaving JWT_SECRET unset
    # falls back to ``DEFAULT_JWT_SECRET``, which is only suitable for local
    # development and demos.
    jwt_secret: str = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
    algorithm: str = os.getenv("ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))

    # Path of the SQLite file backing the live document store.  An empty
    # value keeps the service on mock data.  A ``sqlite:///`` prefix is
    # accepted; relative paths are resolved by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "")
    db_max_retry_attempts: int = int(os.getenv("DB_MAX_RETRY_ATTEMPTS", "5"))
    db_retry_base_delay: float = float(os.getenv("DB_RETRY_BASE_DELAY", "1.0"))

    cors_origins: List[str] = field(
        default_factory=lambda: _env_list(
            "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
        )
    )

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "5000"))

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# should be set before importing this module.
settings = Settings()
