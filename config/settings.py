"""
Central configuration using Pydantic BaseSettings.

Validates all env vars at startup (fail-fast). Token sizing rules are
checked here so a misconfigured deployment refuses to start instead of
issuing weak bundles.

Usage:
    from config.settings import get_settings

    settings = get_settings()
    print(settings.auth.access_token_duration_seconds)

Lazy initialization: get_settings() creates the singleton on first call.
Tests can reset via get_settings.cache_clear().
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings


def _is_testing() -> bool:
    """Check if running in test mode."""
    return (
        os.getenv("TESTING", "").lower() in ("true", "1")
        or os.getenv("FLASK_ENV", "") == "testing"
    )


# =============================================================================
# Nested Settings Groups
# =============================================================================


class AuthSettings(BaseSettings):
    """Credential bundle configuration."""

    model_config = {"env_prefix": "", "extra": "ignore"}

    # Access secret lifetime (15 minutes)
    access_token_duration_seconds: int = 900

    # Secret sizes in random bytes (before encoding)
    access_token_bytes: int = 32
    refresh_token_bytes: int = 64
    csrf_token_bytes: int = 32

    # Registration policy
    min_username_length: int = 8
    min_password_length: int = 8

    # Transport channels
    access_header: str = "X-ACCESS-TOKEN"
    csrf_header: str = "X-CSRF-TOKEN"

    @model_validator(mode="after")
    def _validate_token_sizes(self):
        if self.access_token_duration_seconds <= 0:
            raise ValueError("ACCESS_TOKEN_DURATION_SECONDS must be positive")
        if min(self.access_token_bytes, self.refresh_token_bytes, self.csrf_token_bytes) < 16:
            raise ValueError("Token sizes must be at least 16 bytes")
        if self.refresh_token_bytes < 2 * self.access_token_bytes:
            raise ValueError(
                "REFRESH_TOKEN_BYTES must be at least twice ACCESS_TOKEN_BYTES"
            )
        return self


class DatabaseSettings(BaseSettings):
    """Database configuration."""

    model_config = {"env_prefix": "", "extra": "ignore"}

    database_url: Optional[str] = None  # PostgreSQL URL (optional)
    db_pool_size: int = 10
    db_busy_timeout_seconds: float = 5.0

    @property
    def auth_db_path(self) -> Path:
        """Default SQLite path for the auth database."""
        override = os.getenv("AUTH_DB_PATH")
        if override:
            return Path(override)
        data_dir = Path(__file__).parent.parent / "data"
        data_dir.mkdir(exist_ok=True)
        return data_dir / "auth.db"


class ServerSettings(BaseSettings):
    """HTTP server configuration."""

    model_config = {"env_prefix": "", "extra": "ignore"}

    server_host: str = "localhost"
    server_port: int = 8080
    cors_origins: str = ""  # comma-separated; empty means localhost defaults


class RateLimitSettings(BaseSettings):
    """Rate limiting configuration."""

    model_config = {"env_prefix": "RATE_LIMIT_", "extra": "ignore"}

    default: str = "500 per minute"
    auth: str = "10 per minute"
    storage: Optional[str] = None  # Falls back to in-memory storage


# =============================================================================
# Root Settings
# =============================================================================


class AppSettings(BaseSettings):
    """Root application settings composing all sub-settings."""

    model_config = {"env_prefix": "", "extra": "ignore", "env_file": ".env", "env_file_encoding": "utf-8"}

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: str = ""

    # Nested groups (initialized separately to support env_prefix)
    auth: AuthSettings = None  # type: ignore[assignment]
    database: DatabaseSettings = None  # type: ignore[assignment]
    server: ServerSettings = None  # type: ignore[assignment]
    rate_limit: RateLimitSettings = None  # type: ignore[assignment]

    @model_validator(mode="before")
    @classmethod
    def _init_nested(cls, values):
        """Initialize nested settings from environment."""
        if values.get("auth") is None:
            values["auth"] = AuthSettings()
        if values.get("database") is None:
            values["database"] = DatabaseSettings()
        if values.get("server") is None:
            values["server"] = ServerSettings()
        if values.get("rate_limit") is None:
            values["rate_limit"] = RateLimitSettings()
        return values

    @property
    def testing(self) -> bool:
        return _is_testing()

    @property
    def server_addr(self) -> str:
        """host:port the server binds to."""
        return f"{self.server.server_host}:{self.server.server_port}"


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """
    Get the application settings singleton.

    Lazy-initialized on first call. Validates all env vars (fail-fast).
    Tests can reset via: get_settings.cache_clear()
    """
    return AppSettings()
