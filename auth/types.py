"""
Auth domain types - no dependencies on other auth modules.

NOTE: Keep this minimal. Only add types here if they are:
1. Used by 3+ auth submodules, AND
2. Would otherwise cause circular imports
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from core.timestamps import to_iso


@dataclass(frozen=True)
class Owner:
    """User identity as seen by the token core: opaque id plus display name."""
    id: int
    username: str


@dataclass(frozen=True)
class TokenConfig:
    """Issuance parameters for a credential bundle."""
    access_lifetime: timedelta
    access_bytes: int = 32
    refresh_bytes: int = 64
    anti_forgery_bytes: int = 32

    def __post_init__(self):
        if self.access_lifetime <= timedelta(0):
            raise ValueError("access_lifetime must be positive")
        if self.refresh_bytes < 2 * self.access_bytes:
            raise ValueError("refresh_bytes must be at least twice access_bytes")


@dataclass(frozen=True)
class CredentialBundle:
    """One user's active {access, refresh, anti-forgery} triple (immutable).

    expires_at bounds the access secret only. The secrets are excluded from
    repr so a bundle can be logged by accident without leaking them.
    """
    owner_id: int
    access_secret: str = field(repr=False)
    refresh_secret: str = field(repr=False)
    anti_forgery_secret: str = field(repr=False)
    expires_at: datetime
    created_at: datetime

    def is_expired(self, at: datetime) -> bool:
        return at >= self.expires_at

    def to_response(self, message: str) -> dict:
        """Public JSON shape returned on login and refresh."""
        return {
            "message": message,
            "accessToken": self.access_secret,
            "refreshToken": self.refresh_secret,
            "csrfToken": self.anti_forgery_secret,
            "expiresAt": to_iso(self.expires_at),
        }
