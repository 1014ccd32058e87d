"""
Auth configuration - no dependencies on other auth modules.

All token sizing and policy values are read from config.settings
(Pydantic BaseSettings) so they can be audited in one place.
"""
from datetime import timedelta

from config.settings import get_settings

from .types import TokenConfig


def token_config_from_settings(settings=None) -> TokenConfig:
    """Build the TokenConfig for issuance from AppSettings.auth."""
    auth = (settings or get_settings()).auth
    return TokenConfig(
        access_lifetime=timedelta(seconds=auth.access_token_duration_seconds),
        access_bytes=auth.access_token_bytes,
        refresh_bytes=auth.refresh_token_bytes,
        anti_forgery_bytes=auth.csrf_token_bytes,
    )


# Hard upper bounds on submitted credentials (applied before any hashing)
MAX_USERNAME_LENGTH = 100
MAX_PASSWORD_LENGTH = 200
