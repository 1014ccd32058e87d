"""
Password hashing, verification, and credential validation.

Handles:
- Password hashing (salted, cost-tunable one-way hash via werkzeug)
- Password verification (constant-time compare inside werkzeug)
- Username/password length policy for registration
"""
from werkzeug.security import generate_password_hash, check_password_hash

from config.settings import get_settings

from .config import MAX_USERNAME_LENGTH, MAX_PASSWORD_LENGTH

__all__ = [
    "hash_password",
    "verify_password",
    "validate_credentials",
    "is_encodable",
]


def hash_password(password: str) -> str:
    """Hash a password with werkzeug's default salted KDF.

    Args:
        password: Plain text password

    Returns:
        Self-describing hash string (method, salt and digest)
    """
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash.

    Args:
        password: Plain text password
        password_hash: Hash produced by hash_password

    Returns:
        True if password matches, False otherwise
    """
    try:
        return check_password_hash(password_hash, password)
    except UnicodeEncodeError:
        return False


def is_encodable(value: str) -> bool:
    """True if value survives UTF-8 encoding (no lone surrogates)."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def validate_credentials(username, password, settings=None) -> tuple[bool, str]:
    """Validate submitted credentials against the registration policy.

    Args:
        username: Submitted username (any JSON type)
        password: Submitted password (any JSON type)
        settings: AppSettings override (defaults to get_settings())

    Returns:
        (is_valid, error_message) tuple
    """
    auth = (settings or get_settings()).auth

    # Type validation - prevent type confusion attacks
    if not isinstance(username, str) or not isinstance(password, str):
        return False, "Username and password must be strings"

    if not is_encodable(username) or not is_encodable(password):
        return False, "Username and password must be valid UTF-8 text"

    if len(username) > MAX_USERNAME_LENGTH or len(password) > MAX_PASSWORD_LENGTH:
        return False, "Credentials exceed maximum length"

    if len(username) < auth.min_username_length:
        return False, f"Username must be at least {auth.min_username_length} characters long"

    if len(password) < auth.min_password_length:
        return False, f"Password must be at least {auth.min_password_length} characters long"

    return True, ""
