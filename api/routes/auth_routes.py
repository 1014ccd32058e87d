"""
Authentication endpoints for the token API.

Provides register, login, bundle refresh, logout, and the protected
resource / session introspection endpoints.
"""

import logging

from flask import Blueprint, jsonify, request, g

from api.decorators import bundle_required, read_credential_headers
from api.extensions import get_services
from auth import MAX_PASSWORD_LENGTH, MAX_USERNAME_LENGTH, validate_credentials
from core import log_event
from core.errors import (
    AuthenticationError,
    CredentialError,
    InvalidCredential,
    ValidationError,
)
from core.timestamps import to_iso

logger = logging.getLogger(__name__)

# Create blueprint
auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        raise ValidationError("Invalid request body")
    return data


# =============================================================================
# Registration / Login
# =============================================================================

@auth_bp.route('/register', methods=['POST'])
def register():
    """Create a user account. Rate limited with the rest of the blueprint."""
    data = _json_body()
    username = data.get("username")
    password = data.get("password")

    valid, error = validate_credentials(username, password, get_services().settings)
    if not valid:
        raise ValidationError(error)

    owner = get_services().users.create_user(username, password)
    log_event("register", owner.username, "User registered")
    logger.info(f"Registered user {owner.username} (id={owner.id})")

    return jsonify({"message": "User registered successfully"}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Authenticate a user and issue a new credential bundle.
    Any bundle the user already had stops working.
    """
    data = _json_body()
    username = data.get("username")
    password = data.get("password")

    # Type validation - prevent type confusion attacks
    if not isinstance(username, str) or not isinstance(password, str):
        raise ValidationError("Username and password must be strings")

    if len(username) > MAX_USERNAME_LENGTH or len(password) > MAX_PASSWORD_LENGTH:
        raise ValidationError("Credentials exceed maximum length")

    services = get_services()
    owner = services.users.authenticate(username, password)
    if owner is None:
        log_event("login", username, "Login failed", "failed")
        raise AuthenticationError("Invalid username or password")

    bundle = services.sessions.login(owner.id, owner.username)
    return jsonify(bundle.to_response("User logged in successfully"))


# =============================================================================
# Bundle Management
# =============================================================================

@auth_bp.route('/refresh', methods=['POST'])
def refresh():
    """Rotate the caller's bundle, keeping its refresh secret."""
    data = _json_body()
    username = data.get("username")
    refresh_secret = data.get("refreshToken")

    if not isinstance(username, str) or not isinstance(refresh_secret, str):
        raise ValidationError("Invalid request body")

    services = get_services()
    user = services.users.get_by_username(username)
    if user is None:
        # Unknown user answers exactly like a bad secret
        logger.debug("Refresh requested for unknown username")
        raise AuthenticationError("Invalid refresh token")

    try:
        bundle = services.sessions.refresh(refresh_secret, user["id"], username)
    except CredentialError as e:
        raise AuthenticationError("Invalid refresh token") from e

    return jsonify(bundle.to_response("Tokens refreshed successfully"))


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Delete the caller's bundle. Requires both credential headers."""
    access, anti_forgery = read_credential_headers()
    get_services().sessions.logout(access, anti_forgery)
    return jsonify({"message": "User logged out successfully"})


# =============================================================================
# Protected Resources
# =============================================================================

@auth_bp.route('/protected', methods=['GET', 'POST'])
@bundle_required
def protected():
    return jsonify({
        "message": f"Protected resource accessed by user: {g.current_user}"
    })


@auth_bp.route('/session', methods=['GET'])
@bundle_required
def session_info():
    """Metadata about the caller's current bundle (never the secrets)."""
    bundle = get_services().sessions.current_bundle(g.current_user_id)
    if bundle is None:
        raise InvalidCredential()
    return jsonify({
        "username": g.current_user,
        "createdAt": to_iso(bundle.created_at),
        "expiresAt": to_iso(bundle.expires_at),
    })
