"""
Centralized error handling for the token service.

Error Hierarchy:
- APIError (4xx/503): Expected errors with messages safe to expose to clients
- InternalError (5xx): Unexpected errors - never expose internal details

Credential failures share one generic message per category so a caller can
never learn which part of a presented credential was wrong.

Usage:
    from core.errors import InvalidCredential, safe_error_response

    # For expected errors (4xx) - raise with safe message
    raise InvalidCredential()

    # For unexpected errors (5xx) - use safe_error_response
    except Exception as e:
        return safe_error_response(e, "issue bundle")
"""

import logging
import uuid
from flask import jsonify
from typing import Tuple, Any

logger = logging.getLogger(__name__)


# =============================================================================
# Exception Classes (4xx - Expected Errors)
# =============================================================================

class APIError(Exception):
    """
    Base class for expected API errors (4xx status codes).
    Messages are safe to expose to clients.
    """
    status_code = 400
    default_message = "Bad request"

    def __init__(self, message: str = None, status_code: int = None):
        super().__init__(message or self.default_message)
        if status_code is not None:
            self.status_code = status_code


class ValidationError(APIError):
    """Request validation failed (400)."""
    status_code = 400
    default_message = "Invalid request body"


class AuthenticationError(APIError):
    """Authentication failed (401)."""
    status_code = 401
    default_message = "Unauthorized"


class ConflictError(APIError):
    """Resource conflict (409)."""
    status_code = 409
    default_message = "Conflict"


class ServiceUnavailableError(APIError):
    """Service temporarily unavailable (503)."""
    status_code = 503
    default_message = "Service temporarily unavailable"


# =============================================================================
# Credential Errors (token lifecycle)
# =============================================================================

class CredentialError(AuthenticationError):
    """Base for every failure to authenticate with a presented bundle."""


class MissingCredential(CredentialError):
    """A required secret was omitted. Resubmitting with it may succeed."""
    default_message = "Missing authentication tokens"


class InvalidCredential(CredentialError):
    """Unknown secret, owner mismatch, or anti-forgery mismatch. Terminal."""
    default_message = "Invalid authentication tokens"


class CredentialExpired(CredentialError):
    """Access secret is past its expiry; the client must refresh."""
    default_message = "Access token expired"


class StoreUnavailable(ServiceUnavailableError):
    """The bundle store could not complete the call. Retry is the caller's choice."""
    default_message = "Credential store unavailable"


# =============================================================================
# Internal Error (5xx - Never Expose)
# =============================================================================

class InternalError(Exception):
    """
    Unexpected internal errors (5xx status codes).
    Message should NEVER be exposed to clients.
    """
    pass


class GenerationFailed(InternalError):
    """A credential bundle could not be built."""


class EntropyUnavailable(GenerationFailed):
    """The OS randomness source could not supply bytes."""


# =============================================================================
# Safe Error Response Helper
# =============================================================================

def safe_error_response(
    e: Exception,
    operation: str,
    include_error_id: bool = True
) -> Tuple[Any, int]:
    """
    Create a safe error response for API endpoints.

    For APIError subclasses (expected errors):
        - Returns the error message (safe to expose)
        - Uses the exception's status_code
        - Logs at WARNING level

    For all other exceptions (unexpected errors):
        - Returns generic message (never exposes internal details)
        - Returns 500 status code
        - Logs full exception at ERROR level

    Args:
        e: The exception that was caught
        operation: Human-readable description of what failed (e.g., "rotate bundle")
        include_error_id: Whether to include error_id for support reference

    Returns:
        Tuple of (json_response, status_code)
    """
    error_id = str(uuid.uuid4())[:8] if include_error_id else None
    log_extra = {'error_id': error_id} if error_id else {}

    if isinstance(e, APIError):
        # Expected error - safe to expose message
        logger.warning(f"{operation}: {e}", extra=log_extra)
        response = {"error": str(e)}
        status_code = e.status_code
    else:
        # Unexpected error - log full details, return generic message
        logger.error(f"{operation} failed", exc_info=e, extra=log_extra)
        response = {"error": "Internal server error"}
        status_code = 500

    if error_id:
        response["error_id"] = error_id
    return jsonify(response), status_code


def register_error_handlers(app):
    """
    Register Flask error handlers for the error hierarchy.

    Call this in your Flask app factory:
        from core.errors import register_error_handlers
        register_error_handlers(app)
    """

    @app.errorhandler(APIError)
    def handle_api_error(e):
        """Handle all APIError subclasses."""
        return safe_error_response(e, "API error")

    @app.errorhandler(InternalError)
    def handle_internal_error(e):
        """Handle generation and other internal faults."""
        return safe_error_response(e, "request")
