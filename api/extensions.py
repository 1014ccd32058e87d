"""
Flask extension instances.

Centralized extension objects initialized via init_extensions(app).
Import these objects in blueprints instead of creating new instances.
"""

import logging
from dataclasses import dataclass

from flask import current_app, jsonify
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from auth import SessionService, UserRepository
from config.settings import AppSettings, get_settings
from core import log_event
from core.db import DatabaseManager

logger = logging.getLogger(__name__)

limiter = None  # Created in init_extensions with full config

EXTENSION_KEY = "tokenauth"


@dataclass
class AuthServices:
    """Per-app service objects, stored in app.extensions[EXTENSION_KEY]."""
    settings: AppSettings
    db: DatabaseManager
    users: UserRepository
    sessions: SessionService


def get_services() -> AuthServices:
    """Return the services of the app handling the current request."""
    return current_app.extensions[EXTENSION_KEY]

_DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8080",
    "http://127.0.0.1:8080",
]


def _allowed_origins(settings) -> list[str]:
    raw = settings.server.cors_origins
    if raw:
        return [o.strip() for o in raw.split(",") if o.strip()]
    return _DEFAULT_ORIGINS


def init_extensions(app, settings=None):
    """Initialize CORS and the rate limiter with the app instance.

    Args:
        app: Flask application instance
        settings: AppSettings override (defaults to get_settings())
    """
    settings = settings or get_settings()

    # The custom credential headers must be readable by browser clients
    CORS(
        app,
        origins=_allowed_origins(settings),
        expose_headers=[settings.auth.access_header, settings.auth.csrf_header],
    )

    if app.config.get("TESTING") or settings.testing:
        app.config.setdefault("RATELIMIT_ENABLED", False)

    # Rate limiter - must be created with all config, then assigned to module-level
    global limiter
    limiter = Limiter(
        key_func=get_remote_address,
        app=app,
        default_limits=[settings.rate_limit.default],
        storage_uri=settings.rate_limit.storage or "memory://",
        strategy="moving-window",
    )

    @app.errorhandler(429)
    def ratelimit_handler(e):
        log_event("rate_limit", "system", f"Rate limit exceeded: {e.description}", "warning")
        return jsonify({
            "error": "Rate limit exceeded",
            "message": str(e.description),
        }), 429

    return limiter
