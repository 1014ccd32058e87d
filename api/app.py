"""
Flask Application Factory.

Creates and configures the Flask app with its extensions, blueprints, and
the explicitly owned database, user repository and session service.
"""

import uuid
import time
import logging

from flask import Flask, jsonify, request, g
from werkzeug.exceptions import HTTPException

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger('tokenauth.api')


def create_app(config=None, *, store=None, db=None, settings=None, clock=None):
    """Create and configure the Flask application.

    Args:
        config: Optional dict of config overrides (e.g. {'TESTING': True}).
        store: BundleStore to use (defaults to a SqlBundleStore on db).
        db: DatabaseManager to use (defaults to one built from settings).
        settings: AppSettings override (defaults to get_settings()).
        clock: Callable returning the current UTC datetime (tests only).

    Returns:
        Configured Flask app instance.
    """
    from config.settings import get_settings
    settings = settings or get_settings()

    app = Flask(__name__)

    if settings.testing:
        app.config['TESTING'] = True
    if config:
        app.config.update(config)

    # Configure logging
    from api.logging_config import configure_logging
    configure_logging(app, settings)

    # Initialize extensions (CORS, limiter)
    from api.extensions import init_extensions
    init_extensions(app, settings)

    # Register custom error handlers for APIError hierarchy
    from core.errors import register_error_handlers
    register_error_handlers(app)

    # Build the auth services this app owns
    _init_services(app, settings, store=store, db=db, clock=clock)

    # Register blueprints
    _register_blueprints(app, settings)

    # Register middleware
    _register_middleware(app)

    # Register global error handlers
    _register_error_handlers(app)

    return app


def _init_services(app, settings, store=None, db=None, clock=None):
    """Create the database, stores and session service for this app."""
    from auth import (
        SessionService,
        SqlBundleStore,
        UserRepository,
        token_config_from_settings,
    )
    from api.extensions import AuthServices, EXTENSION_KEY
    from core.db import DatabaseManager
    from core.timestamps import now

    if db is None:
        db = DatabaseManager.from_settings(settings)

    users = UserRepository(db)
    users.init_schema()

    if store is None:
        store = SqlBundleStore(db)
    if isinstance(store, SqlBundleStore):
        store.init_schema()

    sessions = SessionService.build(
        store,
        token_config_from_settings(settings),
        clock=clock or now,
    )

    app.extensions[EXTENSION_KEY] = AuthServices(
        settings=settings,
        db=db,
        users=users,
        sessions=sessions,
    )
    logger.info(
        f"Auth services ready (store={type(store).__name__}, "
        f"backend={'postgresql' if db.use_postgres else 'sqlite'})"
    )


def _register_blueprints(app, settings):
    """Register all route blueprints."""
    from api import extensions

    # Health checks
    from api.routes.health import health_bp
    app.register_blueprint(health_bp)

    # Auth
    from api.routes.auth_routes import auth_bp
    extensions.limiter.limit(settings.rate_limit.auth)(auth_bp)
    app.register_blueprint(auth_bp)

    # Metrics
    from api.routes.metrics_routes import metrics_bp
    app.register_blueprint(metrics_bp)

    # Limiter exemptions for metrics/health
    extensions.limiter.exempt(health_bp)
    extensions.limiter.exempt(metrics_bp)


def _register_middleware(app):
    """Register request tracking and security middleware."""

    @app.before_request
    def before_request_tracking():
        """Assign request ID and start the request timer."""
        g.request_id = request.headers.get('X-Request-ID', str(uuid.uuid4())[:8])
        g.start_time = time.time()

    @app.after_request
    def after_request_tracking(response):
        """Log request completion with timing and add security headers."""
        duration_ms = 0
        if hasattr(g, 'start_time'):
            duration_ms = (time.time() - g.start_time) * 1000

        if hasattr(g, 'request_id'):
            response.headers['X-Request-ID'] = g.request_id

        log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
        if request.path in ['/healthz', '/readyz', '/metrics']:
            log_level = logging.DEBUG

        logger.log(
            log_level,
            f"{request.method} {request.path} -> {response.status_code} ({duration_ms:.1f}ms)",
            extra={
                'request_id': getattr(g, 'request_id', 'unknown'),
                'method': request.method,
                'endpoint': request.path,
                'status_code': response.status_code,
                'duration_ms': round(duration_ms, 2),
                'remote_addr': request.remote_addr,
                'user': getattr(g, 'current_user', None),
            }
        )

        # Security headers
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response.headers['Cache-Control'] = 'no-store'
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        return response


def _register_error_handlers(app):
    """Register global exception handler."""

    @app.errorhandler(Exception)
    def handle_exception(e):
        # 404/405 and friends keep their own status
        if isinstance(e, HTTPException):
            return e

        logger.exception(
            f"Unhandled exception: {type(e).__name__}",
            extra={
                'request_id': getattr(g, 'request_id', 'unknown'),
                'method': request.method,
                'endpoint': request.path,
                'remote_addr': request.remote_addr,
            }
        )
        return jsonify({
            'error': 'Internal server error',
            'request_id': getattr(g, 'request_id', 'unknown'),
        }), 500
