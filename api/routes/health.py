"""
Health check endpoints for the token API.

Provides Kubernetes-compatible liveness and readiness probes.
"""

import os
import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify

from api.extensions import get_services

logger = logging.getLogger(__name__)

# Create blueprint
health_bp = Blueprint('health', __name__)


def check_database_health() -> tuple[bool, str]:
    """Check auth database connectivity."""
    db = get_services().db
    try:
        db.ping()
        return True, "connected"
    except db.driver_errors as e:
        logger.warning(f"Database health check failed: {e}")
        return False, "connection failed"


@health_bp.route('/healthz')
def liveness():
    """
    Liveness probe - is the process running?

    Used by Kubernetes to determine if container should be restarted.
    This endpoint is exempt from rate limiting.
    """
    return jsonify({
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "tokenauth-api",
        "version": os.getenv("APP_VERSION", "1.0.0"),
    })


@health_bp.route('/readyz')
def readiness():
    """
    Readiness probe - can the service reach its credential store?

    Every authenticated request needs the database, so it is the only
    critical dependency.
    """
    db_ok, db_msg = check_database_health()
    checks = {"database": {"healthy": db_ok, "message": db_msg}}

    return jsonify({
        "status": "ok" if db_ok else "unavailable",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }), 200 if db_ok else 503
