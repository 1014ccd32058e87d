"""
Route blueprints for the token API.
"""

from .health import health_bp
from .auth_routes import auth_bp
from .metrics_routes import metrics_bp

__all__ = ['health_bp', 'auth_bp', 'metrics_bp']
