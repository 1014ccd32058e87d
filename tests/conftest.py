"""Shared pytest fixtures for token auth tests."""
import os
import shutil
import sys
from datetime import datetime, timedelta, timezone

import pytest

# Add project root to path
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)

# ---------------------------------------------------------------------------
# Deterministic test environment - set BEFORE any api/config imports.
# TESTING disables rate limiting; JSON logs stay quiet below WARNING.
# ---------------------------------------------------------------------------
os.environ.setdefault('TESTING', 'true')
os.environ.setdefault('LOG_LEVEL', 'WARNING')
os.environ.setdefault('ENABLE_LOG_REDACTION', 'true')


class FakeClock:
    """Controllable UTC clock for issuer/authorizer tests."""

    def __init__(self, start=None):
        self.current = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.current

    def advance(self, seconds: float):
        self.current = self.current + timedelta(seconds=seconds)


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Reset cached settings and the audit trail between tests."""
    from config.settings import get_settings
    from core import clear_event_log

    get_settings.cache_clear()
    clear_event_log()
    yield
    get_settings.cache_clear()
    clear_event_log()


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def _template_db(tmp_path_factory):
    """Run Alembic migrations once per session to create a template DB.

    Other fixtures copy this template instead of re-running migrations.
    """
    template_dir = tmp_path_factory.mktemp("template")
    template_path = template_dir / "template.db"

    from alembic.config import Config
    from alembic import command

    alembic_cfg = Config(os.path.join(_PROJECT_ROOT, "alembic.ini"))
    alembic_cfg.set_main_option(
        "sqlalchemy.url", f"sqlite:///{template_path}"
    )
    alembic_cfg.set_main_option(
        "script_location", os.path.join(_PROJECT_ROOT, "alembic")
    )
    command.upgrade(alembic_cfg, "head")

    return template_path


@pytest.fixture
def db(tmp_path, _template_db):
    """Per-test DatabaseManager on a copy of the migrated template."""
    db_path = tmp_path / "test_auth.db"
    shutil.copy2(_template_db, db_path)

    from core.db import DatabaseManager
    manager = DatabaseManager(db_path=db_path)
    yield manager
    manager.close()


@pytest.fixture
def users(db):
    from auth.identity import UserRepository
    return UserRepository(db)


@pytest.fixture
def make_owner(users):
    """Factory: create a real user row and return its Owner."""
    counter = {"n": 0}

    def _make(username=None, password="correct-horse-battery"):
        counter["n"] += 1
        return users.create_user(username or f"testuser{counter['n']:03d}", password)

    return _make


@pytest.fixture(params=["memory", "sql"])
def store(request, db):
    """Every BundleStore implementation, so contract tests run against both."""
    if request.param == "memory":
        from auth.store import InMemoryBundleStore
        return InMemoryBundleStore()

    from auth.sql_store import SqlBundleStore
    sql_store = SqlBundleStore(db)
    sql_store.init_schema()
    return sql_store


# =============================================================================
# Token Lifecycle Fixtures
# =============================================================================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token_config():
    from auth.types import TokenConfig
    return TokenConfig(access_lifetime=timedelta(minutes=15))


@pytest.fixture
def issuer(token_config, clock):
    from auth.issuer import TokenIssuer
    return TokenIssuer(token_config, clock=clock)


@pytest.fixture
def sessions(store, token_config, clock):
    from auth.sessions import SessionService
    return SessionService.build(store, token_config, clock=clock)


# =============================================================================
# Flask Fixtures
# =============================================================================

@pytest.fixture
def app(db, clock):
    from api.app import create_app
    return create_app({'TESTING': True}, db=db, clock=clock)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def registered_user(client):
    """Register a user through the API and return its credentials."""
    creds = {"username": "apiuser01", "password": "s3cure-passw0rd"}
    response = client.post('/api/auth/register', json=creds)
    assert response.status_code == 201
    return creds


@pytest.fixture
def logged_in(client, registered_user):
    """Log in registered_user and return the login response body."""
    response = client.post('/api/auth/login', json=registered_user)
    assert response.status_code == 200
    return response.get_json()


@pytest.fixture
def auth_headers():
    """Build the two credential headers from a login/refresh response body."""
    def _headers(body: dict) -> dict:
        return {
            "X-ACCESS-TOKEN": body["accessToken"],
            "X-CSRF-TOKEN": body["csrfToken"],
        }
    return _headers
