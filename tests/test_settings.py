"""Tests for central configuration settings."""

import os
from datetime import timedelta
from unittest.mock import patch

import pytest

from auth.config import token_config_from_settings
from config.settings import (
    AppSettings,
    AuthSettings,
    DatabaseSettings,
    RateLimitSettings,
    get_settings,
)


class TestAuthSettings:
    def test_defaults_applied(self):
        settings = AuthSettings()
        assert settings.access_token_duration_seconds == 900
        assert settings.access_token_bytes == 32
        assert settings.refresh_token_bytes == 64
        assert settings.csrf_token_bytes == 32
        assert settings.min_username_length == 8
        assert settings.min_password_length == 8
        assert settings.access_header == "X-ACCESS-TOKEN"
        assert settings.csrf_header == "X-CSRF-TOKEN"

    def test_env_override(self):
        with patch.dict(os.environ, {
            "ACCESS_TOKEN_DURATION_SECONDS": "60",
            "MIN_PASSWORD_LENGTH": "12",
        }, clear=False):
            settings = AuthSettings()
            assert settings.access_token_duration_seconds == 60
            assert settings.min_password_length == 12

    def test_non_positive_duration_rejected(self):
        with patch.dict(os.environ, {"ACCESS_TOKEN_DURATION_SECONDS": "0"}, clear=False):
            with pytest.raises(ValueError, match="ACCESS_TOKEN_DURATION_SECONDS"):
                AuthSettings()

    def test_refresh_shorter_than_twice_access_rejected(self):
        with patch.dict(os.environ, {
            "ACCESS_TOKEN_BYTES": "32",
            "REFRESH_TOKEN_BYTES": "48",
        }, clear=False):
            with pytest.raises(ValueError, match="REFRESH_TOKEN_BYTES"):
                AuthSettings()

    def test_tiny_secrets_rejected(self):
        with patch.dict(os.environ, {"CSRF_TOKEN_BYTES": "8"}, clear=False):
            with pytest.raises(ValueError, match="at least 16 bytes"):
                AuthSettings()


class TestTokenConfigFromSettings:
    def test_maps_fields(self):
        with patch.dict(os.environ, {
            "ACCESS_TOKEN_DURATION_SECONDS": "120",
            "ACCESS_TOKEN_BYTES": "24",
            "REFRESH_TOKEN_BYTES": "48",
            "CSRF_TOKEN_BYTES": "16",
        }, clear=False):
            cfg = token_config_from_settings(AppSettings())
        assert cfg.access_lifetime == timedelta(seconds=120)
        assert (cfg.access_bytes, cfg.refresh_bytes, cfg.anti_forgery_bytes) == (24, 48, 16)


class TestDatabaseSettings:
    def test_auth_db_path_override(self, tmp_path):
        target = tmp_path / "custom.db"
        with patch.dict(os.environ, {"AUTH_DB_PATH": str(target)}, clear=False):
            assert DatabaseSettings().auth_db_path == target

    def test_database_url_default_none(self):
        env = os.environ.copy()
        env.pop("DATABASE_URL", None)
        with patch.dict(os.environ, env, clear=True):
            assert DatabaseSettings().database_url is None


class TestRateLimitSettings:
    def test_prefix(self):
        with patch.dict(os.environ, {"RATE_LIMIT_AUTH": "3 per minute"}, clear=False):
            assert RateLimitSettings().auth == "3 per minute"

    def test_defaults(self):
        env = {k: v for k, v in os.environ.items() if not k.startswith("RATE_LIMIT_")}
        with patch.dict(os.environ, env, clear=True):
            settings = RateLimitSettings()
            assert settings.auth == "10 per minute"
            assert settings.default == "500 per minute"
            assert settings.storage is None


class TestAppSettings:
    def test_testing_flag(self):
        with patch.dict(os.environ, {"TESTING": "true"}, clear=False):
            assert AppSettings().testing is True

    def test_server_addr(self):
        with patch.dict(os.environ, {"SERVER_HOST": "0.0.0.0", "SERVER_PORT": "9000"}, clear=False):
            assert AppSettings().server_addr == "0.0.0.0:9000"


class TestGetSettings:
    def test_singleton(self):
        s1 = get_settings()
        s2 = get_settings()
        assert s1 is s2

    def test_cache_clear_resets(self):
        s1 = get_settings()
        get_settings.cache_clear()
        s2 = get_settings()
        assert s2 is not s1

    def test_nested_groups_initialized(self):
        s = get_settings()
        assert s.auth is not None
        assert s.database is not None
        assert s.server is not None
        assert s.rate_limit is not None
