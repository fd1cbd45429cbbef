"""Unit tests for infrastructure settings."""

import pytest
from pydantic import ValidationError

from infrastructure.settings import (
    AuthSettings,
    CORSSettings,
    DatabaseSettings,
    RealtimeSettings,
)


class TestDatabaseSettingsPoolConfiguration:
    """Tests for connection pool configuration."""

    def test_default_pool_settings(self):
        """Should have sensible pool defaults."""
        settings = DatabaseSettings()
        assert settings.pool_min_connections >= 1
        assert settings.pool_max_connections >= settings.pool_min_connections
        assert settings.pool_max_connections <= 20

    def test_pool_max_must_be_greater_than_or_equal_to_min(self):
        """Should validate max >= min."""
        with pytest.raises(ValidationError) as exc_info:
            DatabaseSettings(pool_min_connections=10, pool_max_connections=5)

        assert "pool_max_connections" in str(exc_info.value)

    def test_pool_max_equal_to_min_is_valid(self):
        """Should allow max == min."""
        settings = DatabaseSettings(pool_min_connections=5, pool_max_connections=5)
        assert settings.pool_max_connections == 5

    def test_pool_min_must_be_positive(self):
        """Pool min connections must be >= 1."""
        with pytest.raises(ValidationError):
            DatabaseSettings(pool_min_connections=0)

    def test_connection_string_omits_password(self):
        """The loggable connection string never contains the password."""
        settings = DatabaseSettings(password="hunter2", host="db", database="tearoom")
        assert "hunter2" not in settings.connection_string
        assert settings.connection_string.endswith("@db:5432/tearoom")


class TestAuthSettings:
    """Tests for token and session settings."""

    def test_defaults(self, monkeypatch):
        """Defaults follow the documented token lifetimes."""
        monkeypatch.delenv("TEAROOM_AUTH_SECRET_KEY", raising=False)
        settings = AuthSettings(_env_file=None)
        assert settings.secret_key.get_secret_value() == ""
        assert settings.access_token_ttl_minutes == 15
        assert settings.refresh_token_ttl_days == 30
        assert settings.reuse_detection_enabled is True
        assert settings.require_email_verified is True

    def test_from_environment(self, monkeypatch):
        """Settings are read from TEAROOM_AUTH_* variables."""
        monkeypatch.setenv("TEAROOM_AUTH_SECRET_KEY", "from-env")
        monkeypatch.setenv("TEAROOM_AUTH_REUSE_DETECTION_ENABLED", "false")
        settings = AuthSettings(_env_file=None)
        assert settings.secret_key.get_secret_value() == "from-env"
        assert settings.reuse_detection_enabled is False

    def test_secret_key_is_masked(self):
        """The signing key does not leak into reprs."""
        settings = AuthSettings(secret_key="do-not-print")
        assert "do-not-print" not in repr(settings)

    def test_refresh_must_outlive_access(self):
        """A refresh token shorter than an access token is rejected."""
        with pytest.raises(ValidationError):
            AuthSettings(access_token_ttl_minutes=24 * 60, refresh_token_ttl_days=1)

    def test_retry_attempts_bounded(self):
        with pytest.raises(ValidationError):
            AuthSettings(store_retry_attempts=0)


class TestRealtimeSettings:
    """Tests for realtime hub settings."""

    def test_defaults(self):
        settings = RealtimeSettings()
        assert settings.queue_size == 256
        assert settings.overflow_policy == "drop_oldest"

    def test_unknown_overflow_policy(self):
        """Only the two supported policies are accepted."""
        with pytest.raises(ValidationError):
            RealtimeSettings(overflow_policy="block")

    def test_queue_size_positive(self):
        with pytest.raises(ValidationError):
            RealtimeSettings(queue_size=0)


class TestCORSSettings:
    """Tests for CORS origin parsing."""

    def test_origin_list(self):
        """Origins are split on commas and blanks dropped."""
        settings = CORSSettings(origins="https://a.example, https://b.example,,")
        assert settings.origin_list == ["https://a.example", "https://b.example"]
