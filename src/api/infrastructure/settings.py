"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        TEAROOM_DB_HOST: Database host (default: localhost)
        TEAROOM_DB_PORT: Database port (default: 5432)
        TEAROOM_DB_DATABASE: Database name (default: tearoom)
        TEAROOM_DB_USERNAME: Database user (default: tearoom)
        TEAROOM_DB_PASSWORD: Database password (required in production)
        TEAROOM_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        TEAROOM_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
    """

    model_config = SettingsConfigDict(
        env_prefix="TEAROOM_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="tearoom", description="Database name")
    username: str = Field(default="tearoom", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_min_connections: int = Field(
        default=2,
        description="Minimum connections in pool",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class AuthSettings(BaseSettings):
    """Session and token settings.

    Environment variables:
        TEAROOM_AUTH_SECRET_KEY: HS256 signing key for access tokens (required)
        TEAROOM_AUTH_ISSUER: iss claim (default: tea-management-system)
        TEAROOM_AUTH_AUDIENCE: aud claim (default: tea-management-api)
        TEAROOM_AUTH_ACCESS_TOKEN_TTL_MINUTES: Access token lifetime (default: 15)
        TEAROOM_AUTH_REFRESH_TOKEN_TTL_DAYS: Refresh token lifetime (default: 30)
        TEAROOM_AUTH_STORE_TIMEOUT_SECONDS: Refresh record lookup timeout (default: 2.0)
        TEAROOM_AUTH_STORE_RETRY_ATTEMPTS: Attempts on transient failure (default: 3)
        TEAROOM_AUTH_STORE_RETRY_BACKOFF_SECONDS: Base retry delay (default: 0.05)
        TEAROOM_AUTH_REUSE_DETECTION_ENABLED: Revoke the whole lineage when a
            revoked refresh token is replayed (default: true)
        TEAROOM_AUTH_REQUIRE_EMAIL_VERIFIED: Reject unverified accounts (default: true)
    """

    model_config = SettingsConfigDict(
        env_prefix="TEAROOM_AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="Signing key for access tokens",
    )
    issuer: str = Field(default="tea-management-system", description="JWT issuer")
    audience: str = Field(default="tea-management-api", description="JWT audience")
    algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_ttl_minutes: int = Field(
        default=15,
        description="Access token lifetime in minutes",
        ge=1,
        le=24 * 60,
    )
    refresh_token_ttl_days: int = Field(
        default=30,
        description="Refresh token lifetime in days",
        ge=1,
        le=365,
    )
    store_timeout_seconds: float = Field(
        default=2.0,
        description="Timeout for refresh record lookups",
        gt=0,
    )
    store_retry_attempts: int = Field(
        default=3,
        description="Attempts for store operations failing transiently",
        ge=1,
        le=10,
    )
    store_retry_backoff_seconds: float = Field(
        default=0.05,
        description="Base delay between transient-failure retries",
        ge=0,
    )
    reuse_detection_enabled: bool = Field(
        default=True,
        description="Revoke the token lineage when a revoked token is replayed",
    )
    require_email_verified: bool = Field(
        default=True,
        description="Reject logins from accounts with unverified email",
    )

    @model_validator(mode="after")
    def validate_refresh_outlives_access(self) -> "AuthSettings":
        """Validate refresh tokens live longer than access tokens."""
        if self.refresh_token_ttl_days * 24 * 60 <= self.access_token_ttl_minutes:
            raise ValueError(
                "refresh_token_ttl_days must exceed access_token_ttl_minutes"
            )
        return self


class RealtimeSettings(BaseSettings):
    """Realtime hub settings.

    Environment variables:
        TEAROOM_REALTIME_QUEUE_SIZE: Outbound queue bound per connection (default: 256)
        TEAROOM_REALTIME_OVERFLOW_POLICY: drop_oldest or disconnect
            (default: drop_oldest)
        TEAROOM_REALTIME_SEND_TIMEOUT_SECONDS: Per-message send timeout (default: 10)
    """

    model_config = SettingsConfigDict(
        env_prefix="TEAROOM_REALTIME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    queue_size: int = Field(
        default=256,
        description="Maximum pending events per connection",
        ge=1,
        le=10_000,
    )
    overflow_policy: Literal["drop_oldest", "disconnect"] = Field(
        default="drop_oldest",
        description="What to do when a connection's queue is full",
    )
    send_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for a single send before the connection is dropped",
        gt=0,
    )


class CORSSettings(BaseSettings):
    """CORS settings for the browser clients.

    Environment variables:
        TEAROOM_CORS_ORIGINS: Comma-separated list of allowed origins
    """

    model_config = SettingsConfigDict(
        env_prefix="TEAROOM_CORS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    origins: str = Field(
        default="http://localhost:5173,http://localhost:5174,http://localhost:5175",
        description="Comma-separated list of allowed origins",
    )

    @property
    def origin_list(self) -> list[str]:
        """Allowed origins as a list."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_prefix="TEAROOM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Tearoom API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Minimum log level")

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def auth(self) -> AuthSettings:
        """Get auth settings."""
        return get_auth_settings()

    @property
    def realtime(self) -> RealtimeSettings:
        """Get realtime settings."""
        return get_realtime_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_auth_settings() -> AuthSettings:
    """Get cached auth settings."""
    return AuthSettings()


@lru_cache
def get_realtime_settings() -> RealtimeSettings:
    """Get cached realtime settings."""
    return RealtimeSettings()


@lru_cache
def get_cors_settings() -> CORSSettings:
    """Get cached CORS settings."""
    return CORSSettings()
