"""Configuration management using pydantic-settings."""

import logging
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class DatabaseSettings(BaseSettings):
    """Database configuration."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_", case_sensitive=False)

    url: str = Field(..., description="Database connection URL")
    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=20, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=3600, description="Pool recycle time in seconds")
    echo: bool = Field(default=False, description="Echo SQL queries (for debugging)")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate database URL format."""
        allowed = (
            "postgresql://",
            "postgresql+psycopg2://",
            "postgresql+asyncpg://",
            "sqlite+aiosqlite://",
        )
        if not v.startswith(allowed):
            raise ValueError(
                "Database URL must start with postgresql://, postgresql+psycopg2://, "
                "postgresql+asyncpg:// or sqlite+aiosqlite://"
            )
        return v

    @property
    def is_sqlite(self) -> bool:
        """Check if the configured database is SQLite (local development and tests)."""
        return self.url.startswith("sqlite")

    @property
    def async_url(self) -> str:
        """URL with the asyncpg driver; Postgres URLs without a driver are mapped over."""
        for prefix in ("postgresql+psycopg2://", "postgresql://"):
            if self.url.startswith(prefix):
                return "postgresql+asyncpg://" + self.url[len(prefix) :]
        return self.url


class Auth0Settings(BaseSettings):
    """Auth0 configuration (token verification and Management API)."""

    model_config = SettingsConfigDict(env_prefix="AUTH0_", case_sensitive=False)

    domain: Optional[str] = Field(default=None, description="Auth0 tenant domain, e.g. ausa.us.auth0.com")
    audience: Optional[str] = Field(default=None, description="API audience expected in access tokens")
    mgmt_client_id: Optional[str] = Field(default=None, description="Management API client ID")
    mgmt_client_secret: Optional[str] = Field(default=None, description="Management API client secret")
    db_connection: str = Field(
        default="Username-Password-Authentication",
        description="Database connection used when creating invited users",
    )
    email_claim_namespace: str = Field(
        default="https://ausa.io",
        description="Namespace prefix of the custom email claims",
    )
    jwks_cache_seconds: int = Field(default=3600, description="How long fetched signing keys are cached")

    @property
    def issuer(self) -> Optional[str]:
        """Expected token issuer."""
        if not self.domain:
            return None
        return f"https://{self.domain}/"

    @property
    def jwks_url(self) -> Optional[str]:
        """JSON Web Key Set URL for the tenant."""
        if not self.domain:
            return None
        return f"https://{self.domain}/.well-known/jwks.json"

    @property
    def is_configured(self) -> bool:
        """Check if token verification is configured."""
        return bool(self.domain and self.audience)

    @property
    def is_management_configured(self) -> bool:
        """Check if the Management API credentials are configured."""
        return bool(self.domain and self.mgmt_client_id and self.mgmt_client_secret)


class ResendSettings(BaseSettings):
    """Resend (transactional email) configuration."""

    model_config = SettingsConfigDict(env_prefix="RESEND_", case_sensitive=False, populate_by_name=True)

    api_key: Optional[str] = Field(default=None, description="Resend API key")
    from_email: Optional[str] = Field(
        default=None,
        validation_alias="RESEND_FROM",
        description="Sender address, e.g. 'Access USA <admin@ausa.io>'",
    )
    api_url: str = Field(default="https://api.resend.com", description="Resend API base URL")
    timeout: float = Field(default=15.0, description="Request timeout in seconds")

    @property
    def is_configured(self) -> bool:
        """Check if email sending is configured."""
        return bool(self.api_key and self.from_email)


class PortalSettings(BaseSettings):
    """Public URLs referenced from outgoing emails."""

    model_config = SettingsConfigDict(env_prefix="PORTAL_", case_sensitive=False)

    admin_app_url: str = Field(
        default="https://ausa.io/admin",
        description="Where users land after setting their password",
    )
    admin_portal_url: str = Field(default="https://ausa.io/admin", description="Admin portal URL")
    diploma_admin_url: str = Field(
        default="https://ausa.io/diploma/admin", description="Diploma admin shortcut URL"
    )
    diploma_portal_url: str = Field(default="https://ausa.io/diploma", description="Diploma portal URL")
    diploma_support_email: str = Field(default="support@ausa.io", description="Support contact")
    password_ticket_ttl_sec: int = Field(
        default=60 * 60 * 24 * 3, description="Lifetime of password-change tickets"
    )


class InboxSettings(BaseSettings):
    """Lead inbox configuration."""

    model_config = SettingsConfigDict(env_prefix="INBOX_", case_sensitive=False, populate_by_name=True)

    status_cache_ttl_seconds: float = Field(
        default=30.0, description="How long the status registry is cached in memory"
    )
    default_page_size: int = Field(default=25, description="Default page size for listings")
    max_page_size: int = Field(default=100, description="Maximum page size for listings")
    open_statuses_str: str = Field(
        default="new,submitted",
        validation_alias="INBOX_OPEN_STATUSES",
        description="Source statuses considered open (comma-separated string)",
    )
    initial_status: str = Field(default="new", description="Status assigned to newly created leads")

    @property
    def open_statuses(self) -> List[str]:
        """Get open statuses as a list."""
        return [s.strip() for s in self.open_statuses_str.split(",") if s.strip()]


class CorsSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        case_sensitive=False,
    )

    # Store as strings to avoid JSON parsing issues
    origins_str: str = Field(
        default="https://ausa.io,https://www.ausa.io,http://localhost:5173",
        alias="origins",
        description="Allowed CORS origins (comma-separated string)",
    )
    allow_credentials: bool = Field(default=True, description="Allow credentials in CORS")
    allow_methods_str: str = Field(
        default="GET,POST,PUT,PATCH,DELETE,OPTIONS",
        alias="allow_methods",
        description="Allowed HTTP methods (comma-separated string)",
    )
    allow_headers_str: str = Field(
        default="Authorization,Content-Type,Accept,X-Requested-With,X-Request-ID",
        alias="allow_headers",
        description="Allowed HTTP headers (comma-separated string)",
    )
    expose_headers_str: str = Field(
        default="X-Request-ID",
        alias="expose_headers",
        description="Headers readable by the browser (comma-separated string)",
    )
    max_age: int = Field(default=3600, description="CORS preflight cache max age in seconds")

    @property
    def origins(self) -> List[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.origins_str.split(",") if origin.strip()]

    @property
    def allow_methods(self) -> List[str]:
        """Get allowed HTTP methods as a list."""
        return [method.strip() for method in self.allow_methods_str.split(",") if method.strip()]

    @property
    def allow_headers(self) -> List[str]:
        """Get allowed HTTP headers as a list."""
        return [header.strip() for header in self.allow_headers_str.split(",") if header.strip()]

    @property
    def expose_headers(self) -> List[str]:
        """Get exposed headers as a list."""
        return [header.strip() for header in self.expose_headers_str.split(",") if header.strip()]


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = Field(default="admin-api", description="Application name")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    version: str = Field(
        default="unknown",
        validation_alias="RENDER_GIT_COMMIT",
        description="Deployed revision reported by /health",
    )

    # API settings
    api_prefix: str = Field(default="/api", description="API prefix")

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    auth0: Auth0Settings = Field(default_factory=Auth0Settings)
    resend: ResendSettings = Field(default_factory=ResendSettings)
    portal: PortalSettings = Field(default_factory=PortalSettings)
    inbox: InboxSettings = Field(default_factory=InboxSettings)
    cors: CorsSettings = Field(default_factory=CorsSettings)

    @field_validator("environment", mode="before")
    @classmethod
    def parse_environment(cls, v):
        """Parse environment from string."""
        if isinstance(v, str):
            try:
                return Environment(v.lower())
            except ValueError:
                return Environment.DEVELOPMENT
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    def validate_production_settings(self) -> None:
        """Validate that production settings are secure."""
        if self.is_production:
            if self.debug:
                raise ValueError("DEBUG must be False in production")
            if not self.auth0.is_configured:
                raise ValueError(
                    "AUTH0_DOMAIN and AUTH0_AUDIENCE must be set in production "
                    "(access tokens cannot be verified otherwise)."
                )
            if self.database.is_sqlite:
                raise ValueError("SQLite is only supported for local development and tests")
            if not self.resend.is_configured:
                logging.warning(
                    "RESEND_API_KEY / RESEND_FROM are not set in production; "
                    "replies and invite emails will fail."
                )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
        # Validate production settings
        try:
            _settings.validate_production_settings()
        except ValueError as e:
            logging.error(f"Configuration validation failed: {e}")
            if _settings.is_production:
                raise  # Fail fast in production
    return _settings
