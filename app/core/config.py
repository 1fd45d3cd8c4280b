"""Application configuration loaded from environment variables.

Settings for database, API, identity verification, object storage and
onboarding. Uses pydantic-settings for validation and .env file support.
"""

import uuid

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "teachers_gallery_dev_password"  # nosec B105

# Minimum length for AUTH_SECRET in production (256 bits = 32 bytes)
_MIN_AUTH_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "teachers_gallery"
    database_user: str = "teachers_gallery_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD
    # Full async URL override (e.g. sqlite+aiosqlite:///./dev.db)
    database_dsn: str | None = None

    # API
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8000

    # CORS (Security)
    # CRITICAL: Never set to ["*"] when allow_credentials=True
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Identity
    # Tokens are issued by the hosted identity provider; we only verify them.
    # Local mode: auth_enabled=False, DEFAULT_USER_ID supplies the identity.
    default_user_id: uuid.UUID | None = None
    default_user_email: str | None = None
    auth_enabled: bool = False
    auth_secret: SecretStr = SecretStr("")
    auth_audience: str = "authenticated"
    auth_issuer: str | None = None
    auth_cookie_name: str = "tg-access-token"

    # Object storage
    storage_url: str = ""
    storage_service_key: SecretStr = SecretStr("")
    avatar_bucket: str = "avatars"
    avatar_max_bytes: int = 2 * 1024 * 1024
    storage_timeout_seconds: float = 10.0

    # Onboarding
    onboarding_draft_ttl_minutes: int = 60

    # Profile / session reads
    profile_fetch_timeout_seconds: float = 15.0
    default_avatar_url: str = "/default-avatar.png"

    # Rate Limiting (Security)
    # Format: "count/period" (e.g., "10/minute", "100/hour")
    rate_limit_writes: str = "30/minute"  # onboarding step submission
    rate_limit_uploads: str = "10/minute"  # avatar upload
    rate_limit_enabled: bool = True  # Disable for testing

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        if self.database_dsn:
            return self.database_dsn
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def database_url_sync(self) -> str:
        """Sync database URL for Alembic."""
        return (
            f"postgresql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def storage_configured(self) -> bool:
        """Whether an object store is configured."""
        return bool(self.storage_url)

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate production security requirements.

        Security: Prevents deployment with known insecure defaults.
        Checks:
        - CORS must not use wildcard origin (incompatible with credentials)
        - Avatar size limit and read timeout must be positive
        - Database password must not be the default in production
        - AUTH_SECRET must be set and >= 32 chars when auth is enabled in production
        """
        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "This application uses credentials (cookies) which are "
                "incompatible with wildcard CORS origins."
            )
            raise ValueError(msg)

        if self.avatar_max_bytes <= 0:
            msg = f"AVATAR_MAX_BYTES must be positive. Got: {self.avatar_max_bytes}"
            raise ValueError(msg)
        if self.profile_fetch_timeout_seconds <= 0:
            msg = (
                "PROFILE_FETCH_TIMEOUT_SECONDS must be positive. "
                f"Got: {self.profile_fetch_timeout_seconds}"
            )
            raise ValueError(msg)

        if self.environment == "production":
            if (
                self.database_dsn is None
                and self.database_password == _INSECURE_DEFAULT_PASSWORD
            ):
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            if self.auth_enabled:
                secret_value = self.auth_secret.get_secret_value()
                if not secret_value:
                    msg = (
                        "AUTH_SECRET must be set when AUTH_ENABLED=true in production. "
                        "Use the JWT secret of the identity provider project."
                    )
                    raise ValueError(msg)
                if len(secret_value) < _MIN_AUTH_SECRET_LENGTH:
                    msg = (
                        f"AUTH_SECRET must be at least {_MIN_AUTH_SECRET_LENGTH} "
                        "characters for adequate security."
                    )
                    raise ValueError(msg)

        return self


settings = Settings()
