from functools import lru_cache
from urllib.parse import urlparse

from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Agency Ops"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True

    # Security
    log_user_emails: bool = False  # Keep off in production (GDPR)
    allowed_app_url_domains: list[str] = ["localhost", "127.0.0.1"]

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_statement_cache_size: int = 0  # 0 = safe behind pgbouncer
    database_ssl_mode: str = "disable"  # disable, prefer, require, verify-ca, verify-full
    database_migrations_url: str | None = None

    # Lifecycle transactions
    store_transaction_timeout_ms: int = 10_000
    store_probe_timeout_seconds: float = 5.0
    health_recovery_attempts: int = 3
    health_recovery_backoff_seconds: float = 0.1

    # Identity provider (GoTrue-compatible admin API)
    identity_provider_url: str
    identity_service_key: str
    identity_jwt_secret: str
    identity_jwt_algorithm: str = "HS256"
    identity_jwt_audience: str = "authenticated"
    identity_request_timeout_seconds: float = 10.0

    # Invites
    invite_expire_days: int = 7
    temporary_credential_length: int = 16

    # Shutdown
    shutdown_grace_period: int = 30

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Metrics
    metrics_api_key: str | None = None  # If set, /metrics requires this key

    # Email (Resend)
    resend_api_key: str | None = None  # If not set, delivery cannot be confirmed
    email_from: str = "noreply@example.com"
    email_send_timeout_seconds: int = 10
    app_url: str = "http://localhost:3000"  # Frontend URL for sign-in links

    @field_validator("identity_jwt_secret")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if v == "change-this-to-a-secure-random-string":
            raise ValueError(
                "IDENTITY_JWT_SECRET must be changed from default value. "
                "Copy the JWT secret from the identity provider project settings."
            )
        if len(v) < 32:
            raise ValueError("IDENTITY_JWT_SECRET must be at least 32 characters")
        return v

    @field_validator("temporary_credential_length")
    @classmethod
    def validate_temporary_credential_length(cls, v: int) -> int:
        if v < 12:
            raise ValueError("TEMPORARY_CREDENTIAL_LENGTH must be at least 12")
        return v

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Reject wildcards, credentials are allowed on every origin."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v

    @field_validator("app_url")
    @classmethod
    def validate_app_url(cls, v: str, info: ValidationInfo) -> str:
        """APP_URL ends up in invitation emails, so it must be an allowed domain."""
        allowed = info.data.get("allowed_app_url_domains", ["localhost", "127.0.0.1"])
        hostname = urlparse(v).hostname or ""

        if not any(hostname == domain or hostname.endswith(f".{domain}") for domain in allowed):
            raise ValueError(
                f"APP_URL domain '{hostname}' not in allowed list. "
                f"Add it to ALLOWED_APP_URL_DOMAINS or use: {allowed}"
            )
        return v

    @property
    def sign_in_url(self) -> str:
        return f"{self.app_url.rstrip('/')}/auth/signin"


@lru_cache
def get_settings() -> Settings:
    return Settings()
