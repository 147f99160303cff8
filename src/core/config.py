"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="eMarket API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3002)

    # Document store layout
    app_id: str = Field(
        default="default-app-id",
        description="Application namespace; all documents live under artifacts/{app_id}",
    )
    store_backend: str = Field(
        default="firestore",
        description="Listing store implementation: 'firestore' or 'memory'",
    )

    # Firebase
    firebase_project_id: str = Field(default="")
    firebase_api_key: str = Field(
        default="",
        description="Web API key used for Identity Toolkit sign-in calls",
    )
    firebase_credentials_file: str = Field(
        default="",
        description="Path to a service account key file (falls back to ADC)",
    )
    identity_toolkit_url: str = Field(
        default="https://identitytoolkit.googleapis.com/v1",
        description="Identity Toolkit base URL (point at the auth emulator locally)",
    )
    initial_auth_token: str = Field(
        default="",
        description="Optional pre-issued custom token used to establish the first session",
    )
    custom_token_secret: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="HS256 secret for tokens issued by the in-memory identity provider",
    )

    # Live subscriptions
    subscription_retry_max_attempts: int = Field(
        default=5,
        description="Re-subscribe attempts after a subscription failure (0 disables)",
    )
    subscription_retry_base_delay: float = Field(default=1.0)
    subscription_retry_max_delay: float = Field(default=30.0)

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
