"""
Shared configuration management for the Venue service.
"""

from typing import List

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="VENUE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    log_json: bool = Field(default=True)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class ServiceConfig(BaseConfig):
    """Venue service configuration."""

    service_name: str = "venue"
    host: str = "0.0.0.0"
    port: int = 8080

    # Storage
    postgres_dsn: str = Field(default="postgres://localhost:5432/venue")

    # Identity service (absolute http(s) URL, required)
    identity_service_url: AnyHttpUrl
    identity_profile_path: str = Field(default="/profile")
    identity_timeout_seconds: float = Field(default=5.0, gt=0)

    # Caller identification
    jwt_secret: str
    jwt_algorithm: str = Field(default="HS256")


def get_config(**overrides) -> ServiceConfig:
    """Load configuration from the environment, applying explicit overrides."""
    return ServiceConfig(**overrides)
