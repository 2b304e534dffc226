"""
Configuration Settings

This module defines application configuration using Pydantic Settings.
All configuration is loaded from environment variables or .env file.

Design Decisions:
- Uses pydantic-settings for type-safe configuration
- Supports multiple environments (production, staging, dev)
- Defaults to SQLite (file-based), the service is single-node by nature
- Quotas and probe limits are tunable without code changes
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["Settings", "settings"]


class EnvSettingsOptions(Enum):
    """Environment options for deployment."""
    production = "production"
    staging = "staging"
    development = "dev"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Project Configuration
    ENV_SETTING: EnvSettingsOptions = Field(
        default=EnvSettingsOptions.development,
        description="Environment setting (production, staging, dev)"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Log level for the 'shortener' logger hierarchy"
    )

    # Database Configuration
    # For SQLite: sqlite+aiosqlite:///./urlshortener.db (default)
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./urlshortener.db",
        description="Database connection string"
    )

    # Application Configuration
    BASE_URL: str = Field(
        default="http://localhost:3500/",
        description="Root URL prepended to segments when building short links"
    )

    # Shortening rules
    MIN_VANITY_LENGTH: int = Field(
        default=4,
        ge=0,
        description="Minimum vanity segment length (0 disables the check)"
    )
    URLS_PER_HOUR: int = Field(
        default=5000,
        ge=0,
        description="Links one client IP may create inside the trailing window"
    )
    RATE_LIMIT_WINDOW_SECONDS: int = Field(
        default=3600,
        gt=0,
        description="Length of the trailing submission window in seconds"
    )

    # Segment generation
    SEGMENT_BYTES: int = Field(
        default=4,
        ge=1,
        le=11,
        description="Random bytes per generated segment (base64url, 11 bytes = 15 chars)"
    )
    MAX_SEGMENT_RETRIES: int = Field(
        default=3,
        ge=1,
        description="Distinct random candidates tried before giving up"
    )

    # Liveness probe
    PROBE_TIMEOUT_SECONDS: float = Field(
        default=5.0,
        gt=0,
        description="Hard timeout for the outbound reachability check"
    )
    PROBE_MAX_BODY_BYTES: int = Field(
        default=512 * 1024,
        gt=0,
        description="Maximum bytes of an HTML body scanned for a <title>"
    )

    # Request throttling (slowapi)
    THROTTLING_ENABLED: bool = Field(
        default=True,
        description="Enable per-endpoint request throttling on read paths"
    )

    @field_validator("BASE_URL")
    @classmethod
    def _ensure_trailing_slash(cls, value: str) -> str:
        if not value.endswith("/"):
            value += "/"
        return value


settings = Settings()
