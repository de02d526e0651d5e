"""Cultivator application settings loaded from environment variables."""

from enum import StrEnum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    """Deployment environment."""

    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class LogLevel(StrEnum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Application-wide settings loaded from environment variables / .env file.

    Every recognized key is listed here. Unknown environment keys are ignored.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Database ---
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./cultivator.db",
        description="Async connection string for the assessment history backend.",
    )

    # --- History ---
    HISTORY_ENABLED: bool = Field(
        default=True,
        description="Record a history snapshot and score delta for every assessment.",
    )
    HISTORY_MAX_PER_NOTE: int = Field(
        default=5,
        ge=1,
        description="Maximum number of history records kept per note.",
    )

    # --- Notes ---
    FRONTMATTER_KEY: str = Field(
        default="growth-stage",
        description="Frontmatter field holding the note's maturity stage.",
    )
    MIN_CONTENT_LENGTH: int = Field(
        default=50,
        ge=0,
        description="Shortest note body (stripped characters) that can be assessed.",
    )

    # --- Assessment ---
    ENABLE_SPLIT_SUGGESTIONS: bool = Field(
        default=True,
        description="Keep split suggestions returned by the judgment provider.",
    )
    ENABLE_CONNECTION_SUGGESTIONS: bool = Field(
        default=True,
        description="Keep connection suggestions returned by the judgment provider.",
    )
    WRITE_CALLOUT: bool = Field(
        default=False,
        description="Embed the assessment callout into the note after each run.",
    )
    DEFAULT_PROVIDER: str = Field(
        default="claude",
        description="Judgment provider selected when the registry is created.",
    )

    # --- Logging ---
    LOG_LEVEL: LogLevel = Field(
        default=LogLevel.INFO,
        description="Application log level.",
    )

    # --- Environment ---
    ENVIRONMENT: Environment = Field(
        default=Environment.DEV,
        description="Deployment environment (dev/staging/prod).",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == Environment.PROD


def get_settings() -> Settings:
    """Factory function so callers can inject their own Settings."""
    return Settings()
