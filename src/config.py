"""Application configuration using pydantic-settings."""

import logging
from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class FailureSinkType(str, Enum):
    """Where failed applications are written."""

    FILE = "file"
    DATABASE = "database"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Environment = Environment.DEVELOPMENT
    debug: bool = False
    log_level: str = "INFO"

    # Job board
    greenhouse_base_url: str = "https://my.greenhouse.io"
    greenhouse_email: str | None = None
    session_state_path: str = ".browser-context"
    login_timeout_ms: int = Field(default=300000, ge=10000)  # 5 minutes
    session_check_timeout_ms: int = Field(default=10000, ge=1000, le=120000)

    # Playwright Settings
    playwright_headless: bool = True
    playwright_slow_mo: int = Field(default=0, ge=0, le=1000)  # ms between actions
    browser_timeout_ms: int = Field(default=30000, ge=5000, le=120000)
    viewport_width: int = 1920
    viewport_height: int = 1080

    # Job discovery
    search_keywords: str = "software engineer"
    search_work_type: str = "remote"
    search_posted_within_days: int = Field(default=10, ge=1, le=90)
    job_title_pattern: str = r"software\s+engineer"
    discovery_max_attempts: int = Field(default=50, ge=1, le=500)

    # Application run
    max_applications_per_run: int = Field(default=10, ge=1, le=100)
    delay_between_applications_ms: int = Field(default=20000, ge=0)
    application_budget_seconds: float = Field(default=30.0, gt=0)
    confirmation_timeout_seconds: float = Field(default=60.0, gt=0)
    retry_confirmation_timeout_seconds: float = Field(default=15.0, gt=0)
    optimistic_confirmation: bool = False

    # Failure storage
    failure_sink: FailureSinkType = FailureSinkType.FILE
    failed_jobs_path: str = "./data/failed-jobs.json"
    failure_retention_days: int = Field(default=30, ge=1)

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/autoapply.db"

    # Anthropic Claude SDK
    anthropic_api_key: str | None = None
    claude_model: str = "claude-sonnet-4-20250514"

    # AWS Bedrock (alternative to direct Anthropic API)
    bedrock_enabled: bool = False
    bedrock_region: str = "us-east-1"
    bedrock_model_id: str = "anthropic.claude-3-5-sonnet-20241022-v2:0"

    # Langfuse Observability
    langfuse_secret_key: str | None = None
    langfuse_public_key: str | None = None
    langfuse_base_url: str = "https://cloud.langfuse.com"

    # Candidate profile
    candidate_first_name: str = ""
    candidate_last_name: str = ""
    candidate_email: str = ""
    candidate_phone: str = ""
    candidate_location: str = "London, United Kingdom"
    candidate_country: str = "United Kingdom"
    candidate_citizenship: str = "British"
    candidate_gender: str = "Male"
    candidate_needs_sponsorship_home: bool = False
    candidate_needs_sponsorship_abroad: bool = True
    candidate_former_employee: bool = False
    candidate_open_to_remote: bool = True
    resume_path: str | None = None

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.app_env == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.app_env == Environment.DEVELOPMENT

    @property
    def delay_between_applications(self) -> float:
        """Inter-application delay in seconds."""
        return self.delay_between_applications_ms / 1000


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience access
settings = get_settings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for CLI and API entry points."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
