"""Pydantic models for the browser session."""

from enum import Enum

from pydantic import BaseModel, Field

from src.config import Settings


class SessionStatus(str, Enum):
    """Browser session status."""

    CLOSED = "closed"
    UNAUTHENTICATED = "unauthenticated"
    ACTIVE = "active"


class BrowserConfig(BaseModel):
    """Launch options for the browser."""

    headless: bool = True
    slow_mo: int = Field(default=0, ge=0, le=1000, description="Slow motion delay in ms")
    viewport_width: int = Field(default=1920, ge=800, le=3840)
    viewport_height: int = Field(default=1080, ge=600, le=2160)
    user_agent: str | None = None
    timeout: int = Field(default=30000, ge=5000, le=120000, description="Default timeout in ms")

    @classmethod
    def from_settings(cls, settings: Settings, headless: bool | None = None) -> "BrowserConfig":
        return cls(
            headless=settings.playwright_headless if headless is None else headless,
            slow_mo=settings.playwright_slow_mo,
            viewport_width=settings.viewport_width,
            viewport_height=settings.viewport_height,
            timeout=settings.browser_timeout_ms,
        )
