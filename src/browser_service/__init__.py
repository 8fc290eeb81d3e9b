"""Browser session management backed by Playwright."""

from src.browser_service.models import BrowserConfig, SessionStatus
from src.browser_service.session import BrowserSession

__all__ = [
    "BrowserConfig",
    "BrowserSession",
    "SessionStatus",
]
