"""Base locator strategy interface."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum
from typing import Union

from playwright.async_api import ElementHandle, Page

# Anything elements can be searched under
Scope = Union[Page, ElementHandle]


class Intent(str, Enum):
    """Semantic role of the element a caller is looking for."""

    APPLY = "apply"
    SUBMIT = "submit"
    AUTOFILL = "autofill"
    LOAD_MORE = "load_more"
    SEARCH_SUBMIT = "search_submit"
    SEARCH_TITLE = "search_title"
    WORK_TYPE_SELECT = "work_type_select"
    DATE_POSTED_SELECT = "date_posted_select"
    TEXT_INPUT = "text_input"
    IDENTITY_EMAIL = "identity_email"
    COOKIE_ACCEPT = "cookie_accept"
    DROPDOWN_TRIGGER = "dropdown_trigger"


class LocatorStrategy(ABC):
    """One way of finding an element.

    Strategies are tried in a fixed order by ``ElementLocator``; each either
    returns the first element it matches or None. Raising is allowed but the
    locator treats it the same as no match.

    Usage:
        strategy = SelectorStrategy(['button[type="submit"]'])
        element = await strategy.try_locate(page, ["Submit"])
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy name for logging."""
        ...

    @abstractmethod
    async def try_locate(self, scope: Scope, hints: Sequence[str]) -> ElementHandle | None:
        """Return the first matching element under ``scope``, or None.

        Args:
            scope: Page or element to search under
            hints: Visible texts associated with the intent (may be empty)

        Returns:
            Matching element handle, or None
        """
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


def escape_text(text: str) -> str:
    """Escape a hint for use inside a quoted ``:has-text()`` selector."""
    return text.replace("\\", "\\\\").replace('"', '\\"')
