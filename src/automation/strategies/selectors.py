"""Selector-based locator strategies."""

import logging
from collections.abc import Sequence

from playwright.async_api import ElementHandle

from src.automation.strategies.base import LocatorStrategy, Scope, escape_text

logger = logging.getLogger(__name__)


async def _first_match(
    scope: Scope, selectors: Sequence[str], visible_only: bool
) -> ElementHandle | None:
    for selector in selectors:
        element = await scope.query_selector(selector)
        if element is None:
            continue
        if visible_only and not await element.is_visible():
            continue
        logger.debug(f"Matched selector {selector}")
        return element
    return None


class SelectorStrategy(LocatorStrategy):
    """Role/attribute selectors specific to an intent. Ignores hints."""

    def __init__(self, selectors: Sequence[str], visible_only: bool = False, label: str = "selectors"):
        self.selectors = list(selectors)
        self.visible_only = visible_only
        self._label = label

    @property
    def name(self) -> str:
        return self._label

    async def try_locate(self, scope: Scope, hints: Sequence[str]) -> ElementHandle | None:
        return await _first_match(scope, self.selectors, self.visible_only)


class TextStrategy(LocatorStrategy):
    """Elements of the given tags whose text contains one of the hints.

    ``:has-text()`` is case-insensitive and matches substrings, so hints
    are ordered most specific first.
    """

    def __init__(self, tags: Sequence[str] = ("button", "a"), visible_only: bool = False):
        self.tags = list(tags)
        self.visible_only = visible_only

    @property
    def name(self) -> str:
        return "text"

    async def try_locate(self, scope: Scope, hints: Sequence[str]) -> ElementHandle | None:
        selectors = [
            f'{tag}:has-text("{escape_text(hint)}")' for hint in hints for tag in self.tags
        ]
        return await _first_match(scope, selectors, self.visible_only)
