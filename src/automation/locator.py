"""Element locator: runs an intent's strategy cascade until one matches."""

import logging
from collections.abc import Sequence

from playwright.async_api import ElementHandle

from src.automation.errors import ElementNotFound
from src.automation.strategies import Intent, LocatorRegistry, LocatorStrategy, Scope

logger = logging.getLogger(__name__)


class ElementLocator:
    """Finds elements by semantic intent.

    Strategies for an intent are tried in registration order. A strategy
    that raises is logged and skipped; when every strategy comes up empty
    ``locate`` returns None and the caller decides whether that is fatal.

    Args:
        cascades: Per-intent strategy overrides. Intents not listed fall
            back to ``LocatorRegistry``.
        hints: Per-intent default hint overrides.
    """

    def __init__(
        self,
        cascades: dict[Intent, list[LocatorStrategy]] | None = None,
        hints: dict[Intent, list[str]] | None = None,
    ):
        self._cascades = cascades or {}
        self._hints = hints or {}

    def cascade_for(self, intent: Intent) -> list[LocatorStrategy]:
        if intent in self._cascades:
            return list(self._cascades[intent])
        return LocatorRegistry.cascade(intent)

    def hints_for(self, intent: Intent) -> list[str]:
        if intent in self._hints:
            return list(self._hints[intent])
        return LocatorRegistry.hints(intent)

    async def locate(
        self,
        scope: Scope,
        intent: Intent,
        hints: Sequence[str] | None = None,
    ) -> ElementHandle | None:
        """Return the first element matched by the intent's cascade, or None."""
        hint_list = list(hints) if hints is not None else self.hints_for(intent)

        for strategy in self.cascade_for(intent):
            try:
                element = await strategy.try_locate(scope, hint_list)
            except Exception as e:
                logger.debug(f"{intent.value}: strategy {strategy.name} failed: {e}")
                continue

            if element is not None:
                logger.debug(f"{intent.value}: located via {strategy.name}")
                return element

        logger.debug(f"{intent.value}: cascade exhausted")
        return None

    async def require(
        self,
        scope: Scope,
        intent: Intent,
        hints: Sequence[str] | None = None,
    ) -> ElementHandle:
        """Like ``locate`` but raises ``ElementNotFound`` on exhaustion."""
        element = await self.locate(scope, intent, hints)
        if element is None:
            raise ElementNotFound(intent.value, list(hints) if hints else self.hints_for(intent))
        return element
