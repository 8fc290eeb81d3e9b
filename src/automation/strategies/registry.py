"""Registry of locator cascades, one per intent."""

import logging
from collections.abc import Sequence

from src.automation.strategies.base import Intent, LocatorStrategy

logger = logging.getLogger(__name__)


class LocatorRegistry:
    """Registry mapping each intent to its ordered strategy cascade.

    Provides:
    - Registration of a cascade and its default hints per intent
    - Retrieval of copies so callers cannot reorder the registered cascade

    Usage:
        LocatorRegistry.register(
            Intent.SUBMIT,
            [SelectorStrategy(['button[type="submit"]']), TextStrategy()],
            hints=["Submit"],
        )
        cascade = LocatorRegistry.cascade(Intent.SUBMIT)
    """

    _cascades: dict[Intent, list[LocatorStrategy]] = {}
    _hints: dict[Intent, list[str]] = {}

    @classmethod
    def register(
        cls,
        intent: Intent,
        strategies: Sequence[LocatorStrategy],
        hints: Sequence[str] = (),
    ) -> None:
        """Register (or replace) the cascade for an intent.

        Args:
            intent: Intent the cascade resolves
            strategies: Strategies in priority order
            hints: Default hint texts when the caller passes none
        """
        cls._cascades[intent] = list(strategies)
        cls._hints[intent] = list(hints)
        logger.debug(f"Registered cascade for {intent.value}: {[s.name for s in strategies]}")

    @classmethod
    def cascade(cls, intent: Intent) -> list[LocatorStrategy]:
        return list(cls._cascades.get(intent, []))

    @classmethod
    def hints(cls, intent: Intent) -> list[str]:
        return list(cls._hints.get(intent, []))

    @classmethod
    def intents(cls) -> list[Intent]:
        return list(cls._cascades)
