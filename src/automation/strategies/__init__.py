"""Locator strategies for finding elements on job-board pages.

Each intent (apply control, submit control, load-more control, ...) has an
ordered cascade of strategies. Strategies share one interface so the
priority order and exhaustion behaviour are explicit and testable.
"""

from src.automation.strategies.base import Intent, LocatorStrategy, Scope

# Import cascades to register them
from src.automation.strategies import cascades  # noqa: F401
from src.automation.strategies.proximity import LabelProximityStrategy, ScriptTextStrategy
from src.automation.strategies.registry import LocatorRegistry
from src.automation.strategies.selectors import SelectorStrategy, TextStrategy

__all__ = [
    "Intent",
    "LabelProximityStrategy",
    "LocatorRegistry",
    "LocatorStrategy",
    "Scope",
    "ScriptTextStrategy",
    "SelectorStrategy",
    "TextStrategy",
]
