"""Default locator cascades for the MyGreenhouse job board.

Each cascade runs from the most specific selectors to the most permissive
fallbacks: attribute selectors, then hint text, then label proximity or an
in-page text scan.
"""

from src.automation.strategies.base import Intent
from src.automation.strategies.proximity import LabelProximityStrategy, ScriptTextStrategy
from src.automation.strategies.registry import LocatorRegistry
from src.automation.strategies.selectors import SelectorStrategy, TextStrategy

DROPDOWN_TRIGGER_SELECTOR = (
    'button, div[role="button"], div[role="combobox"], [aria-haspopup="listbox"]'
)

LocatorRegistry.register(
    Intent.APPLY,
    [
        SelectorStrategy(
            ['[data-testid*="apply"]', 'button[class*="apply"]', 'a[class*="apply"]'],
            label="apply-attributes",
        ),
        TextStrategy(("button", "a")),
        SelectorStrategy(['button[type="submit"]'], label="generic-submit"),
    ],
    hints=["Apply"],
)

LocatorRegistry.register(
    Intent.SUBMIT,
    [
        SelectorStrategy(
            [
                'button[type="submit"]:has-text("Submit")',
                '[data-testid*="submit"]',
                'button[class*="submit"]',
                'button[class*="apply"]:has-text("Submit")',
                'input[type="submit"]',
                'button[type="submit"]',
            ],
            label="submit-attributes",
        ),
        TextStrategy(("button",)),
    ],
    hints=["Submit Application", "Submit"],
)

LocatorRegistry.register(
    Intent.AUTOFILL,
    [
        SelectorStrategy(
            [
                'button[class*="autofill" i]',
                'a[class*="autofill" i]',
                'button[id*="autofill" i]',
                'a[id*="autofill" i]',
            ],
            visible_only=True,
            label="autofill-attributes",
        ),
        TextStrategy(("button", "a", '[role="button"]'), visible_only=True),
        ScriptTextStrategy(),
    ],
    hints=["Autofill with MyGreenhouse", "Autofill"],
)

LocatorRegistry.register(
    Intent.LOAD_MORE,
    [
        SelectorStrategy(['[class*="see-more"]', '[class*="load-more"]'], visible_only=True),
        TextStrategy(("a", "button"), visible_only=True),
        SelectorStrategy(['a[href*="more"]'], visible_only=True, label="more-link"),
    ],
    hints=["See more jobs", "Load more", "See more"],
)

LocatorRegistry.register(
    Intent.SEARCH_SUBMIT,
    [
        SelectorStrategy(
            ['button[type="submit"]', 'input[type="submit"]', 'button[class*="search"]'],
        ),
        TextStrategy(("button",)),
    ],
    hints=["Search", "Find jobs"],
)

LocatorRegistry.register(
    Intent.SEARCH_TITLE,
    [
        SelectorStrategy(
            [
                'input[name*="title" i]',
                'input[name*="keyword" i]',
                'input[placeholder*="title" i]',
                'input[placeholder*="job" i]',
                'input[class*="search"]',
                'input[type="search"]',
            ],
            visible_only=True,
        ),
        LabelProximityStrategy("input"),
    ],
    hints=["Job title", "Title", "Keyword"],
)

LocatorRegistry.register(
    Intent.WORK_TYPE_SELECT,
    [
        SelectorStrategy(
            ['select[name*="work" i]', 'select[id*="work" i]', 'select[name*="remote" i]']
        ),
        LabelProximityStrategy("select"),
    ],
    hints=["Work type", "Workplace", "Remote"],
)

LocatorRegistry.register(
    Intent.DATE_POSTED_SELECT,
    [
        SelectorStrategy(
            ['select[name*="date" i]', 'select[id*="date" i]', 'select[name*="posted" i]']
        ),
        LabelProximityStrategy("select"),
    ],
    hints=["Date posted", "Posted"],
)

LocatorRegistry.register(
    Intent.TEXT_INPUT,
    [
        SelectorStrategy(
            [
                'input[type="text"]',
                'input[type="email"]',
                "textarea",
                'input[name*="name"]',
                'input[name*="email"]',
                'input[class*="input"]',
                '[contenteditable="true"]',
            ],
            visible_only=True,
        ),
    ],
)

LocatorRegistry.register(
    Intent.IDENTITY_EMAIL,
    [
        SelectorStrategy(['input[type="email"]', 'input[name*="email"]', 'input[id*="email"]']),
        LabelProximityStrategy("input"),
    ],
    hints=["Email"],
)

LocatorRegistry.register(
    Intent.COOKIE_ACCEPT,
    [
        SelectorStrategy(
            [
                '[data-testid*="cookie-accept"]',
                '[data-testid*="accept-cookies"]',
                'button[id*="accept" i]',
                'button[class*="accept" i]',
            ],
            visible_only=True,
        ),
        ScriptTextStrategy('[class*="cookie" i] button, [class*="consent" i] button'),
        ScriptTextStrategy("button", exact=True),
    ],
    hints=["Accept All", "Accept Cookies", "Accept", "I Accept", "Agree", "OK"],
)

LocatorRegistry.register(
    Intent.DROPDOWN_TRIGGER,
    [LabelProximityStrategy(DROPDOWN_TRIGGER_SELECTOR)],
)
