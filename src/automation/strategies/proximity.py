"""Script-driven locator strategies: label proximity and text scanning.

These run inside the page and are the most permissive strategies, so they
sit at the end of every cascade.
"""

from collections.abc import Sequence
from typing import Any

from playwright.async_api import ElementHandle

from src.automation.strategies.base import LocatorStrategy, Scope

LABEL_PROXIMITY_JS = """
const [hints, target] = args;
const labels = Array.from(root.querySelectorAll('label'));
const pick = (el) => {
    if (!el) return null;
    if (el.matches(target)) return el;
    return el.querySelector(target);
};
for (const hint of hints) {
    const h = hint.toLowerCase();
    for (const label of labels) {
        if (!(label.textContent || '').toLowerCase().includes(h)) continue;
        const forId = label.getAttribute('for');
        if (forId) {
            const found = pick(document.getElementById(forId));
            if (found) return found;
        }
        const inParent = label.parentElement ? label.parentElement.querySelector(target) : null;
        if (inParent) return inParent;
        let sibling = label.nextElementSibling;
        while (sibling) {
            const found = pick(sibling);
            if (found) return found;
            sibling = sibling.nextElementSibling;
        }
    }
}
return null;
"""

TEXT_SCAN_JS = """
const [hints, selector, visibleOnly, exact] = args;
const nodes = Array.from(root.querySelectorAll(selector));
const norm = (s) => (s || '').replace(/\\s+/g, ' ').trim().toLowerCase();
for (const hint of hints) {
    const h = norm(hint);
    for (const el of nodes) {
        const texts = [norm(el.textContent), norm(el.getAttribute('aria-label'))];
        const hit = exact ? texts.includes(h) : texts.some((t) => t.includes(h));
        if (!hit) continue;
        if (visibleOnly) {
            const rect = el.getBoundingClientRect();
            if (rect.width === 0 || rect.height === 0) continue;
        }
        return el;
    }
}
return null;
"""


async def evaluate_element(scope: Scope, body: str, args: list[Any]) -> ElementHandle | None:
    """Run ``body`` with ``root`` and ``args`` bound and return the element it yields."""
    if isinstance(scope, ElementHandle):
        handle = await scope.evaluate_handle(f"(root, args) => {{ {body} }}", args)
    else:
        handle = await scope.evaluate_handle(
            f"(args) => {{ const root = document; {body} }}", args
        )
    element = handle.as_element()
    if element is None:
        await handle.dispose()
    return element


class LabelProximityStrategy(LocatorStrategy):
    """Control structurally associated with a label containing a hint.

    Follows ``label[for]`` first, then the label's container, then the
    label's following siblings.
    """

    def __init__(self, target_selector: str):
        self.target_selector = target_selector

    @property
    def name(self) -> str:
        return "label-proximity"

    async def try_locate(self, scope: Scope, hints: Sequence[str]) -> ElementHandle | None:
        if not hints:
            return None
        return await evaluate_element(
            scope, LABEL_PROXIMITY_JS, [list(hints), self.target_selector]
        )


class ScriptTextStrategy(LocatorStrategy):
    """In-page scan of clickable elements for hint text or aria-label.

    With ``exact`` the whole (whitespace-normalized, case-folded) text must
    equal a hint, so short hints like "OK" do not match "Book a call".
    """

    def __init__(
        self,
        selector: str = 'button, a, [role="button"]',
        visible_only: bool = True,
        exact: bool = False,
    ):
        self.selector = selector
        self.visible_only = visible_only
        self.exact = exact

    @property
    def name(self) -> str:
        return "script-text-exact" if self.exact else "script-text"

    async def try_locate(self, scope: Scope, hints: Sequence[str]) -> ElementHandle | None:
        if not hints:
            return None
        return await evaluate_element(
            scope, TEXT_SCAN_JS, [list(hints), self.selector, self.visible_only, self.exact]
        )
