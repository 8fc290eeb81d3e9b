"""Form filling: one resolution strategy per field kind."""

import logging
from abc import ABC, abstractmethod
from enum import Enum

from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError

from src.automation.answers import FieldAnswerResolver
from src.automation.fields import (
    FieldScanner,
    has_valid_value,
    is_country_field,
    is_identity_field,
    is_placeholder_text,
    valid_options,
)
from src.automation.locator import ElementLocator
from src.automation.models import FieldDescriptor, FieldKind, FieldOption, FormFillReport
from src.automation.strategies import Intent

logger = logging.getLogger(__name__)

MENU_OPTION_SELECTORS = [
    '[role="option"]',
    '[role="menuitem"]',
    ".dropdown-item",
    '[class*="option"]',
    "li",
    "div[data-value]",
]

ASSIGN_VALUE_JS = """
(el, value) => {
    el.value = value;
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
    return el.value === value;
}
"""


class FillAction(str, Enum):
    FILLED = "filled"
    CHECKED = "checked"
    SKIPPED = "skipped"
    UNRESOLVED = "unresolved"


class FieldFiller(ABC):
    """Strategy for one or more field kinds."""

    kinds: tuple[FieldKind, ...] = ()

    @abstractmethod
    async def fill(
        self, page: Page, field: FieldDescriptor, resolver: FieldAnswerResolver
    ) -> FillAction:
        """Bring ``field`` to a valid state if it needs one.

        Args:
            page: Page the field lives on
            field: Descriptor from the latest scan
            resolver: Answer source

        Returns:
            What was done with the field
        """
        ...


class TextFieldFiller(FieldFiller):
    """Fills required, empty text inputs and textareas."""

    kinds = (FieldKind.TEXT,)

    async def fill(self, page, field, resolver):
        if not field.required or field.value.strip():
            return FillAction.SKIPPED

        answer = await resolver.resolve_text(field.question, field.input_type)
        if answer is None:
            return FillAction.UNRESOLVED

        element = await page.query_selector(field.selector)
        if element is None:
            return FillAction.SKIPPED

        await element.fill(answer)
        logger.info(f"Filled '{field.question[:50]}'")
        return FillAction.FILLED


class CheckboxFiller(FieldFiller):
    """Checks required checkboxes (terms, consent, acknowledgements)."""

    kinds = (FieldKind.CHECKBOX,)

    async def fill(self, page, field, resolver):
        if not field.required or field.checked:
            return FillAction.SKIPPED

        element = await page.query_selector(field.selector)
        if element is None:
            return FillAction.SKIPPED

        try:
            await element.check(timeout=3000)
        except PlaywrightError:
            # Styled checkboxes often hide the input behind a label
            await element.evaluate("el => el.click()")

        logger.info(f"Checked '{field.question[:50]}'")
        return FillAction.CHECKED


class SelectFiller(FieldFiller):
    """Native single and multi selects.

    Applies the chosen option by direct selection, then scripted value
    assignment, then open-and-click.
    """

    kinds = (FieldKind.SELECT, FieldKind.MULTI_SELECT)

    async def fill(self, page, field, resolver):
        if is_identity_field(field) or is_country_field(field):
            return FillAction.SKIPPED
        if has_valid_value(field):
            return FillAction.SKIPPED

        options = valid_options(field.options)
        if not options:
            return FillAction.SKIPPED

        choice = await resolver.resolve_choice(field.question, options)
        if choice is None:
            return FillAction.UNRESOLVED

        element = await page.query_selector(field.selector)
        if element is None:
            return FillAction.SKIPPED

        if await self.apply(element, choice):
            logger.info(f"Selected '{choice.text}' for '{field.question[:50]}'")
            return FillAction.FILLED

        logger.warning(f"Could not select '{choice.text}' for '{field.question[:50]}'")
        return FillAction.UNRESOLVED

    async def apply(self, element: ElementHandle, choice: FieldOption) -> bool:
        try:
            selected = await element.select_option(value=choice.value, timeout=3000)
            if choice.value in selected:
                return True
        except PlaywrightError as e:
            logger.debug(f"select_option failed: {e}")

        try:
            if await element.evaluate(ASSIGN_VALUE_JS, choice.value):
                return True
        except PlaywrightError as e:
            logger.debug(f"Scripted assignment failed: {e}")

        try:
            await element.click(timeout=3000)
            option = await element.query_selector(f'option[value="{choice.value}"]')
            if option:
                await option.click(timeout=3000)
                return True
        except PlaywrightError as e:
            logger.debug(f"Open-and-click failed: {e}")

        return False


class CustomMenuFiller(FieldFiller):
    """Scripted dropdowns (comboboxes, listbox buttons).

    When the scanned trigger has gone stale the trigger is located again
    next to the field's label.
    """

    kinds = (FieldKind.CUSTOM_MENU,)

    def __init__(self, locator: ElementLocator | None = None):
        self.locator = locator or ElementLocator()

    async def fill(self, page, field, resolver):
        if is_identity_field(field) or is_country_field(field):
            return FillAction.SKIPPED
        if has_valid_value(field):
            return FillAction.SKIPPED

        trigger = await page.query_selector(field.selector)
        if trigger is None:
            trigger = await self.locator.locate(page, Intent.DROPDOWN_TRIGGER, [field.question])
        if trigger is None:
            return FillAction.SKIPPED

        try:
            await trigger.click(timeout=3000)
        except PlaywrightError:
            await trigger.click(force=True, timeout=3000)
        await page.wait_for_timeout(500)

        menu = await self.visible_options(page)
        if not menu:
            await page.keyboard.press("Escape")
            return FillAction.UNRESOLVED

        choice = await resolver.resolve_choice(field.question, [option for _, option in menu])
        if choice is None:
            await page.keyboard.press("Escape")
            return FillAction.UNRESOLVED

        handle = next(h for h, option in menu if option is choice)
        try:
            await handle.click(timeout=3000)
        except PlaywrightError:
            await handle.evaluate("el => el.click()")

        logger.info(f"Picked '{choice.text}' for '{field.question[:50]}'")
        return FillAction.FILLED

    async def visible_options(self, page: Page) -> list[tuple[ElementHandle, FieldOption]]:
        for selector in MENU_OPTION_SELECTORS:
            found = []
            for handle in await page.query_selector_all(selector):
                if not await handle.is_visible():
                    continue
                text = (await handle.inner_text()).strip()
                if is_placeholder_text(text):
                    continue
                value = await handle.get_attribute("data-value") or text
                found.append((handle, FieldOption(value=value, text=text)))
            if found:
                return found
        return []


DEFAULT_FILLERS: list[FieldFiller] = [
    TextFieldFiller(),
    CheckboxFiller(),
    SelectFiller(),
    CustomMenuFiller(),
]


class FormFiller:
    """Scans the current page and applies the matching filler to every field.

    A field that errors is logged and counted as unresolved; the remaining
    fields are still processed.
    """

    def __init__(
        self,
        resolver: FieldAnswerResolver,
        scanner: FieldScanner | None = None,
        fillers: list[FieldFiller] | None = None,
    ):
        self.resolver = resolver
        self.scanner = scanner or FieldScanner()
        self._fillers: dict[FieldKind, FieldFiller] = {}
        for filler in fillers or DEFAULT_FILLERS:
            for kind in filler.kinds:
                self._fillers[kind] = filler

    async def fill_all(self, page: Page) -> FormFillReport:
        report = FormFillReport()
        fields = await self.scanner.scan(page)

        for field in fields:
            filler = self._fillers.get(field.kind)
            if filler is None:
                report.skipped.append(field.key)
                continue

            try:
                action = await filler.fill(page, field, self.resolver)
            except PlaywrightError as e:
                logger.warning(f"Failed to fill '{field.question[:50]}': {e}")
                action = FillAction.UNRESOLVED

            if action == FillAction.FILLED:
                report.filled.append(field.key)
            elif action == FillAction.CHECKED:
                report.checked.append(field.key)
            elif action == FillAction.UNRESOLVED:
                report.unresolved.append(field.key)
            else:
                report.skipped.append(field.key)

        logger.info(
            f"Form filled: {report.total_actions} actions ({len(report.filled)} filled, "
            f"{len(report.checked)} checked), {len(report.unresolved)} unresolved"
        )
        return report
