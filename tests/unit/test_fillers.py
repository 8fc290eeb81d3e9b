"""Tests for field scanning helpers and form fillers."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from src.automation.answers import FieldAnswerResolver
from src.automation.fields import (
    FieldScanner,
    has_valid_value,
    is_country_field,
    is_identity_field,
    valid_options,
)
from src.automation.fillers import (
    CheckboxFiller,
    CustomMenuFiller,
    FillAction,
    FormFiller,
    SelectFiller,
    TextFieldFiller,
)
from src.automation.models import FieldKind, FieldOption


def make_resolver(text=None, choice=None):
    resolver = MagicMock()
    resolver.resolve_text = AsyncMock(return_value=text)
    resolver.resolve_choice = AsyncMock(return_value=choice)
    return resolver


def make_element():
    element = MagicMock()
    element.fill = AsyncMock()
    element.check = AsyncMock()
    element.click = AsyncMock()
    element.evaluate = AsyncMock(return_value=True)
    element.select_option = AsyncMock(return_value=[])
    element.query_selector = AsyncMock(return_value=None)
    return element


class TestFieldHelpers:
    def test_valid_options_drop_placeholders(self, yes_no_options):
        extra = [FieldOption(value="-1", text="Other"), FieldOption(value="x", text="-- Select --")]
        options = valid_options(yes_no_options + extra)

        assert [o.text for o in options] == ["Yes", "No", "Other"]

    def test_has_valid_value(self, make_field):
        assert has_valid_value(make_field(kind=FieldKind.SELECT, value="yes")) is True
        assert has_valid_value(make_field(kind=FieldKind.SELECT, value="Select...")) is False
        assert has_valid_value(make_field(kind=FieldKind.SELECT, value="")) is False

    def test_identity_and_country_fields(self, make_field):
        assert is_identity_field(make_field(label="Email *"))
        assert is_identity_field(make_field(label="", field_id="first_name"))
        assert is_country_field(make_field(label="Country of residence"))
        assert not is_identity_field(make_field(label="Why do you want this job?"))

    @pytest.mark.parametrize(
        "label",
        [
            "What is your ethnicity?",
            "Are you open to relocation?",
            "Do you have international experience?",
            "Have you ever filed a discrimination complaint?",
        ],
    )
    def test_questions_that_only_contain_country_words(self, make_field, label):
        assert not is_country_field(make_field(kind=FieldKind.SELECT, label=label))

    @pytest.mark.asyncio
    async def test_scanner_builds_descriptors(self, mock_page):
        mock_page.evaluate = AsyncMock(
            return_value=[
                {
                    "kind": "select",
                    "selector": '[data-autoapply-id="1"]',
                    "label": "Are you authorized? *",
                    "required": True,
                    "options": [{"value": "1", "text": "Yes"}],
                },
                {"kind": "checkbox", "selector": '[data-autoapply-id="2"]', "label": "I agree"},
            ]
        )

        fields = await FieldScanner().scan(mock_page)

        assert [f.kind for f in fields] == [FieldKind.SELECT, FieldKind.CHECKBOX]
        assert fields[0].options[0].text == "Yes"
        assert fields[0].question == "Are you authorized?"


class TestTextFieldFiller:
    @pytest.mark.asyncio
    async def test_fills_required_empty_field(self, mock_page, make_field):
        element = make_element()
        mock_page.query_selector = AsyncMock(return_value=element)
        field = make_field(label="Why us? *", required=True, input_type="textarea")
        resolver = make_resolver(text="Because of the product.")

        action = await TextFieldFiller().fill(mock_page, field, resolver)

        assert action == FillAction.FILLED
        element.fill.assert_awaited_once_with("Because of the product.")
        resolver.resolve_text.assert_awaited_once_with("Why us?", "textarea")

    @pytest.mark.asyncio
    async def test_skips_optional_or_prefilled(self, mock_page, make_field):
        resolver = make_resolver(text="x")

        assert await TextFieldFiller().fill(mock_page, make_field(label="Blog"), resolver) == FillAction.SKIPPED
        prefilled = make_field(label="Name", required=True, value="Alex")
        assert await TextFieldFiller().fill(mock_page, prefilled, resolver) == FillAction.SKIPPED
        resolver.resolve_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_unresolved_when_no_answer(self, mock_page, make_field):
        field = make_field(label="Why us?", required=True)

        action = await TextFieldFiller().fill(mock_page, field, make_resolver(text=None))

        assert action == FillAction.UNRESOLVED


class TestCheckboxFiller:
    @pytest.mark.asyncio
    async def test_falls_back_to_script_click(self, mock_page, make_field):
        element = make_element()
        element.check = AsyncMock(side_effect=PlaywrightError("element is not visible"))
        mock_page.query_selector = AsyncMock(return_value=element)
        field = make_field(kind=FieldKind.CHECKBOX, label="I agree *", required=True)

        action = await CheckboxFiller().fill(mock_page, field, make_resolver())

        assert action == FillAction.CHECKED
        element.evaluate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_skips_checked(self, mock_page, make_field):
        field = make_field(kind=FieldKind.CHECKBOX, required=True, checked=True)

        assert await CheckboxFiller().fill(mock_page, field, make_resolver()) == FillAction.SKIPPED


class TestSelectFiller:
    @pytest.mark.asyncio
    async def test_selects_resolved_option(self, mock_page, make_field, yes_no_options):
        yes = yes_no_options[1]
        element = make_element()
        element.select_option = AsyncMock(return_value=["1"])
        mock_page.query_selector = AsyncMock(return_value=element)
        field = make_field(kind=FieldKind.SELECT, label="Remote OK?", options=yes_no_options)
        resolver = make_resolver(choice=yes)

        action = await SelectFiller().fill(mock_page, field, resolver)

        assert action == FillAction.FILLED
        offered = resolver.resolve_choice.await_args.args[1]
        assert [o.text for o in offered] == ["Yes", "No"]

    @pytest.mark.asyncio
    async def test_option_valued_zero_can_be_chosen(self, mock_page, make_field, yes_no_options, profile):
        """A No option stored as value "0" is a real answer, not a placeholder."""
        element = make_element()
        element.select_option = AsyncMock(return_value=["0"])
        mock_page.query_selector = AsyncMock(return_value=element)
        field = make_field(
            kind=FieldKind.SELECT,
            label="Will you require visa sponsorship to work in the UK? *",
            options=yes_no_options,
        )

        action = await SelectFiller().fill(mock_page, field, FieldAnswerResolver(profile))

        assert action == FillAction.FILLED
        element.select_option.assert_awaited_once_with(value="0", timeout=3000)

    @pytest.mark.asyncio
    async def test_skips_identity_and_answered(self, mock_page, make_field, yes_no_options):
        resolver = make_resolver()
        country = make_field(kind=FieldKind.SELECT, label="Country", options=yes_no_options)
        answered = make_field(kind=FieldKind.SELECT, label="Q", value="1", options=yes_no_options)

        assert await SelectFiller().fill(mock_page, country, resolver) == FillAction.SKIPPED
        assert await SelectFiller().fill(mock_page, answered, resolver) == FillAction.SKIPPED
        resolver.resolve_choice.assert_not_called()

    @pytest.mark.asyncio
    async def test_apply_falls_back_to_script(self):
        element = make_element()
        element.select_option = AsyncMock(side_effect=PlaywrightError("not a select"))

        assert await SelectFiller().apply(element, FieldOption(value="1", text="Yes")) is True
        element.evaluate.assert_awaited_once()


class TestCustomMenuFiller:
    @pytest.mark.asyncio
    async def test_picks_visible_option(self, mock_page, make_field):
        trigger = make_element()
        option_handles = []
        for text in ("Yes", "No"):
            handle = make_element()
            handle.is_visible = AsyncMock(return_value=True)
            handle.inner_text = AsyncMock(return_value=text)
            handle.get_attribute = AsyncMock(return_value=None)
            option_handles.append(handle)

        mock_page.query_selector = AsyncMock(return_value=trigger)
        mock_page.query_selector_all = AsyncMock(return_value=option_handles)

        async def choose(question, options):
            return options[1]

        resolver = make_resolver()
        resolver.resolve_choice = AsyncMock(side_effect=choose)
        field = make_field(kind=FieldKind.CUSTOM_MENU, label="Open to relocation?")

        action = await CustomMenuFiller().fill(mock_page, field, resolver)

        assert action == FillAction.FILLED
        option_handles[1].click.assert_awaited_once()
        option_handles[0].click.assert_not_called()

    @pytest.mark.asyncio
    async def test_closes_empty_menu(self, mock_page, make_field):
        mock_page.query_selector = AsyncMock(return_value=make_element())
        field = make_field(kind=FieldKind.CUSTOM_MENU, label="Open to relocation?")

        action = await CustomMenuFiller().fill(mock_page, field, make_resolver())

        assert action == FillAction.UNRESOLVED
        mock_page.keyboard.press.assert_awaited_with("Escape")

    @pytest.mark.asyncio
    async def test_stale_trigger_located_by_label(self, mock_page, make_field):
        trigger = make_element()
        locator = MagicMock()
        locator.locate = AsyncMock(return_value=trigger)
        field = make_field(kind=FieldKind.CUSTOM_MENU, label="Open to relocation? *")

        await CustomMenuFiller(locator).fill(mock_page, field, make_resolver())

        assert locator.locate.await_args.args[2] == ["Open to relocation?"]
        trigger.click.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_trigger_skipped(self, mock_page, make_field):
        locator = MagicMock()
        locator.locate = AsyncMock(return_value=None)
        field = make_field(kind=FieldKind.CUSTOM_MENU, label="Open to relocation?")

        action = await CustomMenuFiller(locator).fill(mock_page, field, make_resolver())

        assert action == FillAction.SKIPPED


class TestFormFiller:
    @pytest.mark.asyncio
    async def test_fill_all_reports_and_continues_after_errors(self, mock_page, make_field):
        fields = [
            make_field(label="Why us?", required=True, field_name="why"),
            make_field(kind=FieldKind.CHECKBOX, label="Terms", required=True, field_name="terms"),
            make_field(label="Blog", field_name="blog"),
        ]
        scanner = MagicMock()
        scanner.scan = AsyncMock(return_value=fields)

        text_filler = MagicMock(kinds=(FieldKind.TEXT,))
        text_filler.fill = AsyncMock(side_effect=[FillAction.FILLED, FillAction.SKIPPED])
        checkbox_filler = MagicMock(kinds=(FieldKind.CHECKBOX,))
        checkbox_filler.fill = AsyncMock(side_effect=PlaywrightError("detached"))

        filler = FormFiller(make_resolver(), scanner, [text_filler, checkbox_filler])
        report = await filler.fill_all(mock_page)

        assert report.filled == ["why"]
        assert report.unresolved == ["terms"]
        assert report.skipped == ["blog"]
