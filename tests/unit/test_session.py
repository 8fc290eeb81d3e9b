"""Tests for browser session lifecycle and persistence."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.automation.errors import AuthenticationRequired, AuthenticationTimeout
from src.automation.session_store import FileSessionStore
from src.browser_service import BrowserConfig, BrowserSession, SessionStatus
from src.browser_service.session import is_post_login_url, is_sign_in_url

STATE = {"cookies": [{"name": "_session", "value": "abc"}], "origins": []}


@pytest.fixture
def playwright_stack(mock_page):
    """Patch async_playwright with a browser whose pages are ``mock_page``."""
    context = MagicMock()
    context.new_page = AsyncMock(return_value=mock_page)
    context.storage_state = AsyncMock(return_value=STATE)
    context.close = AsyncMock()
    context.pages = [mock_page]

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)
    playwright.stop = AsyncMock()

    starter = MagicMock()
    starter.start = AsyncMock(return_value=playwright)

    with patch("src.browser_service.session.async_playwright", return_value=starter):
        yield {"context": context, "browser": browser, "playwright": playwright}


def make_store(state=None):
    store = MagicMock()
    store.load = AsyncMock(return_value=state)
    store.save = AsyncMock(return_value=True)
    store.delete = AsyncMock(return_value=True)
    return store


def make_session(store):
    return BrowserSession(
        store=store,
        config=BrowserConfig(headless=True),
        base_url="https://my.greenhouse.io/",
        check_timeout_ms=5000,
        login_timeout_ms=20000,
    )


class TestUrlHelpers:
    def test_sign_in_detection(self):
        assert is_sign_in_url("https://my.greenhouse.io/users/sign_in?redirect=/jobs")
        assert not is_sign_in_url("https://my.greenhouse.io/jobs")

    def test_post_login_detection(self):
        assert is_post_login_url("https://my.greenhouse.io/jobs?page=2")
        assert not is_post_login_url("https://my.greenhouse.io/users/sign_in")


class TestOpen:
    """Tests for restoring a persisted session."""

    @pytest.mark.asyncio
    async def test_valid_session_restored(self, playwright_stack, mock_page):
        store = make_store(STATE)
        session = make_session(store)

        with patch.object(session, "login", AsyncMock()) as login:
            await session.open()

        assert session.status == SessionStatus.ACTIVE
        assert session.is_authenticated
        login.assert_not_called()
        playwright_stack["browser"].new_context.assert_awaited_once()
        assert playwright_stack["browser"].new_context.await_args.kwargs["storage_state"] == STATE
        mock_page.goto.assert_awaited_once_with(
            "https://my.greenhouse.io/jobs", wait_until="networkidle", timeout=5000
        )

    @pytest.mark.asyncio
    async def test_missing_session_requires_login(self, playwright_stack, mock_page):
        session = make_session(make_store(None))

        with pytest.raises(AuthenticationRequired) as exc_info:
            await session.open()

        assert "autoapply login" in str(exc_info.value)
        assert session.status == SessionStatus.UNAUTHENTICATED
        mock_page.goto.assert_not_called()

    @pytest.mark.asyncio
    async def test_expired_session_discarded(self, playwright_stack, mock_page):
        store = make_store(STATE)
        mock_page.url = "https://my.greenhouse.io/users/sign_in"
        session = make_session(store)

        with pytest.raises(AuthenticationRequired):
            await session.open()

        store.delete.assert_awaited_once()
        assert session.status == SessionStatus.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_page_before_open_raises(self):
        session = make_session(make_store())

        with pytest.raises(RuntimeError):
            session.page


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_saves_state(self, playwright_stack, mock_page):
        email_field = MagicMock()
        email_field.fill = AsyncMock()
        mock_page.query_selector = AsyncMock(return_value=email_field)
        store = make_store()
        session = make_session(store)

        await session.login("me@example.com")

        email_field.fill.assert_awaited_once_with("me@example.com")
        mock_page.wait_for_url.assert_awaited_once()
        assert mock_page.wait_for_url.await_args.kwargs["timeout"] == 20000
        store.save.assert_awaited_once_with(STATE)
        assert session.status == SessionStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_login_timeout(self, playwright_stack, mock_page):
        mock_page.wait_for_url = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 20000ms"))
        store = make_store()
        session = make_session(store)

        with pytest.raises(AuthenticationTimeout):
            await session.login()

        store.save.assert_not_called()


class TestClose:
    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, playwright_stack):
        session = make_session(make_store(STATE))
        await session.open()

        await session.close()
        await session.close()

        playwright_stack["browser"].close.assert_awaited_once()
        playwright_stack["playwright"].stop.assert_awaited_once()
        assert session.status == SessionStatus.CLOSED


class TestTabs:
    @pytest.mark.asyncio
    async def test_adopt_and_return(self, playwright_stack, mock_page):
        session = make_session(make_store(STATE))
        await session.open()

        new_tab = MagicMock()
        new_tab.url = "https://boards.greenhouse.io/acme/jobs/1"
        new_tab.wait_for_load_state = AsyncMock()
        new_tab.close = AsyncMock()
        playwright_stack["context"].pages = [mock_page, new_tab]

        assert await session.adopt_new_tab(pages_before=1, timeout_ms=500) is True
        assert session.page is new_tab

        await session.return_to_main()

        new_tab.close.assert_awaited_once()
        assert session.page is mock_page

    @pytest.mark.asyncio
    async def test_no_new_tab(self, playwright_stack):
        session = make_session(make_store(STATE))
        await session.open()

        assert await session.adopt_new_tab(pages_before=1, timeout_ms=300) is False


class TestFileSessionStore:
    """Tests for the on-disk session blob."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, tmp_path):
        store = FileSessionStore(tmp_path / "state" / "context.json")

        assert await store.save(STATE) is True
        assert await store.load() == STATE

    @pytest.mark.asyncio
    async def test_save_replaces_file_atomically(self, tmp_path):
        path = tmp_path / "context.json"
        path.write_text(json.dumps({"cookies": [], "origins": []}))

        assert await FileSessionStore(path).save(STATE) is True

        assert json.loads(path.read_text()) == STATE
        assert [p.name for p in tmp_path.iterdir()] == ["context.json"]

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        assert await FileSessionStore(tmp_path / "nope.json").load() is None

    @pytest.mark.asyncio
    async def test_malformed_file_ignored(self, tmp_path):
        path = tmp_path / "context.json"
        path.write_text(json.dumps({"not": "a session"}))

        assert await FileSessionStore(path).load() is None

    @pytest.mark.asyncio
    async def test_delete(self, tmp_path):
        store = FileSessionStore(tmp_path / "context.json")
        await store.save(STATE)

        assert await store.delete() is True
        assert await store.load() is None
