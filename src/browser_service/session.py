"""Browser session lifecycle: one browser, one context, one active page."""

import asyncio
import logging
from typing import Any
from urllib.parse import urlparse

from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.automation.errors import AuthenticationRequired, AuthenticationTimeout
from src.automation.locator import ElementLocator
from src.automation.session_store import SessionStore, get_session_store
from src.automation.strategies import Intent
from src.browser_service.models import BrowserConfig, SessionStatus
from src.config import settings

logger = logging.getLogger(__name__)

SIGN_IN_PATH = "/users/sign_in"
JOBS_PATH = "/jobs"

REMEDIATION = (
    "No valid session found. Run `autoapply login` on a machine with a display "
    "to sign in manually and save the session, then retry."
)


def is_sign_in_url(url: str) -> bool:
    return SIGN_IN_PATH in url


def is_post_login_url(url: str) -> bool:
    return urlparse(url).path.startswith(JOBS_PATH)


class BrowserSession:
    """Owns the browser, its context and the single active page.

    Other components borrow the page through the ``page`` property for the
    duration of one step and never keep a reference across steps. The page
    may change when a job opens in a new tab (see ``adopt_new_tab``).

    Usage:
        async with BrowserSession() as session:
            await session.open()
            await session.page.goto(...)
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        config: BrowserConfig | None = None,
        base_url: str | None = None,
        check_timeout_ms: int | None = None,
        login_timeout_ms: int | None = None,
    ) -> None:
        self.store = store or get_session_store()
        self.config = config or BrowserConfig.from_settings(settings)
        self.base_url = (base_url or settings.greenhouse_base_url).rstrip("/")
        self.check_timeout_ms = check_timeout_ms or settings.session_check_timeout_ms
        self.login_timeout_ms = login_timeout_ms or settings.login_timeout_ms
        self.status = SessionStatus.CLOSED

        self._playwright: Any = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._main_page: Page | None = None

    async def __aenter__(self) -> "BrowserSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def page(self) -> Page:
        """Get the current page, raising if not opened."""
        if self._page is None:
            raise RuntimeError("Browser not initialized. Call open() or login() first.")
        return self._page

    @property
    def context(self) -> BrowserContext:
        if self._context is None:
            raise RuntimeError("Browser not initialized. Call open() or login() first.")
        return self._context

    @property
    def is_authenticated(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _launch(self) -> None:
        if self._browser is not None:
            return

        logger.info(f"Launching Chromium (headless={self.config.headless})")
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            slow_mo=self.config.slow_mo,
        )

    async def _new_context(self, storage_state: dict[str, Any] | None = None) -> None:
        if self._context is not None:
            await self._context.close()

        self._context = await self._browser.new_context(
            viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
            user_agent=self.config.user_agent,
            storage_state=storage_state,
        )
        self._context.set_default_timeout(self.config.timeout)
        self._page = await self._context.new_page()
        self._main_page = self._page

    async def open(self) -> None:
        """Restore and validate the persisted session.

        Raises:
            AuthenticationRequired: No stored session, or the stored one no
                longer reaches the authenticated surface. A blank context is
                left open so ``login()`` can follow.
        """
        if self.status == SessionStatus.ACTIVE:
            return

        await self._launch()
        state = await self.store.load()

        if state is not None:
            await self._new_context(state)
            if await self.verify():
                self.status = SessionStatus.ACTIVE
                logger.info("Restored saved session")
                return

            logger.warning("Saved session is no longer valid, discarding it")
            await self.store.delete()

        await self._new_context(None)
        self.status = SessionStatus.UNAUTHENTICATED
        raise AuthenticationRequired(REMEDIATION)

    async def verify(self) -> bool:
        """Load the jobs page; False if it redirects to sign-in or fails."""
        page = self.page
        try:
            await page.goto(
                self.url_for(JOBS_PATH),
                wait_until="networkidle",
                timeout=self.check_timeout_ms,
            )
        except PlaywrightError as e:
            logger.warning(f"Session check failed: {e}")
            return False

        if is_sign_in_url(page.url):
            logger.info("Session check redirected to sign-in")
            return False

        return True

    async def login(self, email: str | None = None) -> None:
        """Sign in interactively and persist the new session.

        Pre-fills the email field when known, then waits for the user (or an
        external agent) to finish signing in.

        Raises:
            AuthenticationTimeout: Sign-in not completed within the login timeout.
        """
        if self._context is None:
            await self._launch()
            await self._new_context(None)

        page = self.page
        await page.goto(self.url_for(SIGN_IN_PATH), wait_until="domcontentloaded")

        email = email or settings.greenhouse_email
        if email:
            field = await ElementLocator().locate(page, Intent.IDENTITY_EMAIL)
            if field:
                await field.fill(email)
                logger.info("Pre-filled email on sign-in form")

        logger.info(
            f"Waiting up to {self.login_timeout_ms // 1000}s for sign-in to complete..."
        )
        try:
            await page.wait_for_url(is_post_login_url, timeout=self.login_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise AuthenticationTimeout(
                f"Sign-in not completed within {self.login_timeout_ms // 1000} seconds"
            ) from e

        self.status = SessionStatus.ACTIVE
        logger.info("Sign-in detected")
        await self.save()

    async def save(self) -> bool:
        """Persist the current context state. No-op when nothing is open."""
        if self._context is None:
            return False

        state = await self._context.storage_state()
        return await self.store.save(state)

    async def close(self) -> None:
        """Close browser and cleanup. Safe to call repeatedly."""
        if self._context is None and self._browser is None and self._playwright is None:
            return

        logger.info("Closing browser session")

        if self._context:
            try:
                await self._context.close()
            except PlaywrightError as e:
                logger.debug(f"Context already closed: {e}")
            self._context = None
        self._page = None
        self._main_page = None

        if self._browser:
            try:
                await self._browser.close()
            except PlaywrightError as e:
                logger.debug(f"Browser already closed: {e}")
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        self.status = SessionStatus.CLOSED

    # ------------------------------------------------------------------
    # Tabs
    # ------------------------------------------------------------------

    async def adopt_new_tab(self, pages_before: int, timeout_ms: int = 5000) -> bool:
        """Switch the active page to a tab opened after ``pages_before`` was taken.

        Returns:
            True if a new tab was adopted, False if none appeared in time.
        """
        context = self.context
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000

        while loop.time() < deadline:
            if len(context.pages) > pages_before:
                new_page = context.pages[-1]
                try:
                    await new_page.wait_for_load_state("domcontentloaded")
                except PlaywrightError as e:
                    logger.debug(f"New tab did not finish loading: {e}")
                self._page = new_page
                logger.info(f"Switched to new tab: {new_page.url}")
                return True
            await asyncio.sleep(0.25)

        return False

    async def return_to_main(self) -> None:
        """Close any extra tabs and make the first page active again."""
        if self._context is None or self._main_page is None:
            return

        for page in list(self._context.pages):
            if page is not self._main_page:
                try:
                    await page.close()
                except PlaywrightError as e:
                    logger.debug(f"Tab already closed: {e}")

        self._page = self._main_page
        await self._main_page.bring_to_front()
