"""Per-job application workflow.

States run in a fixed order::

    opening -> autofill_attempt -> applying -> form_filling -> submitting
        -> confirmed | failed

Opening through submitting share one wall-clock budget. Confirmation is
awaited separately, with a single autofill-and-resubmit retry when it does
not appear in time.
"""

import asyncio
import logging
import re
import time
from enum import Enum

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.automation.errors import (
    FailedNoApplyControl,
    FailedSubmission,
    FailedTimeout,
    WorkflowFailure,
)
from src.automation.fillers import FormFiller
from src.automation.journal import FailureJournal
from src.automation.locator import ElementLocator
from src.automation.models import ApplicationOutcome, FormFillReport, JobHandle, OutcomeKind
from src.automation.strategies import Intent
from src.browser_service.session import BrowserSession
from src.config import settings

logger = logging.getLogger(__name__)

SUCCESS_TEXT_RE = re.compile(
    r"thank you for (applying|your application)|thanks for applying|application (has been )?"
    r"(submitted|received)|successfully (submitted|applied)|thanks a ton|we('| wi)ll be in touch",
    re.I,
)
SUCCESS_URL_RE = re.compile(r"success|submitted|thank", re.I)
SUCCESS_SELECTOR = '[class*="success"], [class*="submitted"], [class*="confirmation"]'
ERROR_TEXT_RE = re.compile(r"error|invalid|required|missing", re.I)
ERROR_SELECTOR = '[class*="error"], [role="alert"], .field-error'

# How many leading inputs to inspect when checking whether autofill worked
AUTOFILL_SAMPLE = 5

COUNT_FILLED_JS = f"""
() => Array.from(document.querySelectorAll('input[type="text"], input[type="email"], textarea'))
    .slice(0, {AUTOFILL_SAMPLE})
    .filter((el) => el.value && el.value.trim().length > 0).length
"""


class WorkflowState(str, Enum):
    OPENING = "opening"
    AUTOFILL_ATTEMPT = "autofill_attempt"
    APPLYING = "applying"
    FORM_FILLING = "form_filling"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class ApplicationWorkflow:
    """Applies to one job at a time and classifies the outcome.

    Every failure ends up in the journal with a reason; ``apply`` itself
    never raises for job-level problems.

    Args:
        session: Browser session whose page is driven
        locator: Element locator for controls
        form_filler: Fills the application form
        journal: Receives non-success outcomes
        budget_seconds: Limit for opening through submitting
        confirmation_timeout: Wait for a success indicator after submitting
        retry_confirmation_timeout: Wait after the single resubmission
        optimistic_confirmation: Treat "no submit control and no indicator"
            as success instead of failure
        poll_interval: Seconds between success-indicator checks
    """

    def __init__(
        self,
        session: BrowserSession,
        locator: ElementLocator,
        form_filler: FormFiller,
        journal: FailureJournal,
        budget_seconds: float | None = None,
        confirmation_timeout: float | None = None,
        retry_confirmation_timeout: float | None = None,
        optimistic_confirmation: bool | None = None,
        poll_interval: float = 1.0,
    ):
        self.session = session
        self.locator = locator
        self.form_filler = form_filler
        self.journal = journal
        self.budget_seconds = budget_seconds or settings.application_budget_seconds
        self.confirmation_timeout = confirmation_timeout or settings.confirmation_timeout_seconds
        self.retry_confirmation_timeout = (
            retry_confirmation_timeout or settings.retry_confirmation_timeout_seconds
        )
        self.optimistic_confirmation = (
            settings.optimistic_confirmation
            if optimistic_confirmation is None
            else optimistic_confirmation
        )
        self.poll_interval = poll_interval

        self.state = WorkflowState.OPENING
        self.transitions: list[WorkflowState] = []
        self.last_fill_report: FormFillReport | None = None

    def _enter(self, state: WorkflowState) -> None:
        self.state = state
        self.transitions.append(state)
        logger.debug(f"Workflow -> {state.value}")

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def apply(self, job: JobHandle) -> ApplicationOutcome:
        """Run the full workflow for one job and return its outcome."""
        self.transitions = []
        self.last_fill_report = None
        started = time.monotonic()
        logger.info(f"Applying to: {job.title}")

        try:
            submitted = await asyncio.wait_for(self._prepare_and_submit(job), self.budget_seconds)
            await self._confirm(submitted)
            outcome = self._outcome(job, OutcomeKind.SUCCEEDED, "Application confirmed")

        except asyncio.TimeoutError:
            outcome = self._outcome(
                job,
                OutcomeKind.FAILED_TIMEOUT,
                f"Application process exceeded {self.budget_seconds:g} seconds "
                f"during {self.state.value}",
            )
        except WorkflowFailure as e:
            outcome = self._outcome(job, e.kind, e.reason)
        except PlaywrightTimeoutError as e:
            outcome = self._outcome(job, OutcomeKind.FAILED_TIMEOUT, f"Browser timeout: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error applying to {job.title}")
            outcome = self._outcome(job, OutcomeKind.FAILED_EXCEPTION, f"{type(e).__name__}: {e}")

        try:
            await self.session.return_to_main()
        except PlaywrightError as e:
            logger.warning(f"Could not return to main tab: {e}")

        elapsed = time.monotonic() - started
        if outcome.succeeded:
            self._enter(WorkflowState.CONFIRMED)
            logger.info(f"Applied to {job.title} in {elapsed:.1f}s")
        else:
            self._enter(WorkflowState.FAILED)
            logger.warning(f"Failed {job.title} [{outcome.kind.value}]: {outcome.reason}")
            self.journal.record(outcome)

        return outcome

    async def apply_url(self, url: str, title: str | None = None) -> ApplicationOutcome:
        """Apply to a job given only its URL."""
        return await self.apply(JobHandle(title=title or url, url=url))

    def _outcome(self, job: JobHandle, kind: OutcomeKind, reason: str) -> ApplicationOutcome:
        url = job.url or ""
        if not url:
            try:
                url = self.session.page.url
            except RuntimeError:
                url = ""
        return ApplicationOutcome(kind=kind, title=job.title, url=url, reason=reason)

    # ------------------------------------------------------------------
    # Budgeted stages
    # ------------------------------------------------------------------

    async def _prepare_and_submit(self, job: JobHandle) -> bool:
        self._enter(WorkflowState.OPENING)
        await self.open_job(job)

        self._enter(WorkflowState.AUTOFILL_ATTEMPT)
        await self.attempt_autofill()

        self._enter(WorkflowState.APPLYING)
        await self.click_apply()

        self._enter(WorkflowState.FORM_FILLING)
        self.last_fill_report = await self.form_filler.fill_all(self.session.page)

        self._enter(WorkflowState.SUBMITTING)
        return await self.submit()

    async def open_job(self, job: JobHandle) -> None:
        """Activate the job handle and wait for its page (possibly a new tab)."""
        page = self.session.page

        if job.element is not None:
            pages_before = len(self.session.context.pages)
            await job.element.scroll_into_view_if_needed()
            await job.element.click()
            await page.wait_for_timeout(2000)
            if not await self.session.adopt_new_tab(pages_before, timeout_ms=3000):
                logger.debug("Job opened in the same tab")
        elif job.url:
            await page.goto(job.url, wait_until="domcontentloaded")
        else:
            raise WorkflowFailure(f"Job '{job.title}' has neither a view control nor a URL")

        page = self.session.page
        try:
            await page.wait_for_load_state("networkidle", timeout=10000)
        except PlaywrightTimeoutError:
            logger.debug("Job page still busy, continuing")

        await self.dismiss_cookie_banner()

    async def dismiss_cookie_banner(self) -> bool:
        page = self.session.page
        button = await self.locator.locate(page, Intent.COOKIE_ACCEPT)
        if button is None:
            return False

        try:
            await button.click(timeout=3000)
            await page.wait_for_timeout(500)
            logger.info("Dismissed cookie banner")
            return True
        except PlaywrightError as e:
            logger.debug(f"Cookie banner click failed: {e}")
            return False

    async def attempt_autofill(self) -> bool:
        """Trigger the board's autofill.

        Focusing a text input is usually enough. If none of the leading
        inputs has a value afterwards, the explicit autofill control is used.

        Returns:
            True if the autofill control was clicked
        """
        page = self.session.page

        first_input = await self.locator.locate(page, Intent.TEXT_INPUT)
        if first_input is not None:
            try:
                await first_input.click(timeout=3000)
            except PlaywrightError as e:
                logger.debug(f"Could not focus first input: {e}")
            await page.wait_for_timeout(1500)

        filled = await page.evaluate(COUNT_FILLED_JS)
        if filled:
            logger.info(f"Autofill populated {filled} fields")
            return False

        control = await self.locator.locate(page, Intent.AUTOFILL)
        if control is None:
            logger.debug("No autofill control found")
            return False

        try:
            await control.click(timeout=3000)
        except PlaywrightError:
            await control.evaluate("el => el.click()")
        await page.wait_for_timeout(2000)
        logger.info("Clicked autofill control")
        return True

    async def click_apply(self) -> None:
        page = self.session.page
        await page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
        await page.wait_for_timeout(500)

        button = await self.locator.locate(page, Intent.APPLY)
        if button is None:
            raise FailedNoApplyControl("Apply button not found")

        await self.dismiss_cookie_banner()
        await button.click()
        await page.wait_for_timeout(2000)
        try:
            await page.wait_for_load_state("domcontentloaded", timeout=3000)
        except PlaywrightTimeoutError:
            logger.debug("Form still loading after apply click")

    async def submit(self) -> bool:
        """Click the submit control.

        Returns:
            False when no submit control exists (the form may auto-submit)
        """
        page = self.session.page
        await page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
        await page.wait_for_timeout(500)

        button = await self.locator.locate(page, Intent.SUBMIT)
        if button is None:
            logger.info("No submit button found, waiting for confirmation instead")
            return False

        await button.scroll_into_view_if_needed()
        await button.click()
        logger.info("Clicked submit")
        return True

    # ------------------------------------------------------------------
    # Confirmation
    # ------------------------------------------------------------------

    async def _confirm(self, submitted: bool) -> None:
        if submitted:
            if await self.wait_for_confirmation(self.confirmation_timeout):
                return

            logger.info("No confirmation yet, retrying autofill and submit once")
            await self.attempt_autofill()
            resubmitted = await self.submit()
            if resubmitted and await self.wait_for_confirmation(self.retry_confirmation_timeout):
                return

            if await self.has_error_messages():
                raise FailedSubmission("Submission rejected: error messages on the form")
            raise FailedTimeout(
                f"Submission not confirmed within {self.confirmation_timeout:g} seconds"
            )

        if await self.wait_for_confirmation(self.confirmation_timeout):
            return
        if self.optimistic_confirmation:
            logger.warning("No submit control and no confirmation, assuming success")
            return
        raise FailedSubmission("No submit control found and no confirmation appeared")

    async def wait_for_confirmation(self, timeout: float) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            if await self.has_success_indicator():
                logger.info("Application confirmed")
                return True
            if loop.time() >= deadline:
                return False
            await asyncio.sleep(self.poll_interval)

    async def has_success_indicator(self) -> bool:
        page = self.session.page
        try:
            if SUCCESS_URL_RE.search(page.url):
                return True
            for element in await page.query_selector_all(SUCCESS_SELECTOR):
                if await element.is_visible():
                    return True
            body = await page.inner_text("body", timeout=2000)
        except PlaywrightError as e:
            logger.debug(f"Confirmation check failed: {e}")
            return False
        return bool(SUCCESS_TEXT_RE.search(body))

    async def has_error_messages(self) -> bool:
        page = self.session.page
        try:
            for element in await page.query_selector_all(ERROR_SELECTOR):
                if await element.is_visible() and ERROR_TEXT_RE.search(await element.inner_text()):
                    return True
        except PlaywrightError as e:
            logger.debug(f"Error message check failed: {e}")
        return False
