"""
Application run orchestration.

One run:
1. Restore the browser session (fail fast if it is not valid)
2. Discover jobs on the search page
3. Apply to each, in discovery order, with a fixed delay between attempts
4. Flush the failure journal and return run statistics
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from pathlib import Path

from playwright.async_api import Error as PlaywrightError

from src.agents.answer_oracle import AnswerOracle
from src.automation.answers import FieldAnswerResolver
from src.automation.discovery import JobDiscovery
from src.automation.errors import AuthenticationRequired, AuthenticationTimeout
from src.automation.fillers import FormFiller
from src.automation.journal import FailureJournal
from src.automation.locator import ElementLocator
from src.automation.models import CandidateProfile, JobHandle, RunStats, html_to_text
from src.automation.workflow import ApplicationWorkflow
from src.browser_service.models import BrowserConfig
from src.browser_service.session import BrowserSession
from src.config import settings

logger = logging.getLogger(__name__)


def load_resume(path: str | Path | None) -> str:
    """Read the resume used to ground oracle answers (plain text or HTML)."""
    if not path:
        return ""

    resume_path = Path(path)
    if not resume_path.exists():
        logger.warning(f"Resume not found at {resume_path}")
        return ""

    try:
        content = resume_path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        content = resume_path.read_text(encoding="latin-1")

    if resume_path.suffix.lower() in (".html", ".htm"):
        return html_to_text(content)
    return content[:10000]


class Orchestrator:
    """
    Runs the application engine end to end.

    Jobs are processed strictly one at a time. ``request_stop`` takes
    effect between jobs; a job in progress always finishes.
    """

    def __init__(
        self,
        session: BrowserSession,
        discovery: JobDiscovery,
        workflow: ApplicationWorkflow,
        journal: FailureJournal,
        max_applications: int | None = None,
        delay_between_apps: float | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            session: Browser session shared by discovery and the workflow
            discovery: Job discovery over the session's page
            workflow: Per-job workflow
            journal: Failure journal flushed at the end of every run
            max_applications: Maximum applications per run
            delay_between_apps: Seconds between applications
        """
        self.session = session
        self.discovery = discovery
        self.workflow = workflow
        self.journal = journal
        self.max_applications = max_applications or settings.max_applications_per_run
        self.delay_between_apps = (
            settings.delay_between_applications if delay_between_apps is None else delay_between_apps
        )
        self._stop_requested = False

    @classmethod
    def from_settings(cls, headless: bool | None = None) -> "Orchestrator":
        """Wire every component from application settings."""
        profile = CandidateProfile.from_settings(settings, load_resume(settings.resume_path))
        oracle = AnswerOracle(profile)
        resolver = FieldAnswerResolver(profile, oracle)
        locator = ElementLocator()
        session = BrowserSession(config=BrowserConfig.from_settings(settings, headless=headless))
        journal = FailureJournal()

        return cls(
            session=session,
            discovery=JobDiscovery(session, locator),
            workflow=ApplicationWorkflow(session, locator, FormFiller(resolver), journal),
            journal=journal,
        )

    def request_stop(self) -> None:
        """Stop after the job currently in progress."""
        logger.info("Stop requested, finishing current job")
        self._stop_requested = True

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    async def run(self, filter_url: str | None = None) -> RunStats:
        """
        Discover jobs and apply to them.

        Args:
            filter_url: Search page with filters already applied (None = fill the search form)

        Returns:
            RunStats, also when the run was aborted
        """

        async def body(stats: RunStats) -> None:
            jobs = await self.discovery.search(filter_url)
            stats.found = len(jobs)
            await self._apply_all(jobs[: self.max_applications], stats, filter_url)

        return await self._execute("APPLICATION RUN", body)

    async def apply_single(self, url: str, title: str | None = None) -> RunStats:
        """Apply to one job by URL, for debugging a specific posting."""

        async def body(stats: RunStats) -> None:
            stats.found = 1
            outcome = await self.workflow.apply_url(url, title)
            if outcome.succeeded:
                stats.applied += 1

        return await self._execute("SINGLE APPLICATION", body)

    async def retry_failed(self) -> RunStats:
        """Re-attempt every stored failure that has a URL, once per URL."""

        async def body(stats: RunStats) -> None:
            records = await self.journal.sink.get_all()
            seen: set[str] = set()
            jobs = []
            for record in records:
                if record.url and record.url not in seen:
                    seen.add(record.url)
                    jobs.append(JobHandle(title=record.title, url=record.url))

            stats.found = len(jobs)
            logger.info(f"Retrying {len(jobs)} of {len(records)} stored failures")
            await self._apply_all(jobs, stats)

        return await self._execute("RETRY FAILED JOBS", body)

    async def _execute(
        self, title: str, body: Callable[[RunStats], Awaitable[None]]
    ) -> RunStats:
        logger.info("=" * 60)
        logger.info(f"STARTING {title}")
        logger.info("=" * 60)

        self._stop_requested = False
        stats = RunStats()

        try:
            await self.session.open()
            await body(stats)

        except (AuthenticationRequired, AuthenticationTimeout) as e:
            logger.error(f"Run aborted: {e}")
            stats.error = str(e)

        except Exception as e:
            logger.exception("Run aborted by unexpected error")
            stats.error = f"{type(e).__name__}: {e}"

        finally:
            await self._finish(stats)

        return stats

    async def _apply_all(
        self, jobs: list[JobHandle], stats: RunStats, filter_url: str | None = None
    ) -> None:
        for i, job in enumerate(jobs, 1):
            if self._stop_requested:
                stats.stopped = True
                logger.info(f"Stopping before job {i}/{len(jobs)}")
                break

            if i > 1 and not job.is_navigable:
                job = await self._rebind(job, filter_url)

            logger.info(f"[{i}/{len(jobs)}] {job.title}")
            outcome = await self.workflow.apply(job)
            if outcome.succeeded:
                stats.applied += 1

            if i < len(jobs) and self.delay_between_apps > 0:
                logger.info(f"Waiting {self.delay_between_apps:g}s before next application...")
                await asyncio.sleep(self.delay_between_apps)

    async def _rebind(self, job: JobHandle, filter_url: str | None) -> JobHandle:
        """Find ``job`` again on the listing page.

        Element-only handles die once the listing page navigates. The page
        currently loaded is re-scanned first; the search page is reopened
        only if the job is not there.
        """
        for navigate in (False, True):
            for fresh in await self.discovery.search(filter_url, should_navigate=navigate):
                if fresh.title == job.title:
                    return fresh
        logger.warning(f"'{job.title}' is no longer listed, using the original handle")
        return job

    async def _finish(self, stats: RunStats) -> None:
        await self.journal.flush()
        stats.failures = self.journal.failures
        stats.failed = len(stats.failures)
        stats.completed_at = datetime.now(timezone.utc)

        try:
            await self.session.close()
        except PlaywrightError as e:
            logger.warning(f"Error closing browser: {e}")

        self._log_summary(stats)

    def _log_summary(self, stats: RunStats) -> None:
        logger.info("=" * 60)
        logger.info("RUN SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Found: {stats.found}")
        logger.info(f"Applied: {stats.applied}")
        logger.info(f"Failed: {stats.failed}")
        for outcome in stats.failures:
            logger.info(f"  - [{outcome.kind.value}] {outcome.title}: {outcome.reason}")
        if stats.error:
            logger.info(f"Aborted: {stats.error}")
