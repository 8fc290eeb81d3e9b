"""Job discovery: search, paginate until stable, extract job handles."""

import logging
import re
from urllib.parse import urljoin

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from pydantic import BaseModel

from src.automation.locator import ElementLocator
from src.automation.models import JobHandle
from src.automation.strategies import Intent
from src.browser_service.session import JOBS_PATH, BrowserSession
from src.config import settings

logger = logging.getLogger(__name__)

JOB_LISTING_SELECTOR = (
    'a[href*="/jobs/"], button:has-text("View job"), a:has-text("View job")'
)
VIEW_JOB_SELECTOR = 'button:has-text("View job"), a:has-text("View job")'
JOB_CARD_SELECTORS = [
    "article",
    '[class*="job-card"]',
    '[class*="JobCard"]',
    '[class*="card"]',
    '[class*="listing"]',
]

# Returns {title, href} for the card around a "View job" control
CARD_INFO_JS = """
(el) => {
    const card = el.closest('[class*="card"], [class*="job"], article, [class*="listing"], [class*="item"]')
        || (el.parentElement && el.parentElement.parentElement) || el.parentElement;
    if (!card) return null;
    const heading = card.querySelector('h1, h2, h3, h4, [class*="title"], [class*="name"]');
    const title = heading ? heading.textContent.trim() : (card.textContent || '').trim().split('\\n')[0];
    const link = el.tagName === 'A' ? el : card.querySelector('a[href*="/jobs/"]');
    return { title: title.replace(/\\s+/g, ' '), href: link ? link.getAttribute('href') : null };
}
"""

# Same, for a card element that holds its own view control
CARD_SCAN_JS = """
(card) => {
    const heading = card.querySelector('h1, h2, h3, h4, [class*="title"], [class*="name"]');
    const link = card.querySelector('a[href*="/jobs/"]');
    return {
        title: heading ? heading.textContent.trim().replace(/\\s+/g, ' ') : '',
        href: link ? link.getAttribute('href') : null,
    };
}
"""


class SearchFilters(BaseModel):
    """Values typed into the job search form."""

    keywords: str = "software engineer"
    work_type: str = "remote"
    posted_within_days: int = 10
    title_pattern: str = r"software\s+engineer"

    @classmethod
    def from_settings(cls) -> "SearchFilters":
        return cls(
            keywords=settings.search_keywords,
            work_type=settings.search_work_type,
            posted_within_days=settings.search_posted_within_days,
            title_pattern=settings.job_title_pattern,
        )

    def matches(self, title: str) -> bool:
        return bool(re.search(self.title_pattern, title, re.IGNORECASE))


class JobDiscovery:
    """Finds the jobs to apply to.

    Args:
        session: Browser session whose page is searched
        locator: Element locator for search and load-more controls
        filters: Search form values and title filter
        max_attempts: Upper bound on load-more attempts per pass
    """

    def __init__(
        self,
        session: BrowserSession,
        locator: ElementLocator | None = None,
        filters: SearchFilters | None = None,
        max_attempts: int | None = None,
    ):
        self.session = session
        self.locator = locator or ElementLocator()
        self.filters = filters or SearchFilters.from_settings()
        self.max_attempts = max_attempts or settings.discovery_max_attempts

    async def search(
        self, filter_url: str | None = None, should_navigate: bool = True
    ) -> list[JobHandle]:
        """Load every listing on the search surface and return the matching jobs.

        Args:
            filter_url: Search page to open; defaults to the jobs page
            should_navigate: False re-scans the page already loaded

        Returns:
            Job handles in page order
        """
        page = self.session.page

        if should_navigate:
            url = filter_url or self.session.url_for(JOBS_PATH)
            logger.info(f"Navigating to {url}")
            await page.goto(url, wait_until="networkidle")
            await page.wait_for_timeout(2000)
            if filter_url is None:
                await self.fill_search_form()
        else:
            await page.wait_for_timeout(1000)

        try:
            await page.wait_for_selector(JOB_LISTING_SELECTOR, timeout=15000)
        except PlaywrightTimeoutError:
            logger.warning("No job listings appeared on the search page")
            return []

        await self.load_all()
        jobs = await self.extract_jobs()
        logger.info(f"Discovered {len(jobs)} matching jobs")
        return jobs

    async def fill_search_form(self) -> bool:
        """Type the keyword, pick work type and posting date, run the search.

        Returns:
            True if a search was submitted
        """
        page = self.session.page

        title_input = await self.locator.locate(page, Intent.SEARCH_TITLE)
        if title_input is None:
            logger.info("No search form found, using listings as loaded")
            return False
        await title_input.fill(self.filters.keywords)

        await self._choose(Intent.WORK_TYPE_SELECT, rf"\b{re.escape(self.filters.work_type)}\b")
        await self._choose(Intent.DATE_POSTED_SELECT, rf"\b{self.filters.posted_within_days}\s*day")

        search_button = await self.locator.locate(page, Intent.SEARCH_SUBMIT)
        if search_button is not None:
            await search_button.click()
        else:
            await title_input.press("Enter")

        try:
            await page.wait_for_load_state("networkidle", timeout=10000)
        except PlaywrightTimeoutError:
            logger.debug("Search results still loading")
        await page.wait_for_timeout(2000)
        return True

    async def _choose(self, intent: Intent, option_pattern: str) -> None:
        select = await self.locator.locate(self.session.page, intent)
        if select is None:
            return

        options = await select.evaluate(
            "el => Array.from(el.options || []).map(o => ({value: o.value, text: o.text}))"
        )
        for option in options:
            if re.search(option_pattern, option["text"], re.IGNORECASE):
                await select.select_option(value=option["value"])
                logger.debug(f"{intent.value}: chose '{option['text']}'")
                return
        logger.debug(f"{intent.value}: no option matches {option_pattern}")

    async def count_listings(self) -> int:
        return len(await self.session.page.query_selector_all(JOB_LISTING_SELECTOR))

    async def load_more(self) -> bool:
        """Trigger one more page of results.

        Returns:
            True if a load-more control was clicked, False if the page was
            scrolled instead
        """
        page = self.session.page
        control = await self.locator.locate(page, Intent.LOAD_MORE)

        if control is not None:
            try:
                await control.scroll_into_view_if_needed()
                await control.click()
                await page.wait_for_timeout(2000)
                await page.wait_for_load_state("networkidle", timeout=5000)
                return True
            except PlaywrightError as e:
                logger.debug(f"Load-more click failed, scrolling instead: {e}")

        await page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
        await page.wait_for_timeout(2000)
        return False

    async def load_all(self) -> list[int]:
        """Load more until the listing count stops growing or attempts run out.

        Returns:
            Listing count observed before the first and after every attempt
        """
        counts = [await self.count_listings()]
        logger.info(f"Initial listings: {counts[0]}")

        for attempt in range(1, self.max_attempts + 1):
            await self.load_more()
            count = await self.count_listings()
            counts.append(count)

            if count <= counts[-2]:
                logger.info(f"Listings stable at {count} after {attempt} attempts")
                break
            logger.info(f"Attempt {attempt}: {counts[-2]} -> {count} listings")
        else:
            logger.warning(f"Stopped loading after {self.max_attempts} attempts")

        return counts

    async def extract_jobs(self) -> list[JobHandle]:
        """Build job handles from the loaded listings, keeping matching titles."""
        page = self.session.page
        jobs: list[JobHandle] = []

        for control in await page.query_selector_all(VIEW_JOB_SELECTOR):
            info = await control.evaluate(CARD_INFO_JS)
            job = self._to_handle(info, control)
            if job:
                jobs.append(job)

        if jobs:
            return jobs

        # Fallback for layouts without "View job" controls
        for selector in JOB_CARD_SELECTORS:
            cards = await page.query_selector_all(selector)
            if not cards:
                continue
            for card in cards:
                info = await card.evaluate(CARD_SCAN_JS)
                control = await card.query_selector('a[href*="/jobs/"], button, a')
                job = self._to_handle(info, control)
                if job:
                    jobs.append(job)
            if jobs:
                break

        return jobs

    def _to_handle(self, info: dict | None, control) -> JobHandle | None:
        if not info or not info.get("title"):
            return None

        title = info["title"]
        if not self.filters.matches(title):
            logger.debug(f"Skipping non-matching job: {title}")
            return None

        href = info.get("href")
        url = urljoin(self.session.base_url + "/", href) if href else None
        return JobHandle(title=title, url=url, element=control)
