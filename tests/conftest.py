"""Pytest configuration and fixtures."""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from anthropic import Anthropic

# Set test environment
os.environ["APP_ENV"] = "development"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_data/test.db"
os.environ["FAILED_JOBS_PATH"] = "./test_data/failed-jobs.json"
os.environ["SESSION_STATE_PATH"] = "./test_data/.browser-context"

from src.automation.models import CandidateProfile, FieldDescriptor, FieldKind, FieldOption  # noqa: E402


@pytest.fixture
def mock_anthropic_response():
    """Create a mock Anthropic API response."""

    def _create_response(text: str, input_tokens: int = 100, output_tokens: int = 20):
        mock_response = MagicMock()
        mock_response.content = [MagicMock(type="text", text=text)]
        mock_response.usage = MagicMock(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
        return mock_response

    return _create_response


@pytest.fixture
def mock_claude_client(mock_anthropic_response):
    """Create a mock Claude client."""
    with patch("src.integrations.claude.client.Anthropic") as mock_class:
        mock_client = MagicMock(spec=Anthropic)
        mock_class.return_value = mock_client
        yield mock_client


@pytest.fixture
def profile():
    """Candidate based in the UK who needs sponsorship elsewhere."""
    return CandidateProfile(
        first_name="Alex",
        last_name="Morgan",
        email="alex@example.com",
        phone="+44 7700 900123",
        location="London, United Kingdom",
        country="United Kingdom",
        citizenship="British",
        gender="Male",
        needs_sponsorship_home=False,
        needs_sponsorship_abroad=True,
        former_employee=False,
        open_to_remote=True,
        resume_text="Software engineer with 6 years of Python and AWS experience.",
    )


@pytest.fixture
def yes_no_options():
    return [
        FieldOption(value="", text="Please select"),
        FieldOption(value="1", text="Yes"),
        FieldOption(value="0", text="No"),
    ]


@pytest.fixture
def make_field():
    """Build a FieldDescriptor with sensible defaults."""

    def _make(kind: FieldKind = FieldKind.TEXT, **kwargs):
        kwargs.setdefault("selector", '[data-autoapply-id="1"]')
        return FieldDescriptor(kind=kind, **kwargs)

    return _make


@pytest.fixture
def mock_page():
    """Playwright page double with async navigation and query methods."""
    page = MagicMock()
    page.url = "https://my.greenhouse.io/jobs"
    page.goto = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.wait_for_selector = AsyncMock()
    page.wait_for_url = AsyncMock()
    page.evaluate = AsyncMock(return_value=0)
    page.query_selector = AsyncMock(return_value=None)
    page.query_selector_all = AsyncMock(return_value=[])
    page.inner_text = AsyncMock(return_value="")
    page.bring_to_front = AsyncMock()
    page.close = AsyncMock()
    page.keyboard.press = AsyncMock()
    return page


@pytest.fixture
def mock_session(mock_page):
    """BrowserSession double exposing ``mock_page`` as its active page."""
    session = MagicMock()
    session.page = mock_page
    session.base_url = "https://my.greenhouse.io"
    session.url_for = lambda path: f"https://my.greenhouse.io{path}"
    session.context.pages = [mock_page]
    session.open = AsyncMock()
    session.close = AsyncMock()
    session.return_to_main = AsyncMock()
    session.adopt_new_tab = AsyncMock(return_value=False)
    return session


@pytest.fixture
def mock_sink():
    sink = MagicMock()
    sink.save_batch = AsyncMock()
    sink.get_all = AsyncMock(return_value=[])
    return sink
