"""Shared models for the automation engine."""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, Field

from src.config import Settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Candidate
# ============================================================================


class CandidateProfile(BaseModel):
    """Candidate data used to answer application questions.

    Identity values fill the fields the board cannot autofill, the
    work-authorization facts drive the deterministic answer rules, and
    ``resume_text`` grounds the AI oracle.
    """

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    location: str = "London, United Kingdom"
    country: str = "United Kingdom"
    citizenship: str = "British"
    gender: str = "Male"
    needs_sponsorship_home: bool = False
    needs_sponsorship_abroad: bool = True
    former_employee: bool = False
    open_to_remote: bool = True
    resume_text: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def country_aliases(self) -> list[str]:
        """Names a question may use for the candidate's home country."""
        aliases = [self.country.lower()]
        if self.country.lower() in ("united kingdom", "uk", "great britain"):
            aliases += ["uk", "united kingdom", "britain", "england"]
        elif self.country.lower() in ("united states", "usa", "us"):
            aliases += ["us", "usa", "united states", "america"]
        return aliases

    def work_authorization_summary(self) -> str:
        home = "does not need" if not self.needs_sponsorship_home else "needs"
        abroad = "needs" if self.needs_sponsorship_abroad else "does not need"
        former = "has" if self.former_employee else "has never"
        return (
            f"- Citizenship: {self.citizenship}\n"
            f"- Location: {self.location}\n"
            f"- {home} visa sponsorship to work in {self.country}\n"
            f"- {abroad} visa sponsorship to work outside {self.country}\n"
            f"- {former} worked for the hiring company before\n"
            f"- {'Open' if self.open_to_remote else 'Not open'} to remote work"
        )

    @classmethod
    def from_settings(cls, settings: Settings, resume_text: str = "") -> "CandidateProfile":
        return cls(
            first_name=settings.candidate_first_name,
            last_name=settings.candidate_last_name,
            email=settings.candidate_email or (settings.greenhouse_email or ""),
            phone=settings.candidate_phone,
            location=settings.candidate_location,
            country=settings.candidate_country,
            citizenship=settings.candidate_citizenship,
            gender=settings.candidate_gender,
            needs_sponsorship_home=settings.candidate_needs_sponsorship_home,
            needs_sponsorship_abroad=settings.candidate_needs_sponsorship_abroad,
            former_employee=settings.candidate_former_employee,
            open_to_remote=settings.candidate_open_to_remote,
            resume_text=resume_text,
        )


def html_to_text(html: str, max_length: int = 10000) -> str:
    """Strip markup from a resume document and cap its length."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(["script", "style", "noscript"]):
        tag.decompose()

    text = soup.get_text(separator=" ", strip=True)
    text = re.sub(r"\s+", " ", text).strip()
    return text[:max_length]


# ============================================================================
# Discovery
# ============================================================================


class JobHandle(BaseModel):
    """Reference to one discovered listing.

    Either ``url`` or ``element`` is set. ``element`` is bound to the page the
    discovery pass ran on and becomes invalid once that page navigates.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    title: str
    url: str | None = None
    element: Any = Field(default=None, exclude=True, repr=False)

    @property
    def is_navigable(self) -> bool:
        return bool(self.url)


# ============================================================================
# Forms
# ============================================================================


class FieldKind(str, Enum):
    """Kinds of form control the filler knows how to resolve."""

    TEXT = "text"
    CHECKBOX = "checkbox"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    CUSTOM_MENU = "custom_menu"


class FieldOption(BaseModel):
    value: str
    text: str


class FieldDescriptor(BaseModel):
    """A form control discovered on the current page."""

    kind: FieldKind
    selector: str
    label: str = ""
    required: bool = False
    value: str = ""
    checked: bool = False
    field_id: str = ""
    field_name: str = ""
    placeholder: str = ""
    input_type: str = "text"
    options: list[FieldOption] = Field(default_factory=list)

    @property
    def question(self) -> str:
        """Human-readable question for the resolver."""
        label = self.label.replace("*", "").strip()
        return label or self.placeholder or self.field_name or self.field_id or "text field"

    @property
    def key(self) -> str:
        return self.field_name or self.field_id or self.question


class FormFillReport(BaseModel):
    """What the form filler did on one page."""

    filled: list[str] = Field(default_factory=list)
    checked: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    unresolved: list[str] = Field(default_factory=list)

    @property
    def total_actions(self) -> int:
        return len(self.filled) + len(self.checked)


# ============================================================================
# Outcomes
# ============================================================================


class OutcomeKind(str, Enum):
    """Terminal classification of one application attempt."""

    SUCCEEDED = "succeeded"
    FAILED_SUBMISSION = "failed_submission"
    FAILED_TIMEOUT = "failed_timeout"
    FAILED_NO_APPLY_CONTROL = "failed_no_apply_control"
    FAILED_EXCEPTION = "failed_exception"


class FailureRecord(BaseModel):
    """Wire format written to failure sinks."""

    title: str
    url: str
    timestamp: str
    reason: str
    kind: str


class ApplicationOutcome(BaseModel):
    """Result of one application attempt."""

    kind: OutcomeKind
    title: str
    url: str = ""
    reason: str = ""
    timestamp: datetime = Field(default_factory=utcnow)

    @property
    def succeeded(self) -> bool:
        return self.kind == OutcomeKind.SUCCEEDED

    def to_record(self) -> FailureRecord:
        return FailureRecord(
            title=self.title,
            url=self.url,
            timestamp=self.timestamp.isoformat(),
            reason=self.reason,
            kind=self.kind.value,
        )


class RunStats(BaseModel):
    """Aggregate result of one orchestrator run."""

    found: int = 0
    applied: int = 0
    failed: int = 0
    failures: list[ApplicationOutcome] = Field(default_factory=list)
    error: str | None = None
    stopped: bool = False
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None

    @property
    def aborted(self) -> bool:
        return self.error is not None
