"""Pydantic schemas for API requests and responses."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.automation.models import ApplicationOutcome, FailureRecord, RunStats


class RunRequest(BaseModel):
    """Options for an on-demand run."""

    filter_url: str | None = Field(
        default=None, description="Search page with filters applied; omit to use the search form"
    )
    max_applications: int | None = Field(default=None, ge=1, le=100)


class OutcomeResponse(BaseModel):
    kind: str
    title: str
    url: str
    reason: str
    timestamp: datetime

    @classmethod
    def from_outcome(cls, outcome: ApplicationOutcome) -> "OutcomeResponse":
        return cls(
            kind=outcome.kind.value,
            title=outcome.title,
            url=outcome.url,
            reason=outcome.reason,
            timestamp=outcome.timestamp,
        )


class RunResponse(BaseModel):
    """Result of a run."""

    success: bool
    found: int
    applied: int
    failed: int
    failures: list[OutcomeResponse]
    error: str | None = None
    started_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_stats(cls, stats: RunStats) -> "RunResponse":
        return cls(
            success=not stats.aborted,
            found=stats.found,
            applied=stats.applied,
            failed=stats.failed,
            failures=[OutcomeResponse.from_outcome(o) for o in stats.failures],
            error=stats.error,
            started_at=stats.started_at,
            completed_at=stats.completed_at,
        )


class FailedJobsResponse(BaseModel):
    failures: list[FailureRecord]
    total: int
