"""Failed job API routes."""

from fastapi import APIRouter

from src.api.dependencies import FailureSinkDep
from src.api.schemas import FailedJobsResponse

router = APIRouter()


@router.get("", response_model=FailedJobsResponse)
async def list_failed_jobs(sink: FailureSinkDep):
    """List stored failed applications, oldest first."""
    failures = await sink.get_all()
    return FailedJobsResponse(failures=failures, total=len(failures))
