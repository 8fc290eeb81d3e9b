"""Run trigger API routes."""

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Response

from src.api.dependencies import OrchestratorDep
from src.api.schemas import RunRequest, RunResponse

logger = logging.getLogger(__name__)

router = APIRouter()

# One browser, one run at a time
_run_lock = asyncio.Lock()


@router.post("", response_model=RunResponse)
async def trigger_run(
    orchestrator: OrchestratorDep,
    response: Response,
    request: RunRequest | None = None,
):
    """
    Run discovery and applications synchronously and return the statistics.

    Responds 409 while another run is in progress and 500 (with the
    statistics body) when the run was aborted, e.g. by a missing session.
    """
    if _run_lock.locked():
        raise HTTPException(status_code=409, detail="A run is already in progress")

    request = request or RunRequest()
    if request.max_applications:
        orchestrator.max_applications = request.max_applications

    async with _run_lock:
        stats = await orchestrator.run(filter_url=request.filter_url)

    if stats.aborted:
        response.status_code = 500
    return RunResponse.from_stats(stats)
