"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends

from src.automation.failure_store import FailureSink, get_failure_sink
from src.automation.orchestrator import Orchestrator


def get_orchestrator() -> Orchestrator:
    """Fresh orchestrator per request, wired from settings."""
    return Orchestrator.from_settings()


def get_failure_sink_dependency() -> FailureSink:
    return get_failure_sink()


OrchestratorDep = Annotated[Orchestrator, Depends(get_orchestrator)]
FailureSinkDep = Annotated[FailureSink, Depends(get_failure_sink_dependency)]
