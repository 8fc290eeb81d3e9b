"""FastAPI application entry point."""

import logging
import traceback
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.routes import failed_jobs, runs
from src.config import configure_logging, settings
from src.integrations.langfuse.tracing import flush_langfuse, init_langfuse, shutdown_langfuse

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    init_langfuse()
    yield
    flush_langfuse()
    shutdown_langfuse()


app = FastAPI(
    title="Greenhouse Auto-Apply",
    description="Automated job applications on the Greenhouse job board",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log and handle all unhandled exceptions."""
    logger.error(f"Unhandled error: {type(exc).__name__}: {exc}")
    logger.error(traceback.format_exc())
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {type(exc).__name__}: {str(exc)}"},
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Greenhouse Auto-Apply",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "environment": settings.app_env.value,
        "failure_sink": settings.failure_sink.value,
    }


app.include_router(runs.router, prefix="/api/runs", tags=["runs"])
app.include_router(failed_jobs.router, prefix="/api/failed-jobs", tags=["failed-jobs"])
