"""Langfuse tracing for oracle calls."""

import logging
from functools import lru_cache

from langfuse import Langfuse

from src.config import settings

logger = logging.getLogger(__name__)


@lru_cache
def get_langfuse() -> Langfuse | None:
    """
    Get the Langfuse client.

    Returns:
        Langfuse client if both keys are configured, None otherwise.
    """
    if not settings.langfuse_secret_key or not settings.langfuse_public_key:
        return None

    return Langfuse(
        secret_key=settings.langfuse_secret_key,
        public_key=settings.langfuse_public_key,
        host=settings.langfuse_base_url,
    )


def init_langfuse() -> bool:
    """Check Langfuse credentials at startup. Returns True when tracing is live."""
    client = get_langfuse()
    if client is None:
        logger.debug("Langfuse not configured, oracle calls will not be traced")
        return False

    try:
        return bool(client.auth_check())
    except Exception as e:
        logger.warning(f"Langfuse auth check failed: {e}")
        return False


def flush_langfuse() -> None:
    """Send pending traces; call after every run."""
    client = get_langfuse()
    if client:
        client.flush()


def shutdown_langfuse() -> None:
    client = get_langfuse()
    if client:
        client.shutdown()
