"""
Session persistence for the browser context.

Stores the Playwright storage state (cookies and origin storage) so a run can
resume an authenticated session without logging in again.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from src.config import settings

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Load/save contract for the persisted session blob."""

    @abstractmethod
    async def load(self) -> dict[str, Any] | None:
        """Return the stored blob, or None when nothing is stored."""

    @abstractmethod
    async def save(self, state: dict[str, Any]) -> bool:
        """Persist the blob. Returns True on success."""

    @abstractmethod
    async def delete(self) -> bool:
        """Discard the stored blob."""


class FileSessionStore(SessionStore):
    """
    File-based session store.

    The file holds the raw storage-state JSON, so it can also be passed to
    Playwright directly via ``storage_state=<path>``.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or settings.session_state_path)

    async def load(self) -> dict[str, Any] | None:
        if not self.path.exists():
            logger.info(f"No saved session at {self.path}")
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                state = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load session from {self.path}: {e}")
            return None

        if not isinstance(state, dict) or "cookies" not in state:
            logger.warning(f"Ignoring malformed session file {self.path}")
            return None

        logger.debug(f"Session loaded from {self.path} ({len(state['cookies'])} cookies)")
        return state

    async def save(self, state: dict[str, Any]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(state, f, indent=2)
            tmp_path.replace(self.path)

            logger.info(f"Session saved to {self.path}")
            return True

        except OSError as e:
            logger.error(f"Failed to save session to {self.path}: {e}")
            return False

    async def delete(self) -> bool:
        try:
            if self.path.exists():
                self.path.unlink()
                logger.info(f"Session file {self.path} deleted")
            return True

        except OSError as e:
            logger.error(f"Failed to delete session file {self.path}: {e}")
            return False


# Global store instance
_store: SessionStore | None = None


def get_session_store() -> SessionStore:
    """Get the global session store instance."""
    global _store
    if _store is None:
        _store = FileSessionStore()
    return _store
