"""
Failure sinks: where failed application records end up.

Two implementations share one contract (``save_batch`` / ``get_all``):
a local JSON file and a database table with per-record expiry.
Neither deduplicates; every saved record is returned by ``get_all``.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from src.automation.models import FailureRecord
from src.config import FailureSinkType, settings

logger = logging.getLogger(__name__)


class FailureSink(ABC):
    """Durable store for failure records."""

    @abstractmethod
    async def save_batch(self, records: list[FailureRecord]) -> None:
        """Append ``records``. Raises on failure so callers can retry."""

    @abstractmethod
    async def get_all(self) -> list[FailureRecord]:
        """Every stored (unexpired) record, oldest first."""


class JsonFileFailureSink(FailureSink):
    """
    File-based failure sink.

    File layout::

        {"failures": [...], "totalFailed": 3, "lastUpdated": "2024-01-01T00:00:00+00:00"}
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or settings.failed_jobs_path)

    def _read(self) -> list[dict]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return data.get("failures", [])

    async def save_batch(self, records: list[FailureRecord]) -> None:
        if not records:
            return

        failures = self._read()
        failures.extend(r.model_dump(mode="json") for r in records)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(
                {
                    "failures": failures,
                    "totalFailed": len(failures),
                    "lastUpdated": datetime.now(timezone.utc).isoformat(),
                },
                f,
                indent=2,
            )
        tmp_path.replace(self.path)

        logger.info(f"Saved {len(records)} failed jobs to {self.path} ({len(failures)} total)")

    async def get_all(self) -> list[FailureRecord]:
        return [FailureRecord(**item) for item in self._read()]


def _to_naive_utc(timestamp: str) -> datetime:
    parsed = datetime.fromisoformat(timestamp)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class DatabaseFailureSink(FailureSink):
    """Failure sink backed by the ``failed_jobs`` table.

    Records expire after ``retention_days``, mirroring a key-value table
    with a TTL attribute. Tables are created on first use.
    """

    def __init__(self, engine: AsyncEngine | None = None, retention_days: int | None = None):
        self.engine = engine
        self.retention = timedelta(days=retention_days or settings.failure_retention_days)
        self._session_factory: async_sessionmaker | None = None

    async def _sessions(self) -> async_sessionmaker:
        # src.db.session creates the default engine on import
        from src.db.session import AsyncSessionLocal, init_db

        if self._session_factory is None:
            await init_db(self.engine)
            if self.engine is None:
                self._session_factory = AsyncSessionLocal
            else:
                self._session_factory = async_sessionmaker(self.engine, expire_on_commit=False)
        return self._session_factory

    async def save_batch(self, records: list[FailureRecord]) -> None:
        from src.db.repositories import FailedJobRepository
        from src.db.session import get_session

        if not records:
            return

        rows = [
            {
                "title": r.title,
                "url": r.url,
                "kind": r.kind,
                "reason": r.reason,
                "failed_at": _to_naive_utc(r.timestamp),
            }
            for r in records
        ]
        async with get_session(await self._sessions()) as db:
            repo = FailedJobRepository(db)
            purged = await repo.delete_expired()
            await repo.create_batch(rows, self.retention)

        if purged:
            logger.info(f"Purged {purged} expired failed jobs")
        logger.info(f"Saved {len(records)} failed jobs to database")

    async def get_all(self) -> list[FailureRecord]:
        from src.db.repositories import FailedJobRepository
        from src.db.session import get_session

        async with get_session(await self._sessions()) as db:
            rows = await FailedJobRepository(db).get_active()

        return [
            FailureRecord(
                title=row.title,
                url=row.url,
                timestamp=row.failed_at.replace(tzinfo=timezone.utc).isoformat(),
                reason=row.reason,
                kind=row.kind,
            )
            for row in rows
        ]


def get_failure_sink(sink_type: FailureSinkType | None = None) -> FailureSink:
    """Build the configured failure sink."""
    sink_type = sink_type or settings.failure_sink
    if sink_type == FailureSinkType.DATABASE:
        return DatabaseFailureSink()
    return JsonFileFailureSink()
