"""Tests for the failure journal and failure sinks."""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from src.automation.failure_store import (
    DatabaseFailureSink,
    JsonFileFailureSink,
    get_failure_sink,
)
from src.automation.journal import FailureJournal
from src.automation.models import ApplicationOutcome, FailureRecord, OutcomeKind
from src.config import FailureSinkType
from src.db.repositories import FailedJobRepository
from src.db.session import get_session, init_db


def make_outcome(title="Software Engineer", kind=OutcomeKind.FAILED_SUBMISSION):
    return ApplicationOutcome(
        kind=kind,
        title=title,
        url=f"https://my.greenhouse.io/jobs/{abs(hash(title)) % 1000}",
        reason="Submission rejected",
    )


def make_record(title="Software Engineer", timestamp=None):
    return FailureRecord(
        title=title,
        url="https://my.greenhouse.io/jobs/1",
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
        reason="Apply button not found",
        kind="failed_no_apply_control",
    )


class TestFailureJournal:
    """Tests for buffering and flushing failures."""

    @pytest.mark.asyncio
    async def test_successes_not_recorded(self, mock_sink):
        journal = FailureJournal(mock_sink)

        journal.record(make_outcome(kind=OutcomeKind.SUCCEEDED))

        assert journal.pending == 0
        assert await journal.flush() == 0
        mock_sink.save_batch.assert_not_called()

    @pytest.mark.asyncio
    async def test_flush_writes_batch_once(self, mock_sink):
        journal = FailureJournal(mock_sink)
        journal.record(make_outcome("A"))
        journal.record(make_outcome("B", OutcomeKind.FAILED_TIMEOUT))

        assert await journal.flush() == 2
        assert await journal.flush() == 0

        mock_sink.save_batch.assert_awaited_once()
        records = mock_sink.save_batch.await_args.args[0]
        assert [r.title for r in records] == ["A", "B"]
        assert records[1].kind == "failed_timeout"
        assert len(journal.failures) == 2

    @pytest.mark.asyncio
    async def test_failed_flush_keeps_pending(self, mock_sink):
        mock_sink.save_batch = AsyncMock(side_effect=[OSError("disk full"), None])
        journal = FailureJournal(mock_sink)
        journal.record(make_outcome())

        assert await journal.flush() == 0
        assert journal.pending == 1
        assert await journal.flush() == 1
        assert journal.pending == 0


class TestJsonFileFailureSink:
    """Tests for the local JSON file."""

    @pytest.mark.asyncio
    async def test_appends_batches(self, tmp_path):
        path = tmp_path / "data" / "failed-jobs.json"
        sink = JsonFileFailureSink(path)

        await sink.save_batch([make_record("A")])
        await sink.save_batch([make_record("B"), make_record("C")])

        data = json.loads(path.read_text())
        assert data["totalFailed"] == 3
        assert "lastUpdated" in data
        assert [r.title for r in await sink.get_all()] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_empty_batch_is_noop(self, tmp_path):
        path = tmp_path / "failed-jobs.json"

        await JsonFileFailureSink(path).save_batch([])

        assert not path.exists()

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        assert await JsonFileFailureSink(tmp_path / "none.json").get_all() == []


class TestDatabaseFailureSink:
    """Tests for the database table with expiry."""

    @pytest.fixture
    def engine(self, tmp_path):
        return create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'db' / 'failures.db'}")

    @pytest.mark.asyncio
    async def test_save_and_get(self, engine):
        sink = DatabaseFailureSink(engine, retention_days=30)

        await sink.save_batch([make_record("A"), make_record("B")])
        records = await sink.get_all()

        assert {r.title for r in records} == {"A", "B"}
        assert records[0].kind == "failed_no_apply_control"
        assert records[0].timestamp.endswith("+00:00")
        await engine.dispose()

    @pytest.mark.asyncio
    async def test_expired_records_hidden_and_purged(self, engine):
        sink = DatabaseFailureSink(engine, retention_days=30)
        old = (datetime.now(timezone.utc) - timedelta(days=31)).isoformat()

        await sink.save_batch([make_record("Old", timestamp=old)])
        assert await sink.get_all() == []

        await sink.save_batch([make_record("New")])
        assert [r.title for r in await sink.get_all()] == ["New"]

        factory = async_sessionmaker(engine, expire_on_commit=False)
        async with get_session(factory) as db:
            rows = await FailedJobRepository(db).get_multi()
        assert [row.title for row in rows] == ["New"]
        await engine.dispose()

    @pytest.mark.asyncio
    async def test_repository_crud(self, engine):
        await init_db(engine)
        factory = async_sessionmaker(engine, expire_on_commit=False)
        now = datetime.utcnow()

        async with get_session(factory) as db:
            repo = FailedJobRepository(db)
            row = await repo.create(
                title="Software Engineer",
                url="",
                kind="failed_exception",
                reason="boom",
                failed_at=now,
                expires_at=now + timedelta(days=1),
            )
            assert (await repo.get(row.id)).title == "Software Engineer"
            assert await repo.delete(row.id) is True
            assert await repo.delete(row.id) is False
        await engine.dispose()


class TestGetFailureSink:
    def test_file_sink(self):
        assert isinstance(get_failure_sink(FailureSinkType.FILE), JsonFileFailureSink)

    def test_database_sink(self):
        assert isinstance(get_failure_sink(FailureSinkType.DATABASE), DatabaseFailureSink)
