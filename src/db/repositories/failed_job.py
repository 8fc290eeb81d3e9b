"""Failed job repository."""

from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import FailedJob
from src.db.repositories.base import BaseRepository


class FailedJobRepository(BaseRepository[FailedJob]):
    """Repository for failed application records.

    Rows carry an expiry; expired rows are excluded from reads and can be
    purged with ``delete_expired``.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(FailedJob, db)

    async def create_batch(
        self,
        rows: list[dict],
        retention: timedelta,
    ) -> list[FailedJob]:
        """Insert one row per record.

        Args:
            rows: Dicts with title, url, kind, reason and failed_at (naive UTC)
            retention: How long each row is kept

        Returns:
            Created rows
        """
        objs = [FailedJob(**row, expires_at=row["failed_at"] + retention) for row in rows]
        self.db.add_all(objs)
        await self.db.flush()
        return objs

    async def get_active(self, now: datetime | None = None, limit: int = 1000) -> list[FailedJob]:
        """Unexpired rows, oldest failure first."""
        now = now or datetime.utcnow()
        result = await self.db.execute(
            select(FailedJob)
            .where(FailedJob.expires_at > now)
            .order_by(FailedJob.failed_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def delete_expired(self, now: datetime | None = None) -> int:
        now = now or datetime.utcnow()
        result = await self.db.execute(delete(FailedJob).where(FailedJob.expires_at <= now))
        return result.rowcount or 0
