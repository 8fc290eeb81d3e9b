"""SQLAlchemy database models."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


def _new_id() -> str:
    return str(uuid.uuid4())


class FailedJob(Base):
    """A failed application attempt, kept until ``expires_at``."""

    __tablename__ = "failed_jobs"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(500), nullable=False)
    url = Column(Text, nullable=False, default="")
    kind = Column(String(40), nullable=False)  # OutcomeKind value
    reason = Column(Text, nullable=False, default="")
    failed_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (Index("ix_failed_jobs_expires_at", "expires_at"),)

    def __repr__(self) -> str:
        return f"<FailedJob {self.kind} {self.title!r}>"
