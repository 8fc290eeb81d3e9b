"""Repository layer for database operations."""

from src.db.repositories.base import BaseRepository
from src.db.repositories.failed_job import FailedJobRepository

__all__ = [
    "BaseRepository",
    "FailedJobRepository",
]
