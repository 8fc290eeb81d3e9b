"""In-memory journal of failed applications, flushed to a failure sink."""

import logging

from src.automation.failure_store import FailureSink, get_failure_sink
from src.automation.models import ApplicationOutcome

logger = logging.getLogger(__name__)


class FailureJournal:
    """Buffers failed outcomes during a run.

    ``flush`` writes everything recorded since the previous successful
    flush as one batch. A failed write keeps the batch pending so the next
    flush retries it.
    """

    def __init__(self, sink: FailureSink | None = None):
        self.sink = sink or get_failure_sink()
        self._pending: list[ApplicationOutcome] = []
        self._recorded: list[ApplicationOutcome] = []

    @property
    def failures(self) -> list[ApplicationOutcome]:
        """Every failure recorded during this run, flushed or not."""
        return list(self._recorded)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def record(self, outcome: ApplicationOutcome) -> None:
        if outcome.succeeded:
            logger.debug(f"Not journaling successful outcome for {outcome.title}")
            return

        self._pending.append(outcome)
        self._recorded.append(outcome)
        logger.info(f"Recorded failure [{outcome.kind.value}] {outcome.title}: {outcome.reason}")

    async def flush(self) -> int:
        """Write pending failures to the sink.

        Returns:
            Number of records written (0 if nothing was pending or the write failed)
        """
        if not self._pending:
            return 0

        batch = list(self._pending)
        try:
            await self.sink.save_batch([outcome.to_record() for outcome in batch])
        except Exception as e:
            logger.error(f"Failed to flush {len(batch)} failed jobs: {e}")
            return 0

        del self._pending[: len(batch)]
        logger.info(f"Flushed {len(batch)} failed jobs")
        return len(batch)
