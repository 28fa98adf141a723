"""Job cleanup - removes old COMPLETED automation jobs."""

from __future__ import annotations

import logging
from datetime import timedelta

from feeflow.clock import Clock, utcnow
from feeflow.interfaces.store import Repository

log = logging.getLogger(__name__)


class JobJanitor:
    """Hard-deletes COMPLETED jobs that finished more than ``retention_days`` ago.

    FAILED jobs are kept for inspection.
    """

    def __init__(self, repo: Repository, retention_days: int = 30, clock: Clock = utcnow) -> None:
        self._repo = repo
        self._retention = timedelta(days=retention_days)
        self._clock = clock

    async def run(self) -> int:
        cutoff = self._clock() - self._retention
        deleted = await self._repo.delete_completed_jobs_before(cutoff)
        log.info("Deleted %d completed jobs older than %s", deleted, cutoff.date())
        return deleted
