"""Scheduler - time-driven triggers for automation, graduation and cleanup."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Awaitable, Callable

from feeflow.automation.cleanup import JobJanitor
from feeflow.automation.graduation import GraduationChecker
from feeflow.automation.orchestrator import AutomationOrchestrator
from feeflow.clock import Clock, to_iso, utcnow
from feeflow.errors import UnknownJob
from feeflow.models.config import SchedulerConfig

log = logging.getLogger(__name__)

Handler = Callable[[], Awaitable[Any]]

JOB_NAMES = ("automation", "graduation", "cleanup")


@dataclass
class ScheduledJob:
    """A named handler and its cadence."""

    name: str
    interval: int  # seconds
    handler: Handler
    last_run_at: str | None = None
    next_run_at: str | None = None
    last_error: str | None = None
    runs: int = 0


class Scheduler:
    """Runs each named job on its own interval in an independent asyncio task.

    Jobs do not coordinate with each other. The automation cycle protects
    itself with the orchestrator's single-flight guard, so an overlapping
    tick or a manual run_job("automation") during a cycle is a no-op.
    """

    def __init__(
        self,
        orchestrator: AutomationOrchestrator,
        graduation: GraduationChecker,
        janitor: JobJanitor,
        config: SchedulerConfig | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._config = config or SchedulerConfig()
        self._clock = clock
        self._tasks: dict[str, asyncio.Task] = {}
        self._running = False
        self._jobs: dict[str, ScheduledJob] = {
            "automation": ScheduledJob(
                "automation", self._config.automation_interval, orchestrator.run_cycle,
            ),
            "graduation": ScheduledJob(
                "graduation", self._config.graduation_interval, graduation.check,
            ),
            "cleanup": ScheduledJob(
                "cleanup", self._config.cleanup_interval, janitor.run,
            ),
        }

    @property
    def running(self) -> bool:
        return self._running

    # ── Lifecycle ─────────────────────────────────────────

    def start(self) -> None:
        if self._running:
            log.info("Scheduler already running")
            return
        self._running = True
        for job in self._jobs.values():
            self._tasks[job.name] = asyncio.create_task(self._loop(job), name=f"feeflow-{job.name}")
            log.info("Scheduled %s every %ds", job.name, job.interval)

    async def stop(self) -> None:
        self._running = False
        for name, task in self._tasks.items():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            log.info("Stopped job: %s", name)
        self._tasks.clear()

    async def _loop(self, job: ScheduledJob) -> None:
        first = True
        while self._running:
            if not (first and self._config.run_on_start):
                job.next_run_at = to_iso(self._clock() + timedelta(seconds=job.interval))
                try:
                    await asyncio.sleep(job.interval)
                except asyncio.CancelledError:
                    break
            first = False
            await self._invoke(job)

    # ── Manual runs ───────────────────────────────────────

    async def run_job(self, name: str) -> Any:
        """Run a named job now, outside its cadence."""
        job = self._jobs.get(name)
        if job is None:
            raise UnknownJob(name)
        log.info("Manually running job: %s", name)
        return await self._invoke(job)

    async def _invoke(self, job: ScheduledJob) -> Any:
        """Run a handler. Failures are logged and recorded, never raised."""
        job.last_run_at = to_iso(self._clock())
        job.runs += 1
        try:
            result = await job.handler()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            job.last_error = str(exc)
            log.error("Job %s failed: %s", job.name, exc, exc_info=True)
            return None
        job.last_error = None
        return result

    def status(self) -> list[ScheduledJob]:
        return list(self._jobs.values())
