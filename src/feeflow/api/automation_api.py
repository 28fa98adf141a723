"""Automation service - manual triggers, retries and job history."""

from __future__ import annotations

import logging

from feeflow.automation.orchestrator import AutomationOrchestrator
from feeflow.automation.planner import validate_config
from feeflow.automation.scheduler import ScheduledJob, Scheduler
from feeflow.clock import to_iso
from feeflow.errors import FeeflowError, ValidationError
from feeflow.interfaces.store import Repository
from feeflow.models.records import AutomationJob, JobStatus, JobType, Token
from feeflow.models.snapshots import ActionResult, JobSnapshot, TriggerResult

log = logging.getLogger(__name__)


def job_to_snapshot(job: AutomationJob) -> JobSnapshot:
    return JobSnapshot(
        id=job.id,
        token_id=job.token_id,
        job_type=job.job_type.value,
        trigger_type=job.trigger_type.value,
        status=job.status.value,
        claimed_amount=job.claimed_amount,
        burned_amount=job.burned_amount,
        lp_added_amount=job.lp_added_amount,
        dividends_paid_amount=job.dividends_paid_amount,
        retry_count=job.retry_count,
        created_at=to_iso(job.created_at),
        completed_at=to_iso(job.completed_at),
        error_message=job.error_message,
        steps=[s.to_dict() for s in job.step_results],
    )


def _job_result(job: AutomationJob, verb: str) -> TriggerResult:
    if job.status == JobStatus.COMPLETED:
        return TriggerResult(
            success=True, message=f"{verb} job {job.id} completed", job_id=job.id,
        )
    return TriggerResult(
        success=False,
        message=job.error_message or f"job {job.id} {job.status.value}",
        job_id=job.id,
        error_code="job_failed",
    )


class AutomationService:
    """Operator surface over the orchestrator and scheduler."""

    def __init__(
        self,
        repo: Repository,
        orchestrator: AutomationOrchestrator,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._repo = repo
        self._orchestrator = orchestrator
        self._scheduler = scheduler

    async def register_token(self, token: Token) -> ActionResult:
        """Add a token, or update its identity and fee split."""
        try:
            if not token.id:
                raise ValidationError("token id is required")
            validate_config(token.automation)
        except FeeflowError as exc:
            return ActionResult(success=False, message=exc.message, error_code=exc.code)
        await self._repo.save_token(token)
        log.info("Registered token %s (mint %s)", token.id, token.token_mint)
        return ActionResult(success=True, message=f"Token {token.id} saved")

    async def trigger(self, token_ref: str, job_type: str = "FULL_CYCLE") -> TriggerResult:
        try:
            kind = JobType(job_type.upper())
        except ValueError:
            valid = ", ".join(t.value for t in JobType)
            return TriggerResult(
                success=False,
                message=f"Unknown job type {job_type!r}; expected one of: {valid}",
                error_code="validation_error",
            )
        try:
            job = await self._orchestrator.trigger_automation(token_ref, kind)
        except FeeflowError as exc:
            log.warning("Trigger rejected for %s: %s", token_ref, exc.message)
            return TriggerResult(success=False, message=exc.message, error_code=exc.code)
        return _job_result(job, "Manual")

    async def retry(self, job_id: int) -> TriggerResult:
        try:
            job = await self._orchestrator.retry_job(job_id)
        except FeeflowError as exc:
            log.warning("Retry rejected for job %d: %s", job_id, exc.message)
            return TriggerResult(success=False, message=exc.message, error_code=exc.code)
        return _job_result(job, "Retry")

    async def job_history(self, token_id: str, limit: int = 20) -> list[JobSnapshot]:
        jobs = await self._orchestrator.job_history(token_id, limit)
        return [job_to_snapshot(j) for j in jobs]

    async def run_job(self, name: str) -> ActionResult:
        """Run a named scheduler job now."""
        if self._scheduler is None:
            return ActionResult(
                success=False, message="Scheduler not configured", error_code="unavailable",
            )
        try:
            result = await self._scheduler.run_job(name)
        except FeeflowError as exc:
            return ActionResult(success=False, message=exc.message, error_code=exc.code)
        job = next(j for j in self._scheduler.status() if j.name == name)
        if job.last_error:
            return ActionResult(success=False, message=job.last_error, error_code="job_error")
        if name == "automation" and result is None:
            return ActionResult(success=True, message="Automation cycle already running; skipped")
        return ActionResult(success=True, message=f"Job {name} ran")

    def scheduler_status(self) -> list[ScheduledJob]:
        if self._scheduler is None:
            return []
        return self._scheduler.status()
