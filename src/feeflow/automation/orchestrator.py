"""Automation job orchestrator - claims fees and disposes of them per token."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from feeflow.automation.guard import SingleFlight
from feeflow.automation.planner import plan
from feeflow.clock import Clock, to_iso, utcnow
from feeflow.errors import ExternalFailure, ValidationError
from feeflow.interfaces.chain import ChainExecutor
from feeflow.interfaces.store import Repository
from feeflow.models.chain import BurnResult, DividendResult, LiquidityResult
from feeflow.models.config import AutomationConfig
from feeflow.models.records import (
    AutomationJob,
    CycleReport,
    JobStatus,
    JobType,
    StepResult,
    Token,
    TokenAutomationConfig,
    TriggerType,
)

log = logging.getLogger(__name__)

StepCall = Callable[[str, int], Awaitable[object]]

# job type -> (step name, config flag attribute, bps attribute)
_SINGLE_STEPS: dict[JobType, tuple[str, str, str]] = {
    JobType.BURN: ("burn", "burn_enabled", "burn_bps"),
    JobType.ADD_LP: ("lp", "lp_enabled", "lp_bps"),
    JobType.PAY_DIVIDENDS: ("dividends", "dividends_enabled", "dividends_bps"),
}


def _executed_amount(result: object) -> int:
    if isinstance(result, BurnResult):
        return result.burned_amount
    if isinstance(result, LiquidityResult):
        return result.lp_added
    if isinstance(result, DividendResult):
        return result.total_paid
    return 0


class AutomationOrchestrator:
    """Runs the per-token automation state machine.

    PENDING -> RUNNING -> COMPLETED | FAILED. Terminal jobs are never reset;
    a retry is a new job row.

    Within a job the fee claim gates everything: if it fails the job fails
    and nothing is distributed. Burn, LP and dividend steps after a
    successful claim are best-effort. Each records a StepResult on the job
    and a failed step does not fail the job.
    """

    def __init__(
        self,
        repo: Repository,
        chain: ChainExecutor,
        config: AutomationConfig | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._repo = repo
        self._chain = chain
        self._config = config or AutomationConfig()
        self._clock = clock
        self._cycle_guard = SingleFlight("automation cycle")

    @property
    def cycle_running(self) -> bool:
        return self._cycle_guard.held

    # ── Scheduled cycle ───────────────────────────────────

    async def run_cycle(self) -> CycleReport | None:
        """Process every automation-enabled token once.

        Returns None without doing anything if a cycle is already in flight.
        """
        async with self._cycle_guard.hold() as acquired:
            if not acquired:
                return None
            return await self._run_cycle()

    async def _run_cycle(self) -> CycleReport:
        started = to_iso(self._clock())
        start_time = time.monotonic()

        tokens = await self._repo.get_automation_tokens()
        log.info("Automation cycle: processing %d tokens", len(tokens))

        semaphore = asyncio.Semaphore(max(1, self._config.max_concurrent_tokens))

        async def _one(token: Token) -> AutomationJob | None:
            async with semaphore:
                return await self.process_token(token.id)

        results = await asyncio.gather(
            *(_one(token) for token in tokens), return_exceptions=True,
        )

        completed = failed = skipped = errors = 0
        for token, result in zip(tokens, results):
            if isinstance(result, BaseException):
                errors += 1
                log.error("Error processing token %s: %s", token.id, result)
            elif result is None:
                skipped += 1
            elif result.status == JobStatus.COMPLETED:
                completed += 1
            else:
                failed += 1

        duration = int((time.monotonic() - start_time) * 1000)
        report = CycleReport(
            started_at=started,
            completed_at=to_iso(self._clock()),
            total_tokens=len(tokens),
            completed=completed,
            failed=failed,
            skipped=skipped,
            errors=errors,
            duration_ms=duration,
        )
        log.info(
            "Automation cycle complete: %d tokens, %d completed, %d failed, %d skipped in %dms",
            len(tokens), completed, failed, skipped, duration,
        )
        return report

    # ── Per-token processing ──────────────────────────────

    async def process_token(
        self, token_id: str, job: AutomationJob | None = None,
    ) -> AutomationJob | None:
        """Claim, plan and distribute fees for one token.

        Without ``job`` a SCHEDULED FULL_CYCLE job is created already RUNNING.
        With a PENDING ``job`` (manual trigger) that row is run instead.
        Returns the final job, or None if the token was skipped.
        """
        token = await self._repo.get_token(token_id)
        if token is None or not token.config_key:
            log.warning("Token %s not found or has no config key, skipping", token_id)
            if job is not None:
                await self._fail(job, JobStatus.PENDING, "token not found or missing config key")
                return await self._repo.get_job(job.id)
            return None

        if job is None:
            job = await self._repo.create_job(
                token.id, JobType.FULL_CYCLE, TriggerType.SCHEDULED,
                status=JobStatus.RUNNING, started_at=self._clock(),
            )
        else:
            await self._start(job)

        try:
            claimed = await self._claim(job, token)
            distribution = plan(claimed, token.automation)
            token_ref = token.token_mint
            cfg = token.automation

            burn = await self._best_effort(
                job, "burn", cfg.burn_enabled, token_ref, distribution.burn,
                self._chain.execute_burn,
            )
            lp = await self._best_effort(
                job, "lp", cfg.lp_enabled, token_ref, distribution.lp,
                self._chain.add_liquidity,
            )
            dividends = await self._best_effort(
                job, "dividends", cfg.dividends_enabled, token_ref, distribution.dividends,
                self._chain.distribute_dividends,
            )

            await self._repo.increment_token_totals(
                token.id,
                fees_collected=claimed,
                burned=burn,
                to_lp=lp,
                dividends_paid=dividends,
                ran_at=self._clock(),
            )
            await self._complete(job)
            log.info(
                "Token %s processed: claimed=%d burned=%d lp=%d dividends=%d",
                token.id, claimed, burn, lp, dividends,
            )
        except Exception as exc:
            log.error("Job %d for token %s failed: %s", job.id, token.id, exc)
            await self._fail(job, JobStatus.RUNNING, str(exc))

        return await self._repo.get_job(job.id)

    # ── Manual triggers ───────────────────────────────────

    async def trigger_automation(
        self, token_ref: str, job_type: JobType = JobType.FULL_CYCLE,
    ) -> AutomationJob:
        """Run automation for one token outside the schedule.

        ``token_ref`` is a token id or mint. The MANUAL job row is written as
        PENDING before anything runs. Single-purpose job types claim fees
        again before their one step.
        """
        token = await self._resolve_token(token_ref)
        self._check_single_step_allowed(job_type)

        job = await self._repo.create_job(token.id, job_type, TriggerType.MANUAL)
        log.info("Manual %s job %d created for token %s", job_type.value, job.id, token.id)
        return await self._execute(token, job)

    async def retry_job(self, job_id: int) -> AutomationJob:
        """Re-run a FAILED job as a new MANUAL job of the same type."""
        previous = await self._repo.get_job(job_id)
        if previous is None:
            raise ValidationError(f"job {job_id} not found")
        if previous.status != JobStatus.FAILED:
            raise ValidationError(
                f"job {job_id} is {previous.status.value}; only FAILED jobs can be retried"
            )
        token = await self._resolve_token(previous.token_id)
        self._check_single_step_allowed(previous.job_type)

        job = await self._repo.create_job(
            token.id, previous.job_type, TriggerType.MANUAL,
            retry_count=previous.retry_count,
        )
        log.info("Retrying job %d as job %d", previous.id, job.id)
        return await self._execute(token, job)

    async def job_history(self, token_id: str, limit: int = 20) -> list[AutomationJob]:
        return await self._repo.get_jobs_for_token(token_id, limit)

    async def _execute(self, token: Token, job: AutomationJob) -> AutomationJob:
        if job.job_type == JobType.FULL_CYCLE:
            result = await self.process_token(token.id, job=job)
        else:
            result = await self._process_single(token, job)
        if result is None:
            raise ExternalFailure(f"job {job.id} vanished while running")
        return result

    async def _process_single(self, token: Token, job: AutomationJob) -> AutomationJob:
        await self._start(job)
        try:
            if not token.config_key:
                raise ValidationError("token has no config key")
            if job.job_type in _SINGLE_STEPS and not token.token_mint:
                raise ValidationError("token has no mint")
            claimed = await self._claim(job, token)

            step_amount = 0
            if job.job_type in _SINGLE_STEPS:
                step, flag, bps_attr = _SINGLE_STEPS[job.job_type]
                # An explicit request runs the step even if the schedule has it off.
                only_this = TokenAutomationConfig(
                    **{flag: True, bps_attr: getattr(token.automation, bps_attr)}
                )
                amount = getattr(plan(claimed, only_this), step)
                call = {
                    "burn": self._chain.execute_burn,
                    "lp": self._chain.add_liquidity,
                    "dividends": self._chain.distribute_dividends,
                }[step]
                step_amount = await self._best_effort(
                    job, step, True, token.token_mint, amount, call,
                )

            await self._repo.increment_token_totals(
                token.id,
                fees_collected=claimed,
                burned=step_amount if job.job_type == JobType.BURN else 0,
                to_lp=step_amount if job.job_type == JobType.ADD_LP else 0,
                dividends_paid=step_amount if job.job_type == JobType.PAY_DIVIDENDS else 0,
                ran_at=self._clock(),
            )
            await self._complete(job)
        except Exception as exc:
            log.error("Job %d for token %s failed: %s", job.id, token.id, exc)
            await self._fail(job, JobStatus.RUNNING, str(exc))

        final = await self._repo.get_job(job.id)
        if final is None:
            raise ExternalFailure(f"job {job.id} vanished while running")
        return final

    # ── Steps ─────────────────────────────────────────────

    async def _claim(self, job: AutomationJob, token: Token) -> int:
        """Claim fees. Raises ExternalFailure so the job stops here."""
        try:
            result = await self._chain.claim_fees(token.config_key or "")
        except Exception as exc:
            await self._repo.record_job_step(
                job.id, StepResult("claim", success=False, error=str(exc)),
            )
            raise ExternalFailure(f"fee claim failed: {exc}") from exc

        if not result.success or result.claimed_amount < 0:
            error = result.error or "claim unsuccessful"
            await self._repo.record_job_step(
                job.id, StepResult("claim", success=False, signature=result.signature, error=error),
            )
            raise ExternalFailure(f"fee claim failed: {error}")

        await self._repo.record_job_step(
            job.id,
            StepResult(
                "claim", success=True, executed=result.claimed_amount,
                signature=result.signature,
            ),
        )
        return result.claimed_amount

    async def _best_effort(
        self,
        job: AutomationJob,
        step: str,
        enabled: bool,
        token_ref: str | None,
        amount: int,
        call: StepCall,
    ) -> int:
        """Run one distribution step. Returns the amount to add to token totals.

        Without a token mint the step is recorded as failed and never sent.
        """
        if not enabled:
            return 0
        if amount <= 0:
            await self._repo.record_job_step(
                job.id, StepResult(step, success=True, skipped=True),
            )
            return 0
        if not token_ref:
            log.warning("Job %d: token has no mint, %s step not sent", job.id, step)
            await self._repo.record_job_step(
                job.id,
                StepResult(
                    step, success=False, planned=amount, skipped=True, error="no token mint",
                ),
            )
            return 0

        try:
            result = await call(token_ref, amount)
        except Exception as exc:
            log.warning("Job %d: %s step raised: %s", job.id, step, exc)
            await self._repo.record_job_step(
                job.id, StepResult(step, success=False, planned=amount, error=str(exc)),
            )
            return 0

        success = bool(getattr(result, "success", False))
        step_result = StepResult(
            step,
            success=success,
            planned=amount,
            executed=_executed_amount(result) if success else 0,
            signature=getattr(result, "signature", None),
            error=None if success else (getattr(result, "error", None) or f"{step} unsuccessful"),
        )
        await self._repo.record_job_step(job.id, step_result)
        if not success:
            log.warning("Job %d: %s step failed: %s", job.id, step, step_result.error)
            return 0
        return amount

    # ── State transitions ─────────────────────────────────

    async def _start(self, job: AutomationJob) -> None:
        if not await self._repo.transition_job(
            job.id, JobStatus.PENDING, JobStatus.RUNNING, at=self._clock(),
        ):
            raise ValidationError(f"job {job.id} is no longer PENDING")

    async def _complete(self, job: AutomationJob) -> None:
        if not await self._repo.transition_job(
            job.id, JobStatus.RUNNING, JobStatus.COMPLETED, at=self._clock(),
        ):
            raise ExternalFailure(f"job {job.id} left RUNNING before completion")

    async def _fail(self, job: AutomationJob, expected: JobStatus, message: str) -> None:
        swapped = await self._repo.transition_job(
            job.id, expected, JobStatus.FAILED,
            at=self._clock(), error_message=message, increment_retry=True,
        )
        if not swapped:
            log.warning("Job %d was not %s; could not mark FAILED", job.id, expected.value)

    # ── Helpers ───────────────────────────────────────────

    async def _resolve_token(self, token_ref: str) -> Token:
        token = await self._repo.get_token(token_ref)
        if token is None:
            token = await self._repo.get_token_by_mint(token_ref)
        if token is None:
            raise ValidationError("Token not found")
        return token

    def _check_single_step_allowed(self, job_type: JobType) -> None:
        if job_type in _SINGLE_STEPS and not self._config.reclaim_on_single_step:
            raise ValidationError(
                f"{job_type.value} triggers are disabled; they would claim fees "
                "again. Use FULL_CYCLE."
            )
