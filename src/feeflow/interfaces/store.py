"""Repository protocol - persistence for tokens, jobs, stakers and aggregates."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from feeflow.models.records import (
    AutomationJob,
    Creator,
    JobStatus,
    JobType,
    PlatformStats,
    Staker,
    StepResult,
    Token,
    TriggerType,
)


class Repository(Protocol):
    """Persists engine state.

    Aggregate counters are changed only through additive increments and
    status fields only through compare-and-swap, so concurrent writers never
    lose updates.
    """

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        ...

    # ── Tokens ─────────────────────────────────────────────

    async def save_token(self, token: Token) -> None:
        ...

    async def get_token(self, token_id: str) -> Token | None:
        ...

    async def get_token_by_mint(self, token_mint: str) -> Token | None:
        ...

    async def get_automation_tokens(self) -> list[Token]:
        """ACTIVE tokens with at least one automation flag enabled."""
        ...

    async def get_graduation_candidates(self) -> list[Token]:
        """ACTIVE tokens with a mint that have not graduated yet."""
        ...

    async def increment_token_totals(
        self,
        token_id: str,
        fees_collected: int = 0,
        burned: int = 0,
        to_lp: int = 0,
        dividends_paid: int = 0,
        ran_at: datetime | None = None,
    ) -> None:
        ...

    async def mark_token_graduated(self, token_id: str, graduated_at: datetime) -> bool:
        """ACTIVE -> GRADUATED. Returns False if the token was not ACTIVE."""
        ...

    # ── Automation jobs ────────────────────────────────────

    async def create_job(
        self,
        token_id: str,
        job_type: JobType,
        trigger_type: TriggerType,
        status: JobStatus = JobStatus.PENDING,
        started_at: datetime | None = None,
        retry_count: int = 0,
    ) -> AutomationJob:
        ...

    async def get_job(self, job_id: int) -> AutomationJob | None:
        ...

    async def transition_job(
        self,
        job_id: int,
        expected: JobStatus,
        new: JobStatus,
        at: datetime | None = None,
        error_message: str | None = None,
        increment_retry: bool = False,
    ) -> bool:
        """Compare-and-swap the job status. Returns False if it was not ``expected``."""
        ...

    async def record_job_step(self, job_id: int, step: StepResult) -> None:
        ...

    async def get_jobs_for_token(self, token_id: str, limit: int = 20) -> list[AutomationJob]:
        ...

    async def get_jobs(self, status: JobStatus | None = None) -> list[AutomationJob]:
        ...

    async def delete_completed_jobs_before(self, cutoff: datetime) -> int:
        ...

    # ── Stakers ────────────────────────────────────────────

    async def get_staker(self, wallet: str) -> Staker | None:
        ...

    async def create_staker(self, wallet: str, created_at: datetime) -> bool:
        """Insert an empty staker row. Returns False if it already existed."""
        ...

    async def apply_stake(
        self,
        wallet: str,
        amount: int,
        weighted_delta: int,
        lock_end_time: datetime | None,
        lock_duration_days: int,
        updated_at: datetime,
    ) -> Staker:
        """Atomically add to the stake and extend the lock if later."""
        ...

    async def compare_and_set_stake(
        self,
        wallet: str,
        expected_staked: int,
        expected_weighted: int,
        new_staked: int,
        new_weighted: int,
        tier: str,
        clear_lock: bool,
        updated_at: datetime,
    ) -> bool:
        ...

    async def set_staker_tier(self, wallet: str, tier: str, expected_staked: int) -> bool:
        ...

    async def record_reward_claim(
        self,
        wallet: str,
        amount: int,
        expected_last_claim: datetime | None,
        claimed_at: datetime,
    ) -> bool:
        ...

    async def revert_reward_claim(
        self,
        wallet: str,
        amount: int,
        claimed_at: datetime,
        previous_last_claim: datetime | None,
    ) -> bool:
        ...

    async def total_weighted_stake(self) -> int:
        ...

    async def total_staked(self) -> int:
        ...

    async def count_stakers_by_tier(self) -> dict[str, int]:
        ...

    # ── Creators ───────────────────────────────────────────

    async def save_creator(self, creator: Creator) -> None:
        ...

    async def get_creator(self, wallet: str) -> Creator | None:
        ...

    async def update_creator_discount(self, wallet: str, staked_amount: int, tier: str) -> bool:
        """Returns False when the wallet is not a creator."""
        ...

    # ── Platform stats & reward pool ───────────────────────

    async def increment_platform_stats(
        self, unique_stakers: int = 0, total_staked: int = 0, graduated_tokens: int = 0,
    ) -> None:
        ...

    async def get_platform_stats(self) -> PlatformStats:
        ...

    async def get_reward_pool_balance(self) -> int:
        ...

    async def fund_reward_pool(self, amount: int) -> int:
        ...
