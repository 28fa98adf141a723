"""Persistent record types: tokens, automation jobs, stakers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

# Largest value an SQLite INTEGER column stores. Amounts and totals must fit.
MAX_AMOUNT = 2**63 - 1


class TokenStatus(str, Enum):
    ACTIVE = "ACTIVE"
    GRADUATED = "GRADUATED"
    FAILED = "FAILED"


class JobType(str, Enum):
    CLAIM_FEES = "CLAIM_FEES"
    BURN = "BURN"
    ADD_LP = "ADD_LP"
    PAY_DIVIDENDS = "PAY_DIVIDENDS"
    FULL_CYCLE = "FULL_CYCLE"


class TriggerType(str, Enum):
    SCHEDULED = "SCHEDULED"
    MANUAL = "MANUAL"


class JobStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# Allowed status edges. Anything else is an InvalidTransition.
JOB_TRANSITIONS: dict[JobStatus, tuple[JobStatus, ...]] = {
    JobStatus.PENDING: (JobStatus.RUNNING, JobStatus.FAILED),
    JobStatus.RUNNING: (JobStatus.COMPLETED, JobStatus.FAILED),
    JobStatus.COMPLETED: (),
    JobStatus.FAILED: (),
}


@dataclass
class TokenAutomationConfig:
    """Per-token fee split. bps values are in [0, 10000]."""

    burn_enabled: bool = False
    burn_bps: int = 0
    lp_enabled: bool = False
    lp_bps: int = 0
    dividends_enabled: bool = False
    dividends_bps: int = 0

    @property
    def any_enabled(self) -> bool:
        return self.burn_enabled or self.lp_enabled or self.dividends_enabled


@dataclass
class Token:
    """A launched token and its cumulative automation aggregates."""

    id: str
    token_mint: str | None = None
    config_key: str | None = None
    creator_wallet: str | None = None
    status: TokenStatus = TokenStatus.ACTIVE
    automation: TokenAutomationConfig = field(default_factory=TokenAutomationConfig)
    total_fees_collected: int = 0
    total_burned: int = 0
    total_to_lp: int = 0
    total_dividends_paid: int = 0
    last_automation_run: datetime | None = None
    graduated_at: datetime | None = None
    created_at: datetime | None = None


@dataclass
class StepResult:
    """Outcome of one chain sub-step of an automation job."""

    step: str  # "claim" | "burn" | "lp" | "dividends"
    success: bool
    planned: int = 0  # amount handed to the executor
    executed: int = 0  # amount the executor reported
    signature: str | None = None
    error: str | None = None
    skipped: bool = False

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "success": self.success,
            "planned": self.planned,
            "executed": self.executed,
            "signature": self.signature,
            "error": self.error,
            "skipped": self.skipped,
        }

    @classmethod
    def from_dict(cls, data: dict) -> StepResult:
        return cls(
            step=data["step"],
            success=bool(data["success"]),
            planned=int(data.get("planned", 0)),
            executed=int(data.get("executed", 0)),
            signature=data.get("signature"),
            error=data.get("error"),
            skipped=bool(data.get("skipped", False)),
        )


@dataclass
class AutomationJob:
    """One run of the automation state machine for a token."""

    id: int
    token_id: str
    job_type: JobType
    trigger_type: TriggerType
    status: JobStatus = JobStatus.PENDING
    claimed_amount: int = 0
    burned_amount: int = 0
    lp_added_amount: int = 0
    dividends_paid_amount: int = 0
    external_references: dict[str, str] = field(default_factory=dict)
    step_results: list[StepResult] = field(default_factory=list)
    error_message: str | None = None
    retry_count: int = 0
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def step(self, name: str) -> StepResult | None:
        for result in self.step_results:
            if result.step == name:
                return result
        return None


@dataclass
class Staker:
    """A wallet's staking position."""

    wallet: str
    staked_amount: int = 0
    weighted_stake: int = 0
    lock_end_time: datetime | None = None
    lock_duration_days: int = 0
    tier: str = "NONE"
    total_rewards_claimed: int = 0
    last_claim_time: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_locked(self, now: datetime) -> bool:
        return self.lock_end_time is not None and self.lock_end_time > now


@dataclass
class Creator:
    """Token creator; carries the fee discount derived from their stake."""

    wallet: str
    staked_amount: int = 0
    discount_tier: str = "NONE"


@dataclass
class PlatformStats:
    unique_stakers: int = 0
    total_staked: int = 0
    graduated_tokens: int = 0


@dataclass
class CycleReport:
    """Summary of one automation cycle across all tokens."""

    started_at: str
    completed_at: str
    total_tokens: int = 0
    completed: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0
    duration_ms: int = 0
