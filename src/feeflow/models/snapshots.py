"""JSON-serializable result and snapshot models returned by the API services."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


def to_dict(obj: Any) -> dict:
    """Recursively convert a dataclass to a plain dict."""
    return asdict(obj)


# ---------------------------------------------------------------------------
# Action results
# ---------------------------------------------------------------------------


@dataclass
class ActionResult:
    """Result of an operator-initiated action."""

    success: bool
    message: str
    error_code: str | None = None


@dataclass
class StakeResult:
    """Result of a stake or unstake request."""

    success: bool
    wallet: str
    staked_amount: int = 0
    weighted_stake: int = 0
    tier: str = "NONE"
    lock_end_time: str | None = None  # ISO 8601
    error_code: str | None = None
    message: str = ""


@dataclass
class RewardClaimResult:
    success: bool
    wallet: str
    amount: int = 0
    signature: str | None = None
    error_code: str | None = None
    message: str = ""


@dataclass
class TriggerResult:
    """Result of a manual automation trigger."""

    success: bool
    message: str
    job_id: int | None = None
    error_code: str | None = None


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


@dataclass
class StakingStatus:
    wallet: str
    staked_amount: int = 0
    weighted_stake: int = 0
    tier: str = "NONE"
    lock_end_time: str | None = None
    lock_duration_days: int = 0
    pending_rewards: int = 0
    total_rewards_claimed: int = 0
    fee_discount: int = 0  # percent


@dataclass
class TierSummary:
    name: str
    min_stake: int
    discount: int
    count: int = 0


@dataclass
class PoolInfo:
    total_staked: int = 0
    total_stakers: int = 0
    rewards_pool: int = 0
    apy: float = 0.0  # display percentage, capped
    tiers: list[TierSummary] = field(default_factory=list)


@dataclass
class JobSnapshot:
    id: int
    token_id: str
    job_type: str
    trigger_type: str
    status: str
    claimed_amount: int
    burned_amount: int
    lp_added_amount: int
    dividends_paid_amount: int
    retry_count: int
    created_at: str | None = None
    completed_at: str | None = None
    error_message: str | None = None
    steps: list[dict] = field(default_factory=list)
