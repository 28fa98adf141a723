"""Configuration models for the engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction


@dataclass(frozen=True)
class StakingTier:
    """A named staking bracket. Tiers are ordered ascending by min_stake."""

    name: str
    min_stake: int  # base units
    discount_percent: int


@dataclass(frozen=True)
class LockMultiplier:
    """Weight applied to a deposit locked for at least min_days."""

    min_days: int
    multiplier: Fraction


DEFAULT_TIERS: tuple[StakingTier, ...] = (
    StakingTier("NONE", 0, 0),
    StakingTier("BRONZE", 10_000_000_000, 10),  # 10,000 tokens
    StakingTier("SILVER", 50_000_000_000, 25),  # 50,000 tokens
    StakingTier("GOLD", 100_000_000_000, 50),  # 100,000 tokens
    StakingTier("DIAMOND", 500_000_000_000, 75),  # 500,000 tokens
)

DEFAULT_LOCK_MULTIPLIERS: tuple[LockMultiplier, ...] = (
    LockMultiplier(0, Fraction(1)),
    LockMultiplier(30, Fraction("1.25")),
    LockMultiplier(90, Fraction("1.5")),
    LockMultiplier(180, Fraction(2)),
    LockMultiplier(365, Fraction(3)),
)


@dataclass
class StakingConfig:
    """Tier and lock tables plus stake-action limits."""

    tiers: tuple[StakingTier, ...] = DEFAULT_TIERS
    lock_multipliers: tuple[LockMultiplier, ...] = DEFAULT_LOCK_MULTIPLIERS
    allowed_lock_days: tuple[int, ...] = (0, 30, 90, 180, 365)
    cas_retries: int = 5  # attempts before ConcurrentModification


@dataclass
class AutomationConfig:
    """Fee automation behaviour."""

    max_concurrent_tokens: int = 1  # 1 = sequential
    # Single-purpose manual triggers (BURN/ADD_LP/PAY_DIVIDENDS) claim fees
    # again before their step. When False those triggers are refused.
    reclaim_on_single_step: bool = True


@dataclass
class SchedulerConfig:
    """Trigger cadences, in seconds."""

    automation_interval: int = 3600
    graduation_interval: int = 900
    cleanup_interval: int = 86400
    job_retention_days: int = 30
    run_on_start: bool = False


@dataclass
class EngineConfig:
    """Complete engine configuration."""

    log_level: str = "info"

    # Chain API
    chain_api_url: str = "http://127.0.0.1:8080/api/v1"
    chain_api_key: str = ""  # loaded from env var FEEFLOW_CHAIN_API_KEY
    chain_timeout: int = 30  # seconds

    # Storage
    db_path: str = "~/.feeflow/state.db"

    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    staking: StakingConfig = field(default_factory=StakingConfig)
    automation: AutomationConfig = field(default_factory=AutomationConfig)
