"""Data models for the feeflow engine."""

from feeflow.models.chain import (
    BurnResult,
    ClaimResult,
    DividendResult,
    GraduationStatus,
    LiquidityResult,
    SettlementResult,
)
from feeflow.models.config import (
    AutomationConfig,
    EngineConfig,
    LockMultiplier,
    SchedulerConfig,
    StakingConfig,
    StakingTier,
)
from feeflow.models.records import (
    AutomationJob,
    Creator,
    CycleReport,
    JobStatus,
    JobType,
    PlatformStats,
    Staker,
    StepResult,
    Token,
    TokenAutomationConfig,
    TokenStatus,
    TriggerType,
)
from feeflow.models.snapshots import (
    ActionResult,
    JobSnapshot,
    PoolInfo,
    RewardClaimResult,
    StakeResult,
    StakingStatus,
    TierSummary,
    TriggerResult,
)

__all__ = [
    "BurnResult", "ClaimResult", "DividendResult", "GraduationStatus",
    "LiquidityResult", "SettlementResult",
    "AutomationConfig", "EngineConfig", "LockMultiplier", "SchedulerConfig",
    "StakingConfig", "StakingTier",
    "AutomationJob", "Creator", "CycleReport", "JobStatus", "JobType",
    "PlatformStats", "Staker", "StepResult", "Token", "TokenAutomationConfig",
    "TokenStatus", "TriggerType",
    "ActionResult", "JobSnapshot", "PoolInfo", "RewardClaimResult",
    "StakeResult", "StakingStatus", "TierSummary", "TriggerResult",
]
