"""Staking: tiers, stake ledger and reward accrual."""

from feeflow.staking.ledger import StakeLedger
from feeflow.staking.rewards import RewardAccrual, StoredRewardPool
from feeflow.staking.tiers import TierCalculator

__all__ = ["StakeLedger", "RewardAccrual", "StoredRewardPool", "TierCalculator"]
