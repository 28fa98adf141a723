"""Protocol interfaces for all feeflow collaborators."""

from feeflow.interfaces.chain import BondingCurveStatus, ChainExecutor
from feeflow.interfaces.rewards import RewardPool
from feeflow.interfaces.store import Repository

__all__ = [
    "BondingCurveStatus", "ChainExecutor",
    "RewardPool",
    "Repository",
]
