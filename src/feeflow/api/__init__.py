"""API services - staking and automation surfaces returning typed results."""

from feeflow.api.automation_api import AutomationService
from feeflow.api.staking_api import StakingService

__all__ = ["AutomationService", "StakingService"]
