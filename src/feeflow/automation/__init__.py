"""Fee automation: planning, orchestration and scheduled triggers."""

from feeflow.automation.cleanup import JobJanitor
from feeflow.automation.graduation import GraduationChecker
from feeflow.automation.guard import SingleFlight
from feeflow.automation.orchestrator import AutomationOrchestrator
from feeflow.automation.planner import DistributionPlan, plan
from feeflow.automation.scheduler import Scheduler

__all__ = [
    "JobJanitor", "GraduationChecker", "SingleFlight", "AutomationOrchestrator",
    "DistributionPlan", "plan", "Scheduler",
]
