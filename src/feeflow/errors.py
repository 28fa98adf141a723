"""Exception hierarchy for the core.

Core components raise these; the API services in ``feeflow.api`` turn them
into typed failure results so nothing escapes across the API boundary.
"""

from __future__ import annotations


class FeeflowError(Exception):
    """Base class for every error the core raises on purpose."""

    code = "error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class ValidationError(FeeflowError):
    """Bad input, rejected before any mutation."""

    code = "validation_error"


class DomainError(FeeflowError):
    """A well-formed request the current state does not allow."""

    code = "domain_error"


class InsufficientBalance(DomainError):
    code = "insufficient_balance"


class StakeLocked(DomainError):
    code = "stake_locked"

    def __init__(self, lock_end_time=None) -> None:
        self.lock_end_time = lock_end_time
        msg = "stake is locked"
        if lock_end_time is not None:
            msg = f"stake is locked until {lock_end_time.isoformat()}"
        super().__init__(msg)


class NoRewardsToClaim(DomainError):
    code = "no_rewards_to_claim"


class ConfigInvalid(DomainError):
    code = "config_invalid"


class ExternalFailure(FeeflowError):
    """The chain executor or repository failed or returned an unsuccessful result."""

    code = "external_failure"


class InvalidTransition(FeeflowError):
    """A job status change that the state machine does not permit."""

    code = "invalid_transition"


class ConcurrentModification(FeeflowError):
    """A compare-and-swap kept losing to concurrent writers."""

    code = "concurrent_modification"


class UnknownJob(FeeflowError):
    code = "unknown_job"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown job: {name}")
