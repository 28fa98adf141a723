"""Reward accrual - pro-rata share of the global reward pool."""

from __future__ import annotations

import logging

from feeflow.clock import Clock, utcnow
from feeflow.errors import (
    ConcurrentModification,
    ExternalFailure,
    NoRewardsToClaim,
    ValidationError,
)
from feeflow.interfaces.chain import ChainExecutor
from feeflow.interfaces.rewards import RewardPool
from feeflow.interfaces.store import Repository
from feeflow.models.chain import SettlementResult
from feeflow.models.records import MAX_AMOUNT

log = logging.getLogger(__name__)

DAYS_PER_YEAR = 365
SECONDS_PER_DAY = 86_400


class StoredRewardPool:
    """RewardPool backed by the repository's reward_pool row."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    async def get_balance(self) -> int:
        return await self._repo.get_reward_pool_balance()

    async def fund(self, amount: int) -> int:
        if amount <= 0:
            raise ValidationError("amount must be positive")
        if await self._repo.get_reward_pool_balance() + amount > MAX_AMOUNT:
            raise ValidationError(f"pool balance would exceed the maximum amount {MAX_AMOUNT}")
        balance = await self._repo.fund_reward_pool(amount)
        log.info("Reward pool funded with %d (balance %d)", amount, balance)
        return balance


class RewardAccrual:
    """Computes and settles staking rewards.

    pending = floor(pool / 365 * weighted / total_weighted * days)

    The pool balance and the weighted share are read at call time, not
    integrated over the days being paid for.
    """

    def __init__(
        self,
        repo: Repository,
        pool: RewardPool,
        chain: ChainExecutor,
        clock: Clock = utcnow,
    ) -> None:
        self._repo = repo
        self._pool = pool
        self._chain = chain
        self._clock = clock

    async def pending(self, wallet: str) -> int:
        staker = await self._repo.get_staker(wallet)
        if staker is None or staker.staked_amount == 0:
            return 0

        total_weighted = await self._repo.total_weighted_stake()
        if total_weighted <= 0 or staker.weighted_stake <= 0:
            return 0

        daily = await self._pool.get_balance() // DAYS_PER_YEAR
        since = staker.last_claim_time or staker.created_at
        if since is None:
            return 0
        elapsed = self._clock() - since
        days = max(int(elapsed.total_seconds() // SECONDS_PER_DAY), 0)

        return daily * staker.weighted_stake * days // total_weighted

    async def claim(self, wallet: str) -> SettlementResult:
        """Record the pending reward as claimed, then settle it on-chain.

        The record is written first with a compare-and-swap on the previous
        claim time, so two concurrent claims cannot both pay out. A failed
        settlement reverts the record.
        """
        if not wallet:
            raise ValidationError("wallet is required")

        staker = await self._repo.get_staker(wallet)
        amount = await self.pending(wallet)
        if staker is None or amount == 0:
            raise NoRewardsToClaim(f"no rewards to claim for {wallet}")

        now = self._clock()
        recorded = await self._repo.record_reward_claim(
            wallet, amount, expected_last_claim=staker.last_claim_time, claimed_at=now,
        )
        if not recorded:
            raise ConcurrentModification(f"rewards for {wallet} were claimed concurrently")

        log.info("Claiming %d reward for %s", amount, wallet)
        try:
            result = await self._chain.transfer_rewards(wallet, amount)
        except Exception as exc:
            result = SettlementResult(success=False, amount=amount, error=str(exc))

        if not result.success:
            await self._repo.revert_reward_claim(
                wallet, amount, claimed_at=now, previous_last_claim=staker.last_claim_time,
            )
            log.error("Reward settlement failed for %s: %s", wallet, result.error)
            raise ExternalFailure(f"reward settlement failed: {result.error or 'unknown'}")

        result.amount = amount
        return result
