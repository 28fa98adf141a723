"""Staking service - the staking surface seen by clients."""

from __future__ import annotations

import logging

from feeflow.clock import to_iso
from feeflow.errors import FeeflowError
from feeflow.interfaces.store import Repository
from feeflow.models.records import Staker
from feeflow.models.snapshots import (
    ActionResult,
    PoolInfo,
    RewardClaimResult,
    StakeResult,
    StakingStatus,
    TierSummary,
)
from feeflow.staking.ledger import StakeLedger
from feeflow.staking.rewards import RewardAccrual, StoredRewardPool
from feeflow.staking.tiers import TierCalculator

log = logging.getLogger(__name__)

APY_CAP = 1000.0  # percent


def _stake_result(staker: Staker, message: str) -> StakeResult:
    return StakeResult(
        success=True,
        wallet=staker.wallet,
        staked_amount=staker.staked_amount,
        weighted_stake=staker.weighted_stake,
        tier=staker.tier,
        lock_end_time=to_iso(staker.lock_end_time) if staker.lock_end_time else None,
        message=message,
    )


class StakingService:
    """Wraps the stake ledger and reward accrual behind typed results.

    Errors raised by the core come back as ``success=False`` results with
    the error's code; nothing raised on purpose escapes this class.
    """

    def __init__(
        self,
        repo: Repository,
        ledger: StakeLedger,
        rewards: RewardAccrual,
        pool: StoredRewardPool,
        tiers: TierCalculator,
    ) -> None:
        self._repo = repo
        self._ledger = ledger
        self._rewards = rewards
        self._pool = pool
        self._tiers = tiers

    # ── Actions ────────────────────────────────────────────

    async def stake(self, wallet: str, amount: int, lock_days: int = 0) -> StakeResult:
        try:
            staker = await self._ledger.stake(wallet, amount, lock_days)
        except FeeflowError as exc:
            log.warning("Stake rejected for %s: %s", wallet, exc.message)
            return StakeResult(
                success=False, wallet=wallet, error_code=exc.code, message=exc.message,
            )
        return _stake_result(staker, f"Staked {amount}")

    async def unstake(self, wallet: str, amount: int) -> StakeResult:
        try:
            staker = await self._ledger.unstake(wallet, amount)
        except FeeflowError as exc:
            log.warning("Unstake rejected for %s: %s", wallet, exc.message)
            return StakeResult(
                success=False, wallet=wallet, error_code=exc.code, message=exc.message,
            )
        return _stake_result(staker, f"Unstaked {amount}")

    async def claim_rewards(self, wallet: str) -> RewardClaimResult:
        try:
            result = await self._rewards.claim(wallet)
        except FeeflowError as exc:
            log.warning("Reward claim rejected for %s: %s", wallet, exc.message)
            return RewardClaimResult(
                success=False, wallet=wallet, error_code=exc.code, message=exc.message,
            )
        return RewardClaimResult(
            success=True,
            wallet=wallet,
            amount=result.amount,
            signature=result.signature,
            message=f"Claimed {result.amount}",
        )

    async def fund_pool(self, amount: int) -> ActionResult:
        try:
            balance = await self._pool.fund(amount)
        except FeeflowError as exc:
            return ActionResult(success=False, message=exc.message, error_code=exc.code)
        return ActionResult(success=True, message=f"Reward pool balance: {balance}")

    # ── Read models ────────────────────────────────────────

    async def get_staking_status(self, wallet: str) -> StakingStatus:
        staker = await self._repo.get_staker(wallet)
        if staker is None:
            return StakingStatus(wallet=wallet)
        return StakingStatus(
            wallet=wallet,
            staked_amount=staker.staked_amount,
            weighted_stake=staker.weighted_stake,
            tier=staker.tier,
            lock_end_time=to_iso(staker.lock_end_time) if staker.lock_end_time else None,
            lock_duration_days=staker.lock_duration_days,
            pending_rewards=await self._rewards.pending(wallet),
            total_rewards_claimed=staker.total_rewards_claimed,
            fee_discount=self._tiers.discount_of(staker.tier),
        )

    async def get_pool_info(self) -> PoolInfo:
        total_staked = await self._repo.total_staked()
        balance = await self._pool.get_balance()
        counts = await self._repo.count_stakers_by_tier()
        stats = await self._repo.get_platform_stats()

        apy = 0.0
        if total_staked > 0:
            apy = min(balance / total_staked * 100, APY_CAP)

        return PoolInfo(
            total_staked=total_staked,
            total_stakers=stats.unique_stakers,
            rewards_pool=balance,
            apy=round(apy, 2),
            tiers=[
                TierSummary(
                    name=t.name,
                    min_stake=t.min_stake,
                    discount=t.discount_percent,
                    count=counts.get(t.name, 0),
                )
                for t in self._tiers.tiers
            ],
        )
