"""Stake ledger - owns staker records and their weighted stake."""

from __future__ import annotations

import logging
import math
from datetime import timedelta

from feeflow.clock import Clock, utcnow
from feeflow.errors import (
    ConcurrentModification,
    ExternalFailure,
    InsufficientBalance,
    StakeLocked,
    ValidationError,
)
from feeflow.interfaces.store import Repository
from feeflow.models.config import StakingConfig
from feeflow.models.records import MAX_AMOUNT, Staker
from feeflow.staking.tiers import TierCalculator

log = logging.getLogger(__name__)


class StakeLedger:
    """Applies stake and unstake requests to staker records.

    Weighting is per deposit: each stake() multiplies only the amount added
    in that call by that call's lock multiplier. Earlier principal keeps the
    weight it was deposited with. Unstaking removes weight in proportion to
    the principal withdrawn, which is an approximation that drifts by at
    most one base unit per partial unstake.

    Neither operation is idempotent. A retried stake() double-counts.
    """

    def __init__(
        self,
        repo: Repository,
        tiers: TierCalculator,
        config: StakingConfig | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._repo = repo
        self._tiers = tiers
        self._config = config or StakingConfig()
        self._clock = clock

    async def get(self, wallet: str) -> Staker | None:
        return await self._repo.get_staker(wallet)

    async def stake(self, wallet: str, amount: int, lock_days: int = 0) -> Staker:
        """Add ``amount`` to the wallet's stake, optionally locking it."""
        self._validate_wallet(wallet)
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValidationError("amount must be a positive integer")
        if not isinstance(lock_days, int) or lock_days < 0:
            raise ValidationError("lock_days must be a non-negative integer")
        if lock_days not in self._config.allowed_lock_days:
            allowed = ", ".join(str(d) for d in self._config.allowed_lock_days)
            raise ValidationError(f"lock_days must be one of: {allowed}")

        weighted_delta = math.floor(amount * self._tiers.multiplier_of(lock_days))
        await self._check_capacity(wallet, amount, weighted_delta)

        now = self._clock()
        log.info("Staking %d for %s (lock %d days)", amount, wallet, lock_days)

        created = await self._repo.create_staker(wallet, now)
        lock_end = now + timedelta(days=lock_days) if lock_days > 0 else None

        staker = await self._repo.apply_stake(
            wallet,
            amount=amount,
            weighted_delta=weighted_delta,
            lock_end_time=lock_end,
            lock_duration_days=lock_days,
            updated_at=now,
        )
        await self._repo.increment_platform_stats(
            unique_stakers=1 if created else 0, total_staked=amount,
        )

        staker.tier = await self._settle_tier(staker)
        await self._sync_creator_discount(staker)
        return staker

    async def unstake(self, wallet: str, amount: int) -> Staker:
        """Withdraw ``amount`` of principal. Any active lock blocks the whole request."""
        self._validate_wallet(wallet)
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValidationError("amount must be a positive integer")

        for _ in range(self._config.cas_retries):
            now = self._clock()
            staker = await self._repo.get_staker(wallet)
            if staker is None:
                raise InsufficientBalance("nothing staked")
            if staker.is_locked(now):
                raise StakeLocked(staker.lock_end_time)
            if amount > staker.staked_amount:
                raise InsufficientBalance(
                    f"requested {amount}, staked {staker.staked_amount}"
                )

            new_staked = staker.staked_amount - amount
            reduction = staker.weighted_stake * amount // staker.staked_amount
            new_weighted = staker.weighted_stake - reduction
            new_tier = self._tiers.tier_of(new_staked)
            # Any lock still present here has expired.
            clear_lock = new_staked == 0 or staker.lock_end_time is not None

            swapped = await self._repo.compare_and_set_stake(
                wallet,
                expected_staked=staker.staked_amount,
                expected_weighted=staker.weighted_stake,
                new_staked=new_staked,
                new_weighted=new_weighted,
                tier=new_tier,
                clear_lock=clear_lock,
                updated_at=now,
            )
            if swapped:
                break
            log.debug("Concurrent update on staker %s, retrying unstake", wallet)
        else:
            raise ConcurrentModification(f"staker {wallet} kept changing during unstake")

        log.info("Unstaked %d for %s (remaining %d)", amount, wallet, new_staked)
        await self._repo.increment_platform_stats(total_staked=-amount)

        updated = await self._repo.get_staker(wallet)
        if updated is None:
            raise ExternalFailure(f"staker {wallet} vanished during unstake")
        await self._sync_creator_discount(updated)
        return updated

    async def _check_capacity(self, wallet: str, amount: int, weighted_delta: int) -> None:
        """Reject a stake whose amount or resulting totals cannot be stored exactly."""
        staker = await self._repo.get_staker(wallet)
        staked = staker.staked_amount if staker else 0
        weighted = staker.weighted_stake if staker else 0
        platform = await self._repo.get_platform_stats()
        totals = (staked + amount, weighted + weighted_delta, platform.total_staked + amount)
        if max(totals) > MAX_AMOUNT:
            raise ValidationError(f"stake would exceed the maximum amount {MAX_AMOUNT}")

    async def _settle_tier(self, staker: Staker) -> str:
        """Write the tier derived from the staked amount we just read.

        If another mutation changed the amount in between, that mutation
        writes its own tier from a fresher read.
        """
        tier = self._tiers.tier_of(staker.staked_amount)
        if tier != staker.tier:
            await self._repo.set_staker_tier(staker.wallet, tier, staker.staked_amount)
        return tier

    async def _sync_creator_discount(self, staker: Staker) -> None:
        try:
            updated = await self._repo.update_creator_discount(
                staker.wallet, staker.staked_amount, staker.tier,
            )
        except Exception as exc:
            # The discount is recomputable from the stake; the stake itself stands.
            log.error("Creator discount update failed for %s: %s", staker.wallet, exc)
            return
        if updated:
            log.debug("Creator %s discount tier -> %s", staker.wallet, staker.tier)

    @staticmethod
    def _validate_wallet(wallet: str) -> None:
        if not wallet or not isinstance(wallet, str):
            raise ValidationError("wallet is required")
