"""Stake ledger: weighting, locks, tiers and platform counters."""

from __future__ import annotations

from datetime import timedelta

import pytest

from feeflow.errors import InsufficientBalance, StakeLocked, ValidationError
from feeflow.models.records import MAX_AMOUNT, Creator

from tests.conftest import OTHER_STAKER, STAKER


# ── Stake ─────────────────────────────────────────────────────────


async def test_stake_gold_with_180_day_lock(ledger, repo, clock):
    """100e9 locked 180 days at a 2x multiplier lands in GOLD with double weight."""
    staker = await ledger.stake(STAKER, 100_000_000_000, lock_days=180)

    assert staker.tier == "GOLD"
    assert staker.staked_amount == 100_000_000_000
    assert staker.weighted_stake == 200_000_000_000
    assert staker.lock_duration_days == 180
    assert staker.lock_end_time == clock.now + timedelta(days=180)

    stored = await repo.get_staker(STAKER)
    assert stored.tier == "GOLD"
    assert stored.weighted_stake == 200_000_000_000


async def test_weight_applies_per_deposit(ledger):
    """Each deposit is weighted by its own lock; earlier principal keeps its weight."""
    await ledger.stake(STAKER, 1_000, lock_days=0)
    staker = await ledger.stake(STAKER, 1_000, lock_days=365)

    assert staker.staked_amount == 2_000
    assert staker.weighted_stake == 1_000 + 3_000


async def test_fractional_multiplier_floors(ledger):
    staker = await ledger.stake(STAKER, 3, lock_days=30)
    # 3 * 1.25 = 3.75
    assert staker.weighted_stake == 3


async def test_lock_only_extends(ledger, clock):
    long = await ledger.stake(STAKER, 1_000, lock_days=365)
    shorter = await ledger.stake(STAKER, 1_000, lock_days=30)

    assert shorter.lock_end_time == long.lock_end_time
    assert shorter.lock_duration_days == 365


async def test_unlocked_stake_keeps_existing_lock(ledger):
    locked = await ledger.stake(STAKER, 1_000, lock_days=90)
    again = await ledger.stake(STAKER, 1_000, lock_days=0)
    assert again.lock_end_time == locked.lock_end_time


@pytest.mark.parametrize("amount", [0, -5, True, 1.5])
async def test_stake_rejects_bad_amount(ledger, repo, amount):
    with pytest.raises(ValidationError):
        await ledger.stake(STAKER, amount)
    assert await repo.get_staker(STAKER) is None


async def test_stake_rejects_unlisted_lock_days(ledger, repo):
    with pytest.raises(ValidationError):
        await ledger.stake(STAKER, 1_000, lock_days=7)
    assert await repo.get_staker(STAKER) is None


async def test_stake_rejects_empty_wallet(ledger):
    with pytest.raises(ValidationError):
        await ledger.stake("", 1_000)


async def test_platform_counters(ledger, repo):
    await ledger.stake(STAKER, 1_000)
    await ledger.stake(STAKER, 500)
    await ledger.stake(OTHER_STAKER, 2_000)

    stats = await repo.get_platform_stats()
    assert stats.unique_stakers == 2
    assert stats.total_staked == 3_500

    await ledger.unstake(OTHER_STAKER, 2_000)
    stats = await repo.get_platform_stats()
    assert stats.total_staked == 1_500
    assert stats.unique_stakers == 2


async def test_creator_discount_follows_stake(ledger, repo):
    await repo.save_creator(Creator(wallet=STAKER))

    await ledger.stake(STAKER, 50_000_000_000)
    creator = await repo.get_creator(STAKER)
    assert creator.discount_tier == "SILVER"
    assert creator.staked_amount == 50_000_000_000

    await ledger.unstake(STAKER, 45_000_000_000)
    creator = await repo.get_creator(STAKER)
    assert creator.discount_tier == "NONE"


async def test_non_creator_stake_writes_no_creator(ledger, repo):
    await ledger.stake(STAKER, 10_000_000_000)
    assert await repo.get_creator(STAKER) is None


async def test_stake_above_storable_maximum_rejected_before_writes(ledger, repo):
    with pytest.raises(ValidationError):
        await ledger.stake(STAKER, MAX_AMOUNT + 1)

    assert await repo.get_staker(STAKER) is None
    assert (await repo.get_platform_stats()).unique_stakers == 0


async def test_stakes_summing_past_maximum_rejected(ledger, repo):
    await ledger.stake(STAKER, 2**62)

    with pytest.raises(ValidationError):
        await ledger.stake(STAKER, 2**62)

    staker = await repo.get_staker(STAKER)
    assert staker.staked_amount == 2**62
    assert type(staker.staked_amount) is int
    assert (await repo.get_platform_stats()).total_staked == 2**62


async def test_weighted_stake_past_maximum_rejected(ledger, repo):
    """Principal fits, but a 3x lock would push the weight past the limit."""
    with pytest.raises(ValidationError):
        await ledger.stake(STAKER, 2**62, lock_days=365)
    assert await repo.get_staker(STAKER) is None


async def test_platform_total_past_maximum_rejected(ledger, repo):
    await ledger.stake(STAKER, 2**62)
    await ledger.stake(OTHER_STAKER, 2**62 - 1)

    with pytest.raises(ValidationError):
        await ledger.stake("ThirdStakerWallet", 1)

    assert await repo.get_staker("ThirdStakerWallet") is None
    stats = await repo.get_platform_stats()
    assert stats.unique_stakers == 2
    assert stats.total_staked == MAX_AMOUNT


# ── Unstake ───────────────────────────────────────────────────────


async def test_full_unstake_returns_to_zero(ledger):
    await ledger.stake(STAKER, 123_456_789, lock_days=0)
    staker = await ledger.unstake(STAKER, 123_456_789)

    assert staker.staked_amount == 0
    assert staker.weighted_stake == 0
    assert staker.tier == "NONE"
    assert staker.lock_end_time is None


async def test_unstake_while_locked_fails_and_changes_nothing(ledger, repo):
    await ledger.stake(STAKER, 10_000, lock_days=30)
    before = await repo.get_staker(STAKER)

    for amount in (1, 10_000, 999_999):
        with pytest.raises(StakeLocked) as exc_info:
            await ledger.unstake(STAKER, amount)
        assert exc_info.value.lock_end_time == before.lock_end_time

    assert await repo.get_staker(STAKER) == before


async def test_unstake_more_than_staked_fails(ledger, repo):
    await ledger.stake(STAKER, 1_000)
    before = await repo.get_staker(STAKER)

    with pytest.raises(InsufficientBalance):
        await ledger.unstake(STAKER, 1_001)

    assert await repo.get_staker(STAKER) == before
    assert (await repo.get_platform_stats()).total_staked == 1_000


async def test_unstake_unknown_wallet(ledger):
    with pytest.raises(InsufficientBalance):
        await ledger.unstake(STAKER, 1)


async def test_unstake_rejects_bad_amount(ledger):
    await ledger.stake(STAKER, 1_000)
    with pytest.raises(ValidationError):
        await ledger.unstake(STAKER, 0)


async def test_partial_unstake_removes_weight_proportionally(ledger, clock):
    await ledger.stake(STAKER, 1_000, lock_days=30)  # weighted 1250
    clock.advance(days=31)

    staker = await ledger.unstake(STAKER, 400)

    assert staker.staked_amount == 600
    assert staker.weighted_stake == 1_250 - 500
    assert staker.lock_end_time is None
    assert staker.lock_duration_days == 0


async def test_tier_drops_on_unstake(ledger):
    await ledger.stake(STAKER, 100_000_000_000)
    staker = await ledger.unstake(STAKER, 60_000_000_000)
    assert staker.tier == "BRONZE"


async def test_expired_lock_cleared_on_next_stake(ledger, clock):
    await ledger.stake(STAKER, 1_000, lock_days=30)
    clock.advance(days=45)

    staker = await ledger.stake(STAKER, 1_000, lock_days=0)
    assert staker.lock_end_time is None
    assert staker.lock_duration_days == 0
