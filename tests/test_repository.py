"""SQLite repository: job transitions, compare-and-swap and upserts."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from feeflow.errors import ExternalFailure, InvalidTransition
from feeflow.models.records import MAX_AMOUNT, JobStatus, JobType, StepResult, TriggerType

from tests.conftest import STAKER
from tests.factories import make_automation, make_token, seed_token

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


async def test_job_transitions_follow_state_machine(repo):
    await seed_token(repo)
    job = await repo.create_job("tok-1", JobType.FULL_CYCLE, TriggerType.MANUAL)
    assert job.status == JobStatus.PENDING

    assert await repo.transition_job(job.id, JobStatus.PENDING, JobStatus.RUNNING, at=NOW)
    assert await repo.transition_job(job.id, JobStatus.RUNNING, JobStatus.COMPLETED, at=NOW)

    stored = await repo.get_job(job.id)
    assert stored.status == JobStatus.COMPLETED
    assert stored.started_at == NOW
    assert stored.completed_at == NOW


@pytest.mark.parametrize(
    "expected, new",
    [
        (JobStatus.COMPLETED, JobStatus.RUNNING),
        (JobStatus.FAILED, JobStatus.PENDING),
        (JobStatus.PENDING, JobStatus.COMPLETED),
        (JobStatus.RUNNING, JobStatus.PENDING),
    ],
)
async def test_illegal_transitions_raise(repo, expected, new):
    with pytest.raises(InvalidTransition):
        await repo.transition_job(1, expected, new)


async def test_transition_is_compare_and_swap(repo):
    job = await repo.create_job("tok-1", JobType.FULL_CYCLE, TriggerType.SCHEDULED)

    assert await repo.transition_job(job.id, JobStatus.PENDING, JobStatus.RUNNING)
    # a second starter loses
    assert not await repo.transition_job(job.id, JobStatus.PENDING, JobStatus.RUNNING)


async def test_fail_increments_retry_count(repo):
    job = await repo.create_job("tok-1", JobType.BURN, TriggerType.MANUAL)
    await repo.transition_job(
        job.id, JobStatus.PENDING, JobStatus.FAILED, error_message="boom", increment_retry=True,
    )
    stored = await repo.get_job(job.id)
    assert stored.retry_count == 1
    assert stored.error_message == "boom"


async def test_step_results_round_trip(repo):
    job = await repo.create_job("tok-1", JobType.FULL_CYCLE, TriggerType.SCHEDULED)
    await repo.record_job_step(job.id, StepResult("claim", True, executed=500, signature="s1"))
    await repo.record_job_step(job.id, StepResult("burn", False, planned=250, error="nope"))

    stored = await repo.get_job(job.id)
    assert stored.claimed_amount == 500
    assert stored.burned_amount == 0
    assert stored.external_references == {"claim": "s1"}
    assert stored.step("burn").error == "nope"
    assert stored.step("burn").planned == 250


async def test_save_token_preserves_totals(repo):
    await seed_token(repo)
    await repo.increment_token_totals("tok-1", fees_collected=100, burned=40)

    updated = make_token(automation=make_automation(burn_bps=1000, lp_bps=None, dividends_bps=None))
    await repo.save_token(updated)

    token = await repo.get_token("tok-1")
    assert token.total_fees_collected == 100
    assert token.total_burned == 40
    assert token.automation.burn_bps == 1000
    assert not token.automation.lp_enabled


async def test_token_lookup_by_mint(repo):
    token = await seed_token(repo, token_mint="mintX")
    assert (await repo.get_token_by_mint("mintX")).id == token.id
    assert await repo.get_token_by_mint("other") is None


async def test_staker_compare_and_set(repo):
    assert await repo.create_staker(STAKER, NOW)
    assert not await repo.create_staker(STAKER, NOW)
    await repo.apply_stake(
        STAKER, amount=100, weighted_delta=150, lock_end_time=None,
        lock_duration_days=0, updated_at=NOW,
    )

    assert not await repo.compare_and_set_stake(
        STAKER, expected_staked=99, expected_weighted=150, new_staked=0, new_weighted=0,
        tier="NONE", clear_lock=True, updated_at=NOW,
    )
    assert await repo.compare_and_set_stake(
        STAKER, expected_staked=100, expected_weighted=150, new_staked=50, new_weighted=75,
        tier="NONE", clear_lock=False, updated_at=NOW,
    )
    staker = await repo.get_staker(STAKER)
    assert (staker.staked_amount, staker.weighted_stake) == (50, 75)


async def test_aggregates(repo):
    for wallet, amount in (("w1", 10), ("w2", 20)):
        await repo.create_staker(wallet, NOW)
        await repo.apply_stake(
            wallet, amount=amount, weighted_delta=amount * 2, lock_end_time=None,
            lock_duration_days=0, updated_at=NOW,
        )
    assert await repo.total_staked() == 30
    assert await repo.total_weighted_stake() == 60
    assert await repo.count_stakers_by_tier() == {"NONE": 2}


# ── Integer limits and driver errors ──────────────────────────────


async def test_counter_overflow_rejected_and_value_kept(repo):
    await repo.increment_platform_stats(total_staked=MAX_AMOUNT)

    with pytest.raises(ExternalFailure):
        await repo.increment_platform_stats(total_staked=1)

    stats = await repo.get_platform_stats()
    assert stats.total_staked == MAX_AMOUNT
    assert type(stats.total_staked) is int


async def test_token_total_overflow_rejected(repo):
    await seed_token(repo)
    await repo.increment_token_totals("tok-1", fees_collected=MAX_AMOUNT)

    with pytest.raises(ExternalFailure):
        await repo.increment_token_totals("tok-1", fees_collected=1)

    assert (await repo.get_token("tok-1")).total_fees_collected == MAX_AMOUNT


async def test_unbindable_amount_raises_external_failure(repo):
    with pytest.raises(ExternalFailure):
        await repo.fund_reward_pool(MAX_AMOUNT + 1)
    assert await repo.get_reward_pool_balance() == 0


async def test_driver_error_raises_external_failure(repo):
    await repo.db.execute("DROP TABLE stakers")

    with pytest.raises(ExternalFailure):
        await repo.get_staker(STAKER)


async def test_job_missing_after_insert_raises_external_failure(repo, monkeypatch):
    async def missing(job_id):
        return None

    await seed_token(repo)
    monkeypatch.setattr(repo, "get_job", missing)

    with pytest.raises(ExternalFailure):
        await repo.create_job("tok-1", JobType.FULL_CYCLE, TriggerType.MANUAL)
