"""Tier and lock-multiplier lookups."""

from __future__ import annotations

from fractions import Fraction

import pytest

from feeflow.errors import ConfigInvalid
from feeflow.models.config import LockMultiplier, StakingTier
from feeflow.staking.tiers import TierCalculator

ORDER = ["NONE", "BRONZE", "SILVER", "GOLD", "DIAMOND"]


def test_tier_of_zero_is_none(tiers):
    assert tiers.tier_of(0) == "NONE"


@pytest.mark.parametrize(
    "amount, expected",
    [
        (9_999_999_999, "NONE"),
        (10_000_000_000, "BRONZE"),
        (49_999_999_999, "BRONZE"),
        (50_000_000_000, "SILVER"),
        (100_000_000_000, "GOLD"),
        (499_999_999_999, "GOLD"),
        (500_000_000_000, "DIAMOND"),
        (10**18, "DIAMOND"),
    ],
)
def test_tier_thresholds_inclusive(tiers, amount, expected):
    assert tiers.tier_of(amount) == expected


def test_tier_monotonic(tiers):
    amounts = [0, 1, 10**9, 10**10, 3 * 10**10, 5 * 10**10, 10**11, 4 * 10**11, 5 * 10**11, 10**13]
    ranks = [ORDER.index(tiers.tier_of(a)) for a in amounts]
    assert ranks == sorted(ranks)


def test_multiplier_of_zero_is_one(tiers):
    assert tiers.multiplier_of(0) == 1


@pytest.mark.parametrize(
    "days, expected",
    [
        (0, Fraction(1)),
        (29, Fraction(1)),
        (30, Fraction(5, 4)),
        (89, Fraction(5, 4)),
        (90, Fraction(3, 2)),
        (180, Fraction(2)),
        (364, Fraction(2)),
        (365, Fraction(3)),
        (1000, Fraction(3)),
    ],
)
def test_multiplier_largest_threshold_below(tiers, days, expected):
    assert tiers.multiplier_of(days) == expected


def test_multiplier_monotonic(tiers):
    values = [tiers.multiplier_of(d) for d in range(0, 400, 7)]
    assert values == sorted(values)


def test_unsorted_tables_are_sorted():
    calc = TierCalculator(
        tiers=[StakingTier("TOP", 100, 50), StakingTier("BASE", 0, 0), StakingTier("MID", 10, 5)],
        lock_multipliers=[LockMultiplier(10, Fraction(2)), LockMultiplier(0, Fraction(1))],
    )
    assert [t.name for t in calc.tiers] == ["BASE", "MID", "TOP"]
    assert calc.tier_of(50) == "MID"
    assert calc.multiplier_of(11) == 2


def test_missing_base_tier_rejected():
    with pytest.raises(ConfigInvalid):
        TierCalculator(tiers=[StakingTier("BRONZE", 10, 10)])


def test_discount_of(tiers):
    assert tiers.discount_of("GOLD") == 50
    assert tiers.discount_of("NONE") == 0
    assert tiers.discount_of("UNKNOWN") == 0
