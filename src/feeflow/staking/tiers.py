"""Tier and lock-multiplier lookups."""

from __future__ import annotations

from fractions import Fraction
from typing import Iterable

from feeflow.errors import ConfigInvalid
from feeflow.models.config import (
    DEFAULT_LOCK_MULTIPLIERS,
    DEFAULT_TIERS,
    LockMultiplier,
    StakingTier,
)


class TierCalculator:
    """Pure lookups over the tier and lock-multiplier tables.

    Both tables are sorted ascending on construction, so callers may pass
    them in any order. Lookups are linear in the table size.
    """

    def __init__(
        self,
        tiers: Iterable[StakingTier] = DEFAULT_TIERS,
        lock_multipliers: Iterable[LockMultiplier] = DEFAULT_LOCK_MULTIPLIERS,
    ) -> None:
        self._tiers = tuple(sorted(tiers, key=lambda t: t.min_stake))
        self._multipliers = tuple(sorted(lock_multipliers, key=lambda m: m.min_days))
        if not self._tiers or self._tiers[0].min_stake != 0:
            raise ConfigInvalid("tier table needs a base tier at min_stake=0")

    @property
    def tiers(self) -> tuple[StakingTier, ...]:
        return self._tiers

    @property
    def base_tier(self) -> StakingTier:
        return self._tiers[0]

    def tier_for(self, amount: int) -> StakingTier:
        """Highest tier whose min_stake <= amount."""
        chosen = self._tiers[0]
        for tier in self._tiers:
            if tier.min_stake <= amount:
                chosen = tier
            else:
                break
        return chosen

    def tier_of(self, amount: int) -> str:
        return self.tier_for(amount).name

    def discount_of(self, tier_name: str) -> int:
        for tier in self._tiers:
            if tier.name == tier_name:
                return tier.discount_percent
        return 0

    def multiplier_of(self, lock_days: int) -> Fraction:
        """Multiplier of the largest threshold <= lock_days, else 1."""
        chosen = Fraction(1)
        for entry in self._multipliers:
            if entry.min_days <= lock_days:
                chosen = entry.multiplier
            else:
                break
        return chosen
