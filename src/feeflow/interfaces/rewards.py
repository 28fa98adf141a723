"""RewardPool protocol - the global staking reward balance."""

from __future__ import annotations

from typing import Protocol


class RewardPool(Protocol):
    """Externally replenished balance that staking rewards are paid from."""

    async def get_balance(self) -> int:
        ...
