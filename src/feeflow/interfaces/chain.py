"""ChainExecutor protocol - submits claim/burn/LP/dividend operations on-chain."""

from __future__ import annotations

from typing import Protocol

from feeflow.models.chain import (
    BurnResult,
    ClaimResult,
    DividendResult,
    GraduationStatus,
    LiquidityResult,
    SettlementResult,
)


class ChainExecutor(Protocol):
    """Black-box on-chain collaborator.

    Every call is non-idempotent from the core's point of view and is never
    retried by it. A call may either raise or return ``success=False``; callers
    treat both as a failed step.
    """

    async def claim_fees(self, config_key: str) -> ClaimResult:
        """Claim the platform's accumulated trading fees for a token."""
        ...

    async def execute_burn(self, token_ref: str, amount: int) -> BurnResult:
        """Buy back and burn tokens with ``amount`` lamports."""
        ...

    async def add_liquidity(self, token_ref: str, amount: int) -> LiquidityResult:
        """Add ``amount`` lamports of liquidity to the token's pool."""
        ...

    async def distribute_dividends(self, token_ref: str, amount: int) -> DividendResult:
        """Pay ``amount`` lamports pro-rata to token holders."""
        ...

    async def transfer_rewards(self, wallet: str, amount: int) -> SettlementResult:
        """Settle claimed staking rewards to a wallet."""
        ...


class BondingCurveStatus(Protocol):
    """Read-only view of a token's bonding-curve state."""

    async def check_graduation(self, token_mint: str) -> GraduationStatus:
        ...
