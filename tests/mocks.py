"""Mock implementations of all external-facing components."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from feeflow.models.chain import (
    BurnResult,
    ClaimResult,
    DividendResult,
    GraduationStatus,
    LiquidityResult,
    SettlementResult,
)


class FakeClock:
    """Injectable clock. Call ``advance`` to move time forward."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class MockChainExecutor:
    """Implements ChainExecutor protocol.

    Each operation succeeds by default. Set ``<op>_succeed = False`` to get a
    failed result, or ``<op>_raises`` to an exception to have the call raise.
    """

    def __init__(
        self,
        claim_amount: int = 10_000_000,
        tx_hash: str = "mock_sig_abc123",
    ) -> None:
        self.claim_amount = claim_amount
        self.tx_hash = tx_hash

        self.claim_succeed = True
        self.burn_succeed = True
        self.lp_succeed = True
        self.dividends_succeed = True
        self.transfer_succeed = True

        self.claim_fail_keys: set[str] = set()

        self.claim_raises: Exception | None = None
        self.burn_raises: Exception | None = None
        self.lp_raises: Exception | None = None
        self.dividends_raises: Exception | None = None
        self.transfer_raises: Exception | None = None

        self.claim_calls: list[str] = []
        self.burn_calls: list[tuple[str, int]] = []
        self.lp_calls: list[tuple[str, int]] = []
        self.dividends_calls: list[tuple[str, int]] = []
        self.transfer_calls: list[tuple[str, int]] = []

    @property
    def total_calls(self) -> int:
        return (
            len(self.claim_calls) + len(self.burn_calls) + len(self.lp_calls)
            + len(self.dividends_calls) + len(self.transfer_calls)
        )

    async def claim_fees(self, config_key: str) -> ClaimResult:
        self.claim_calls.append(config_key)
        if self.claim_raises:
            raise self.claim_raises
        if self.claim_succeed and config_key not in self.claim_fail_keys:
            return ClaimResult(
                success=True, claimed_amount=self.claim_amount, signature=self.tx_hash,
            )
        return ClaimResult(success=False, error="mock claim failure")

    async def execute_burn(self, token_ref: str, amount: int) -> BurnResult:
        self.burn_calls.append((token_ref, amount))
        if self.burn_raises:
            raise self.burn_raises
        if self.burn_succeed:
            return BurnResult(success=True, burned_amount=amount * 1000, signature="burn_sig")
        return BurnResult(success=False, error="mock burn failure")

    async def add_liquidity(self, token_ref: str, amount: int) -> LiquidityResult:
        self.lp_calls.append((token_ref, amount))
        if self.lp_raises:
            raise self.lp_raises
        if self.lp_succeed:
            return LiquidityResult(success=True, lp_added=amount, signature="lp_sig")
        return LiquidityResult(success=False, error="mock lp failure")

    async def distribute_dividends(self, token_ref: str, amount: int) -> DividendResult:
        self.dividends_calls.append((token_ref, amount))
        if self.dividends_raises:
            raise self.dividends_raises
        if self.dividends_succeed:
            return DividendResult(success=True, total_paid=amount, signature="div_sig")
        return DividendResult(success=False, error="mock dividends failure")

    async def transfer_rewards(self, wallet: str, amount: int) -> SettlementResult:
        self.transfer_calls.append((wallet, amount))
        if self.transfer_raises:
            raise self.transfer_raises
        if self.transfer_succeed:
            return SettlementResult(success=True, amount=amount, signature="reward_sig")
        return SettlementResult(success=False, amount=amount, error="mock transfer failure")


class MockBondingCurve:
    """Implements BondingCurveStatus protocol."""

    def __init__(self, graduated: set[str] | None = None) -> None:
        self.graduated = graduated or set()
        self.failing: set[str] = set()
        self.check_calls: list[str] = []

    async def check_graduation(self, token_mint: str) -> GraduationStatus:
        self.check_calls.append(token_mint)
        if token_mint in self.failing:
            raise ConnectionError(f"status lookup failed for {token_mint}")
        if token_mint in self.graduated:
            return GraduationStatus(
                is_graduated=True,
                graduated_at=datetime(2025, 1, 2, tzinfo=timezone.utc),
            )
        return GraduationStatus(is_graduated=False)


class MockRewardPool:
    """Implements RewardPool protocol with a fixed balance."""

    def __init__(self, balance: int = 0) -> None:
        self.balance = balance

    async def get_balance(self) -> int:
        return self.balance
