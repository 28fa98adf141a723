"""Results returned by the chain executor and bonding-curve collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class ClaimResult:
    """Result of claiming accumulated trading fees for a token."""

    success: bool
    claimed_amount: int = 0  # lamports
    signature: str | None = None
    error: str | None = None


@dataclass
class BurnResult:
    success: bool
    burned_amount: int = 0
    signature: str | None = None
    error: str | None = None


@dataclass
class LiquidityResult:
    success: bool
    lp_added: int = 0
    signature: str | None = None
    error: str | None = None


@dataclass
class DividendResult:
    success: bool
    total_paid: int = 0
    signature: str | None = None
    error: str | None = None


@dataclass
class SettlementResult:
    """Result of paying a staker's claimed rewards out on-chain."""

    success: bool
    amount: int = 0
    signature: str | None = None
    error: str | None = None


@dataclass
class GraduationStatus:
    is_graduated: bool
    graduated_at: datetime | None = None
