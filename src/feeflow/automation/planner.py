"""Fee distribution planner - splits a claimed amount by basis points."""

from __future__ import annotations

from dataclasses import dataclass

from feeflow.errors import ConfigInvalid
from feeflow.models.records import TokenAutomationConfig

BPS_DENOMINATOR = 10_000


@dataclass(frozen=True)
class DistributionPlan:
    total: int
    burn: int = 0
    lp: int = 0
    dividends: int = 0

    @property
    def retained(self) -> int:
        """Share the platform keeps when enabled bps sum to less than 100%."""
        return self.total - self.burn - self.lp - self.dividends


def validate_config(config: TokenAutomationConfig) -> None:
    """Raise ConfigInvalid unless every bps is in range and enabled ones sum <= 10000."""
    enabled_sum = 0
    for name, enabled, bps in (
        ("burn", config.burn_enabled, config.burn_bps),
        ("lp", config.lp_enabled, config.lp_bps),
        ("dividends", config.dividends_enabled, config.dividends_bps),
    ):
        if not isinstance(bps, int) or not 0 <= bps <= BPS_DENOMINATOR:
            raise ConfigInvalid(f"{name}_bps must be an integer in [0, {BPS_DENOMINATOR}]")
        if enabled:
            enabled_sum += bps
    if enabled_sum > BPS_DENOMINATOR:
        raise ConfigInvalid(
            f"enabled bps sum to {enabled_sum}, more than {BPS_DENOMINATOR}"
        )


def plan(total: int, config: TokenAutomationConfig) -> DistributionPlan:
    """Allocate ``total`` to burn, LP and dividends.

    Each bucket is floor(total * bps / 10000) of the same total, not of what
    the previous bucket left over.
    """
    if total < 0:
        raise ConfigInvalid("total must not be negative")
    validate_config(config)

    def _share(enabled: bool, bps: int) -> int:
        return total * bps // BPS_DENOMINATOR if enabled else 0

    return DistributionPlan(
        total=total,
        burn=_share(config.burn_enabled, config.burn_bps),
        lp=_share(config.lp_enabled, config.lp_bps),
        dividends=_share(config.dividends_enabled, config.dividends_bps),
    )
