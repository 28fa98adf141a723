"""Fee distribution planning."""

from __future__ import annotations

import pytest

from feeflow.automation.planner import plan, validate_config
from feeflow.errors import ConfigInvalid
from feeflow.models.records import TokenAutomationConfig

from tests.factories import make_automation


def test_all_disabled_plans_zero():
    result = plan(1_000_000, TokenAutomationConfig(burn_bps=5000, lp_bps=5000))
    assert (result.burn, result.lp, result.dividends) == (0, 0, 0)
    assert result.retained == 1_000_000


def test_full_burn():
    result = plan(1_000_000, make_automation(burn_bps=10_000, lp_bps=None, dividends_bps=None))
    assert (result.burn, result.lp, result.dividends) == (1_000_000, 0, 0)


def test_shares_floor_independently():
    # 3333 bps of 10 is 3.333 -> 3 each; remainder is retained
    cfg = make_automation(burn_bps=3333, lp_bps=3333, dividends_bps=3333)
    result = plan(10, cfg)
    assert (result.burn, result.lp, result.dividends) == (3, 3, 3)
    assert result.retained == 1


def test_sum_never_exceeds_total():
    cfg = make_automation(burn_bps=3000, lp_bps=3000, dividends_bps=4000)
    for total in (0, 1, 7, 999, 2_000_001, 10**18):
        result = plan(total, cfg)
        assert result.burn + result.lp + result.dividends <= total


def test_large_totals_are_exact():
    total = 2**70 + 12345
    result = plan(total, make_automation(burn_bps=5000, lp_bps=None, dividends_bps=None))
    assert result.burn == total // 2


def test_disabled_bps_do_not_count_toward_sum():
    cfg = TokenAutomationConfig(burn_enabled=True, burn_bps=10_000, lp_bps=10_000)
    validate_config(cfg)


def test_enabled_sum_over_100_percent_rejected():
    with pytest.raises(ConfigInvalid):
        plan(100, make_automation(burn_bps=6000, lp_bps=6000, dividends_bps=None))


@pytest.mark.parametrize("bps", [-1, 10_001])
def test_out_of_range_bps_rejected(bps):
    with pytest.raises(ConfigInvalid):
        validate_config(TokenAutomationConfig(burn_enabled=True, burn_bps=bps))


def test_negative_total_rejected():
    with pytest.raises(ConfigInvalid):
        plan(-1, make_automation())
