"""Shared fixtures for feeflow tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from feeflow.automation.cleanup import JobJanitor
from feeflow.automation.graduation import GraduationChecker
from feeflow.automation.orchestrator import AutomationOrchestrator
from feeflow.automation.scheduler import Scheduler
from feeflow.models.config import (
    AutomationConfig,
    EngineConfig,
    SchedulerConfig,
    StakingConfig,
)
from feeflow.staking.ledger import StakeLedger
from feeflow.staking.rewards import RewardAccrual, StoredRewardPool
from feeflow.staking.tiers import TierCalculator
from feeflow.storage.sqlite import SQLiteRepository

from tests.mocks import FakeClock, MockBondingCurve, MockChainExecutor

TOKENS = 1_000_000  # base units per whole token

STAKER = "StakerWallet111111111111111111111111111111111"
OTHER_STAKER = "StakerWallet222222222222222222222222222222222"


# ── Report metadata ───────────────────────────────────────────────


def pytest_configure(config):
    """Add engine info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Engine"] = "feeflow"
    meta["Database"] = "SQLite (in-memory)"
    meta["Chain"] = "MockChainExecutor"


def make_test_config(**overrides) -> EngineConfig:
    """Build an EngineConfig suitable for testing."""
    defaults = dict(
        log_level="debug",
        chain_api_url="http://chain.test/api/v1",
        chain_api_key="test-key",
        chain_timeout=5,
        db_path=":memory:",
        scheduler=SchedulerConfig(
            automation_interval=3600, graduation_interval=900, cleanup_interval=86400,
        ),
        staking=StakingConfig(),
        automation=AutomationConfig(),
    )
    defaults.update(overrides)
    return EngineConfig(**defaults)


@pytest.fixture
def test_config():
    return make_test_config()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
async def repo():
    """Initialized in-memory SQLiteRepository."""
    r = SQLiteRepository(":memory:")
    await r.initialize()
    yield r
    await r.close()


@pytest.fixture
def mock_chain():
    return MockChainExecutor()


@pytest.fixture
def mock_curve():
    return MockBondingCurve()


@pytest.fixture
def tiers():
    return TierCalculator()


@pytest.fixture
def ledger(repo, tiers, clock):
    return StakeLedger(repo, tiers, StakingConfig(), clock=clock)


@pytest.fixture
def reward_pool(repo):
    return StoredRewardPool(repo)


@pytest.fixture
def rewards(repo, reward_pool, mock_chain, clock):
    return RewardAccrual(repo, reward_pool, mock_chain, clock=clock)


@pytest.fixture
def orchestrator(repo, mock_chain, clock):
    return AutomationOrchestrator(repo, mock_chain, AutomationConfig(), clock=clock)


@pytest.fixture
def graduation(repo, mock_curve, clock):
    return GraduationChecker(repo, mock_curve, clock=clock)


@pytest.fixture
def janitor(repo, clock):
    return JobJanitor(repo, retention_days=30, clock=clock)


@pytest.fixture
def scheduler(orchestrator, graduation, janitor, clock):
    return Scheduler(orchestrator, graduation, janitor, SchedulerConfig(), clock=clock)
