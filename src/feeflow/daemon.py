"""Daemon - wires all components together and runs the scheduler."""

from __future__ import annotations

import asyncio
import logging
import signal

from feeflow.api.automation_api import AutomationService
from feeflow.api.staking_api import StakingService
from feeflow.automation.cleanup import JobJanitor
from feeflow.automation.graduation import GraduationChecker
from feeflow.automation.orchestrator import AutomationOrchestrator
from feeflow.automation.scheduler import Scheduler
from feeflow.chain.rest import RestChainExecutor
from feeflow.models.config import EngineConfig
from feeflow.staking.ledger import StakeLedger
from feeflow.staking.rewards import RewardAccrual, StoredRewardPool
from feeflow.staking.tiers import TierCalculator
from feeflow.storage.sqlite import SQLiteRepository

log = logging.getLogger(__name__)


class LaunchpadDaemon:
    """Fee automation and staking engine.

    Builds the repository, chain executor, staking and automation
    components from one EngineConfig. ``open``/``close`` manage the
    resources so the CLI can use the services without the scheduler;
    ``start`` runs the scheduler until ``stop`` is called.
    """

    def __init__(self, cfg: EngineConfig) -> None:
        self._cfg = cfg
        self._stopped = asyncio.Event()

        self.repo = SQLiteRepository(cfg.db_path)
        self.chain = RestChainExecutor(
            cfg.chain_api_url, cfg.chain_api_key, cfg.chain_timeout,
        )

        # Staking
        self.tiers = TierCalculator(cfg.staking.tiers, cfg.staking.lock_multipliers)
        self.ledger = StakeLedger(self.repo, self.tiers, cfg.staking)
        self.pool = StoredRewardPool(self.repo)
        self.rewards = RewardAccrual(self.repo, self.pool, self.chain)

        # Automation
        self.orchestrator = AutomationOrchestrator(self.repo, self.chain, cfg.automation)
        self.graduation = GraduationChecker(self.repo, self.chain)
        self.janitor = JobJanitor(self.repo, cfg.scheduler.job_retention_days)
        self.scheduler = Scheduler(
            self.orchestrator, self.graduation, self.janitor, cfg.scheduler,
        )

        # API surfaces
        self.staking = StakingService(
            self.repo, self.ledger, self.rewards, self.pool, self.tiers,
        )
        self.automation = AutomationService(self.repo, self.orchestrator, self.scheduler)

    async def open(self) -> None:
        await self.repo.initialize()

    async def close(self) -> None:
        await self.chain.close()
        await self.repo.close()

    async def start(self) -> None:
        """Initialize components and run until stopped."""
        log.info("Starting feeflow daemon")
        log.info("  Chain API: %s", self._cfg.chain_api_url)
        log.info("  DB: %s", self._cfg.db_path)
        log.info(
            "  Intervals: automation=%ds graduation=%ds cleanup=%ds",
            self._cfg.scheduler.automation_interval,
            self._cfg.scheduler.graduation_interval,
            self._cfg.scheduler.cleanup_interval,
        )

        await self.open()
        self.scheduler.start()
        try:
            await self._stopped.wait()
        finally:
            await self.scheduler.stop()
            await self.close()
            log.info("Daemon shut down cleanly")

    async def stop(self) -> None:
        """Signal the daemon to stop gracefully."""
        log.info("Stop requested")
        self._stopped.set()


async def run_daemon(cfg: EngineConfig) -> None:
    """Entry point for running the daemon."""
    daemon = LaunchpadDaemon(cfg)

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
