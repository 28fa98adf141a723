"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from fractions import Fraction
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from feeflow.errors import ConfigInvalid
from feeflow.models.config import (
    EngineConfig,
    LockMultiplier,
    StakingTier,
)


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "FEEFLOW_",
) -> EngineConfig:
    """Load engine configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (FEEFLOW_CHAIN_API_KEY, etc.)
        2. TOML config file
        3. Defaults from EngineConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = EngineConfig()

    # ── Engine section ─────────────────────────────────────
    engine = raw.get("engine", {})
    if v := engine.get("log_level"):
        cfg.log_level = str(v)

    # ── Chain section ──────────────────────────────────────
    chain = raw.get("chain", {})
    if v := chain.get("api_url"):
        cfg.chain_api_url = str(v)
    if v := chain.get("api_key"):
        cfg.chain_api_key = str(v)
    if v := chain.get("timeout"):
        cfg.chain_timeout = int(v)

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Scheduler section ──────────────────────────────────
    sched = raw.get("scheduler", {})
    if v := sched.get("automation_interval"):
        cfg.scheduler.automation_interval = int(v)
    if v := sched.get("graduation_interval"):
        cfg.scheduler.graduation_interval = int(v)
    if v := sched.get("cleanup_interval"):
        cfg.scheduler.cleanup_interval = int(v)
    if v := sched.get("job_retention_days"):
        cfg.scheduler.job_retention_days = int(v)
    cfg.scheduler.run_on_start = bool(sched.get("run_on_start", cfg.scheduler.run_on_start))

    # ── Automation section ─────────────────────────────────
    auto = raw.get("automation", {})
    if v := auto.get("max_concurrent_tokens"):
        cfg.automation.max_concurrent_tokens = int(v)
    cfg.automation.reclaim_on_single_step = bool(
        auto.get("reclaim_on_single_step", cfg.automation.reclaim_on_single_step)
    )

    # ── Staking section ────────────────────────────────────
    staking = raw.get("staking", {})
    if tiers := staking.get("tiers"):
        cfg.staking.tiers = tuple(
            StakingTier(
                name=str(t["name"]),
                min_stake=int(t["min_stake"]),
                discount_percent=int(t.get("discount_percent", 0)),
            )
            for t in tiers
        )
    if mults := staking.get("lock_multipliers"):
        cfg.staking.lock_multipliers = tuple(
            LockMultiplier(min_days=int(m["min_days"]), multiplier=_fraction(m["multiplier"]))
            for m in mults
        )
    if v := staking.get("allowed_lock_days"):
        cfg.staking.allowed_lock_days = tuple(int(d) for d in v)
    if v := staking.get("cas_retries"):
        cfg.staking.cas_retries = int(v)

    # ── Environment variable overrides (highest priority) ──
    if key := os.environ.get(f"{env_prefix}CHAIN_API_KEY"):
        cfg.chain_api_key = key
    if url := os.environ.get(f"{env_prefix}CHAIN_API_URL"):
        cfg.chain_api_url = url
    if db := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db
    if level := os.environ.get(f"{env_prefix}LOG_LEVEL"):
        cfg.log_level = level

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg


def _fraction(value) -> Fraction:
    """Multipliers are written as strings ("1.25") or ints; floats are refused."""
    if isinstance(value, float):
        raise ConfigInvalid(
            f"lock multiplier {value!r} must be a string like \"1.25\" or an integer"
        )
    try:
        result = Fraction(value)
    except (TypeError, ValueError) as exc:
        raise ConfigInvalid(f"invalid lock multiplier {value!r}") from exc
    if result < 1:
        raise ConfigInvalid(f"lock multiplier {value!r} must be at least 1")
    return result
