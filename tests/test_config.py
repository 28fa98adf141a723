"""Configuration loading from TOML and environment."""

from __future__ import annotations

from fractions import Fraction

import pytest

from feeflow.config import load_config
from feeflow.errors import ConfigInvalid
from feeflow.models.config import DEFAULT_TIERS

SAMPLE = """
[engine]
log_level = "debug"

[chain]
api_url = "https://launchpad.example/api/v1"
timeout = 12

[storage]
db_path = "/tmp/feeflow-test/state.db"

[scheduler]
automation_interval = 600
graduation_interval = 60
job_retention_days = 7
run_on_start = true

[automation]
max_concurrent_tokens = 4
reclaim_on_single_step = false

[staking]
allowed_lock_days = [0, 60]

[[staking.tiers]]
name = "NONE"
min_stake = 0

[[staking.tiers]]
name = "VIP"
min_stake = 1000
discount_percent = 40

[[staking.lock_multipliers]]
min_days = 0
multiplier = "1"

[[staking.lock_multipliers]]
min_days = 60
multiplier = "1.75"
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CHAIN_API_KEY", "CHAIN_API_URL", "DB_PATH", "LOG_LEVEL"):
        monkeypatch.delenv(f"FEEFLOW_{name}", raising=False)


def test_defaults_without_file():
    cfg = load_config(None)
    assert cfg.scheduler.automation_interval == 3600
    assert cfg.scheduler.graduation_interval == 900
    assert cfg.scheduler.cleanup_interval == 86400
    assert cfg.staking.tiers == DEFAULT_TIERS
    assert cfg.automation.reclaim_on_single_step is True
    assert cfg.db_path.endswith(".feeflow/state.db")
    assert "~" not in cfg.db_path


def test_missing_file_uses_defaults(tmp_path):
    cfg = load_config(tmp_path / "absent.toml")
    assert cfg.chain_api_url == "http://127.0.0.1:8080/api/v1"


def test_toml_sections(tmp_path):
    path = tmp_path / "feeflow.toml"
    path.write_text(SAMPLE)

    cfg = load_config(path)

    assert cfg.log_level == "debug"
    assert cfg.chain_api_url == "https://launchpad.example/api/v1"
    assert cfg.chain_timeout == 12
    assert cfg.db_path == "/tmp/feeflow-test/state.db"
    assert cfg.scheduler.automation_interval == 600
    assert cfg.scheduler.graduation_interval == 60
    assert cfg.scheduler.cleanup_interval == 86400
    assert cfg.scheduler.job_retention_days == 7
    assert cfg.scheduler.run_on_start is True
    assert cfg.automation.max_concurrent_tokens == 4
    assert cfg.automation.reclaim_on_single_step is False
    assert cfg.staking.allowed_lock_days == (0, 60)
    assert [t.name for t in cfg.staking.tiers] == ["NONE", "VIP"]
    assert cfg.staking.tiers[1].discount_percent == 40
    assert cfg.staking.lock_multipliers[1].multiplier == Fraction(7, 4)


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "feeflow.toml"
    path.write_text(SAMPLE)
    monkeypatch.setenv("FEEFLOW_CHAIN_API_KEY", "from-env")
    monkeypatch.setenv("FEEFLOW_CHAIN_API_URL", "http://env.example")
    monkeypatch.setenv("FEEFLOW_DB_PATH", ":memory:")
    monkeypatch.setenv("FEEFLOW_LOG_LEVEL", "warning")

    cfg = load_config(path)

    assert cfg.chain_api_key == "from-env"
    assert cfg.chain_api_url == "http://env.example"
    assert cfg.db_path == ":memory:"
    assert cfg.log_level == "warning"


def test_float_multiplier_rejected(tmp_path):
    path = tmp_path / "feeflow.toml"
    path.write_text("[[staking.lock_multipliers]]\nmin_days = 30\nmultiplier = 1.25\n")
    with pytest.raises(ConfigInvalid):
        load_config(path)


def test_multiplier_below_one_rejected(tmp_path):
    path = tmp_path / "feeflow.toml"
    path.write_text('[[staking.lock_multipliers]]\nmin_days = 30\nmultiplier = "0.5"\n')
    with pytest.raises(ConfigInvalid):
        load_config(path)
