"""SQLite implementation of the Repository protocol."""

from __future__ import annotations

import functools
import json
from datetime import datetime
from pathlib import Path

import aiosqlite

from feeflow.clock import from_iso, to_iso, utcnow
from feeflow.errors import ExternalFailure, InvalidTransition
from feeflow.models.records import (
    JOB_TRANSITIONS,
    AutomationJob,
    Creator,
    JobStatus,
    JobType,
    PlatformStats,
    Staker,
    StepResult,
    Token,
    TokenAutomationConfig,
    TokenStatus,
    TriggerType,
)

SCHEMA = """
-- Launched tokens, their fee split and cumulative aggregates
CREATE TABLE IF NOT EXISTS tokens (
    id TEXT PRIMARY KEY,
    token_mint TEXT UNIQUE,
    config_key TEXT,
    creator_wallet TEXT,
    status TEXT NOT NULL DEFAULT 'ACTIVE',
    burn_enabled INTEGER NOT NULL DEFAULT 0,
    burn_bps INTEGER NOT NULL DEFAULT 0,
    lp_enabled INTEGER NOT NULL DEFAULT 0,
    lp_bps INTEGER NOT NULL DEFAULT 0,
    dividends_enabled INTEGER NOT NULL DEFAULT 0,
    dividends_bps INTEGER NOT NULL DEFAULT 0,
    total_fees_collected INTEGER NOT NULL DEFAULT 0 CHECK (typeof(total_fees_collected) = 'integer'),
    total_burned INTEGER NOT NULL DEFAULT 0 CHECK (typeof(total_burned) = 'integer'),
    total_to_lp INTEGER NOT NULL DEFAULT 0 CHECK (typeof(total_to_lp) = 'integer'),
    total_dividends_paid INTEGER NOT NULL DEFAULT 0 CHECK (typeof(total_dividends_paid) = 'integer'),
    last_automation_run TEXT,
    graduated_at TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_tokens_status ON tokens(status);

-- Automation jobs
CREATE TABLE IF NOT EXISTS automation_jobs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    token_id TEXT NOT NULL,
    job_type TEXT NOT NULL,
    trigger_type TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'PENDING',
    claimed_amount INTEGER NOT NULL DEFAULT 0 CHECK (typeof(claimed_amount) = 'integer'),
    burned_amount INTEGER NOT NULL DEFAULT 0 CHECK (typeof(burned_amount) = 'integer'),
    lp_added_amount INTEGER NOT NULL DEFAULT 0 CHECK (typeof(lp_added_amount) = 'integer'),
    dividends_paid_amount INTEGER NOT NULL DEFAULT 0 CHECK (typeof(dividends_paid_amount) = 'integer'),
    external_references TEXT NOT NULL DEFAULT '{}',
    step_results TEXT NOT NULL DEFAULT '[]',
    error_message TEXT,
    retry_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    started_at TEXT,
    completed_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_jobs_token ON automation_jobs(token_id, created_at);
CREATE INDEX IF NOT EXISTS idx_jobs_status ON automation_jobs(status, completed_at);

-- Staking positions
CREATE TABLE IF NOT EXISTS stakers (
    wallet TEXT PRIMARY KEY,
    staked_amount INTEGER NOT NULL DEFAULT 0
        CHECK (typeof(staked_amount) = 'integer' AND staked_amount >= 0),
    weighted_stake INTEGER NOT NULL DEFAULT 0
        CHECK (typeof(weighted_stake) = 'integer' AND weighted_stake >= 0),
    lock_end_time TEXT,
    lock_duration_days INTEGER NOT NULL DEFAULT 0,
    tier TEXT NOT NULL DEFAULT 'NONE',
    total_rewards_claimed INTEGER NOT NULL DEFAULT 0 CHECK (typeof(total_rewards_claimed) = 'integer'),
    last_claim_time TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_stakers_tier ON stakers(tier);

-- Creator fee discounts derived from staking
CREATE TABLE IF NOT EXISTS creators (
    wallet TEXT PRIMARY KEY,
    staked_amount INTEGER NOT NULL DEFAULT 0 CHECK (typeof(staked_amount) = 'integer'),
    discount_tier TEXT NOT NULL DEFAULT 'NONE',
    updated_at TEXT NOT NULL
);

-- Platform-wide counters
CREATE TABLE IF NOT EXISTS platform_stats (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    unique_stakers INTEGER NOT NULL DEFAULT 0,
    total_staked INTEGER NOT NULL DEFAULT 0 CHECK (typeof(total_staked) = 'integer'),
    graduated_tokens INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL
);

-- Global staking reward pool
CREATE TABLE IF NOT EXISTS reward_pool (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    balance INTEGER NOT NULL DEFAULT 0 CHECK (typeof(balance) = 'integer'),
    updated_at TEXT NOT NULL
);
"""

_STEP_AMOUNT_COLUMNS = {
    "claim": "claimed_amount",
    "burn": "burned_amount",
    "lp": "lp_added_amount",
    "dividends": "dividends_paid_amount",
}


def _now() -> str:
    return to_iso(utcnow())


def _storage_errors(fn):
    """Re-raise driver errors, overflow included, as ExternalFailure."""

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except (aiosqlite.Error, OverflowError) as exc:
            raise ExternalFailure(f"storage error: {exc}") from exc

    return wrapper


class SQLiteRepository:
    """SQLite-backed implementation of the Repository protocol.

    Driver errors, including amounts too large for an INTEGER column, are
    raised as ExternalFailure.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    @_storage_errors
    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Repository not initialized. Call initialize() first."
        return self._db

    # ── Tokens ─────────────────────────────────────────────

    @_storage_errors
    async def save_token(self, token: Token) -> None:
        """Insert a token or update its identity, status and fee split.

        Cumulative totals are only written on insert; afterwards they change
        through increment_token_totals().
        """
        cfg = token.automation
        await self.db.execute(
            "INSERT INTO tokens"
            " (id, token_mint, config_key, creator_wallet, status,"
            "  burn_enabled, burn_bps, lp_enabled, lp_bps, dividends_enabled, dividends_bps,"
            "  total_fees_collected, total_burned, total_to_lp, total_dividends_paid,"
            "  last_automation_run, graduated_at, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
            " ON CONFLICT(id) DO UPDATE SET"
            " token_mint=excluded.token_mint, config_key=excluded.config_key,"
            " creator_wallet=excluded.creator_wallet, status=excluded.status,"
            " burn_enabled=excluded.burn_enabled, burn_bps=excluded.burn_bps,"
            " lp_enabled=excluded.lp_enabled, lp_bps=excluded.lp_bps,"
            " dividends_enabled=excluded.dividends_enabled,"
            " dividends_bps=excluded.dividends_bps",
            (
                token.id, token.token_mint, token.config_key, token.creator_wallet,
                token.status.value,
                int(cfg.burn_enabled), cfg.burn_bps, int(cfg.lp_enabled), cfg.lp_bps,
                int(cfg.dividends_enabled), cfg.dividends_bps,
                token.total_fees_collected, token.total_burned, token.total_to_lp,
                token.total_dividends_paid,
                to_iso(token.last_automation_run), to_iso(token.graduated_at),
                to_iso(token.created_at) or _now(),
            ),
        )
        await self.db.commit()

    @_storage_errors
    async def get_token(self, token_id: str) -> Token | None:
        async with self.db.execute("SELECT * FROM tokens WHERE id=?", (token_id,)) as cur:
            row = await cur.fetchone()
            return _row_to_token(row) if row else None

    @_storage_errors
    async def get_token_by_mint(self, token_mint: str) -> Token | None:
        async with self.db.execute(
            "SELECT * FROM tokens WHERE token_mint=?", (token_mint,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_token(row) if row else None

    @_storage_errors
    async def get_automation_tokens(self) -> list[Token]:
        async with self.db.execute(
            "SELECT * FROM tokens WHERE status=?"
            " AND (burn_enabled=1 OR lp_enabled=1 OR dividends_enabled=1)"
            " ORDER BY created_at",
            (TokenStatus.ACTIVE.value,),
        ) as cur:
            return [_row_to_token(row) async for row in cur]

    @_storage_errors
    async def get_graduation_candidates(self) -> list[Token]:
        async with self.db.execute(
            "SELECT * FROM tokens WHERE status=? AND graduated_at IS NULL"
            " AND token_mint IS NOT NULL ORDER BY created_at",
            (TokenStatus.ACTIVE.value,),
        ) as cur:
            return [_row_to_token(row) async for row in cur]

    @_storage_errors
    async def increment_token_totals(
        self,
        token_id: str,
        fees_collected: int = 0,
        burned: int = 0,
        to_lp: int = 0,
        dividends_paid: int = 0,
        ran_at: datetime | None = None,
    ) -> None:
        await self.db.execute(
            "UPDATE tokens SET"
            " total_fees_collected = total_fees_collected + ?,"
            " total_burned = total_burned + ?,"
            " total_to_lp = total_to_lp + ?,"
            " total_dividends_paid = total_dividends_paid + ?,"
            " last_automation_run = COALESCE(?, last_automation_run)"
            " WHERE id=?",
            (fees_collected, burned, to_lp, dividends_paid, to_iso(ran_at), token_id),
        )
        await self.db.commit()

    @_storage_errors
    async def mark_token_graduated(self, token_id: str, graduated_at: datetime) -> bool:
        cur = await self.db.execute(
            "UPDATE tokens SET status=?, graduated_at=? WHERE id=? AND status=?",
            (
                TokenStatus.GRADUATED.value, to_iso(graduated_at),
                token_id, TokenStatus.ACTIVE.value,
            ),
        )
        await self.db.commit()
        return cur.rowcount == 1

    # ── Automation jobs ────────────────────────────────────

    @_storage_errors
    async def create_job(
        self,
        token_id: str,
        job_type: JobType,
        trigger_type: TriggerType,
        status: JobStatus = JobStatus.PENDING,
        started_at: datetime | None = None,
        retry_count: int = 0,
    ) -> AutomationJob:
        cur = await self.db.execute(
            "INSERT INTO automation_jobs"
            " (token_id, job_type, trigger_type, status, retry_count, created_at, started_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                token_id, job_type.value, trigger_type.value, status.value,
                retry_count, _now(), to_iso(started_at),
            ),
        )
        await self.db.commit()
        job = await self.get_job(cur.lastrowid)
        if job is None:
            raise ExternalFailure(f"job {cur.lastrowid} missing after insert")
        return job

    @_storage_errors
    async def get_job(self, job_id: int) -> AutomationJob | None:
        async with self.db.execute(
            "SELECT * FROM automation_jobs WHERE id=?", (job_id,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_job(row) if row else None

    @_storage_errors
    async def transition_job(
        self,
        job_id: int,
        expected: JobStatus,
        new: JobStatus,
        at: datetime | None = None,
        error_message: str | None = None,
        increment_retry: bool = False,
    ) -> bool:
        if new not in JOB_TRANSITIONS[expected]:
            raise InvalidTransition(f"job {job_id}: {expected.value} -> {new.value}")

        stamp = to_iso(at or utcnow())
        updates = ["status=?"]
        params: list = [new.value]
        if new == JobStatus.RUNNING:
            updates.append("started_at=COALESCE(started_at, ?)")
            params.append(stamp)
        if new.terminal:
            updates.append("completed_at=?")
            params.append(stamp)
        if error_message is not None:
            updates.append("error_message=?")
            params.append(error_message)
        if increment_retry:
            updates.append("retry_count=retry_count+1")

        params.extend([job_id, expected.value])
        sql = f"UPDATE automation_jobs SET {', '.join(updates)} WHERE id=? AND status=?"
        cur = await self.db.execute(sql, params)
        await self.db.commit()
        return cur.rowcount == 1

    @_storage_errors
    async def record_job_step(self, job_id: int, step: StepResult) -> None:
        # A job row is written only by the task that owns it, so the JSON
        # columns can be rewritten whole.
        job = await self.get_job(job_id)
        if job is None:
            return
        steps = [s for s in job.step_results if s.step != step.step]
        steps.append(step)
        refs = dict(job.external_references)
        if step.signature:
            refs[step.step] = step.signature

        updates = ["step_results=?", "external_references=?"]
        params: list = [
            json.dumps([s.to_dict() for s in steps]),
            json.dumps(refs),
        ]
        column = _STEP_AMOUNT_COLUMNS.get(step.step)
        if column and step.success:
            updates.append(f"{column}=?")
            params.append(step.executed)
        params.append(job_id)
        await self.db.execute(
            f"UPDATE automation_jobs SET {', '.join(updates)} WHERE id=?", params,
        )
        await self.db.commit()

    @_storage_errors
    async def get_jobs_for_token(self, token_id: str, limit: int = 20) -> list[AutomationJob]:
        async with self.db.execute(
            "SELECT * FROM automation_jobs WHERE token_id=?"
            " ORDER BY created_at DESC, id DESC LIMIT ?",
            (token_id, limit),
        ) as cur:
            return [_row_to_job(row) async for row in cur]

    @_storage_errors
    async def get_jobs(self, status: JobStatus | None = None) -> list[AutomationJob]:
        if status:
            async with self.db.execute(
                "SELECT * FROM automation_jobs WHERE status=? ORDER BY id", (status.value,)
            ) as cur:
                return [_row_to_job(row) async for row in cur]
        async with self.db.execute("SELECT * FROM automation_jobs ORDER BY id") as cur:
            return [_row_to_job(row) async for row in cur]

    @_storage_errors
    async def delete_completed_jobs_before(self, cutoff: datetime) -> int:
        cur = await self.db.execute(
            "DELETE FROM automation_jobs WHERE status=? AND completed_at < ?",
            (JobStatus.COMPLETED.value, to_iso(cutoff)),
        )
        await self.db.commit()
        return cur.rowcount

    # ── Stakers ────────────────────────────────────────────

    @_storage_errors
    async def get_staker(self, wallet: str) -> Staker | None:
        async with self.db.execute("SELECT * FROM stakers WHERE wallet=?", (wallet,)) as cur:
            row = await cur.fetchone()
            return _row_to_staker(row) if row else None

    @_storage_errors
    async def create_staker(self, wallet: str, created_at: datetime) -> bool:
        stamp = to_iso(created_at)
        cur = await self.db.execute(
            "INSERT OR IGNORE INTO stakers (wallet, created_at, updated_at) VALUES (?, ?, ?)",
            (wallet, stamp, stamp),
        )
        await self.db.commit()
        return cur.rowcount == 1

    @_storage_errors
    async def apply_stake(
        self,
        wallet: str,
        amount: int,
        weighted_delta: int,
        lock_end_time: datetime | None,
        lock_duration_days: int,
        updated_at: datetime,
    ) -> Staker:
        # SET expressions all see the pre-update row, so both CASEs compare
        # against the old lock_end_time.
        params = {
            "wallet": wallet,
            "amount": amount,
            "delta": weighted_delta,
            "lock": to_iso(lock_end_time),
            "days": lock_duration_days,
            "now": to_iso(updated_at),
        }
        await self.db.execute(
            "UPDATE stakers SET"
            " staked_amount = staked_amount + :amount,"
            " weighted_stake = weighted_stake + :delta,"
            " lock_duration_days = CASE"
            "   WHEN :lock IS NOT NULL AND (lock_end_time IS NULL OR lock_end_time < :lock)"
            "     THEN :days"
            "   WHEN lock_end_time IS NOT NULL AND lock_end_time <= :now THEN 0"
            "   ELSE lock_duration_days END,"
            " lock_end_time = CASE"
            "   WHEN :lock IS NOT NULL AND (lock_end_time IS NULL OR lock_end_time < :lock)"
            "     THEN :lock"
            "   WHEN lock_end_time IS NOT NULL AND lock_end_time <= :now THEN NULL"
            "   ELSE lock_end_time END,"
            " updated_at = :now"
            " WHERE wallet = :wallet",
            params,
        )
        await self.db.commit()
        staker = await self.get_staker(wallet)
        if staker is None:
            raise ExternalFailure(f"staker {wallet} vanished during stake")
        return staker

    @_storage_errors
    async def compare_and_set_stake(
        self,
        wallet: str,
        expected_staked: int,
        expected_weighted: int,
        new_staked: int,
        new_weighted: int,
        tier: str,
        clear_lock: bool,
        updated_at: datetime,
    ) -> bool:
        lock_sql = ", lock_end_time=NULL, lock_duration_days=0" if clear_lock else ""
        cur = await self.db.execute(
            f"UPDATE stakers SET staked_amount=?, weighted_stake=?, tier=?, updated_at=?{lock_sql}"
            " WHERE wallet=? AND staked_amount=? AND weighted_stake=?",
            (
                new_staked, new_weighted, tier, to_iso(updated_at),
                wallet, expected_staked, expected_weighted,
            ),
        )
        await self.db.commit()
        return cur.rowcount == 1

    @_storage_errors
    async def set_staker_tier(self, wallet: str, tier: str, expected_staked: int) -> bool:
        cur = await self.db.execute(
            "UPDATE stakers SET tier=? WHERE wallet=? AND staked_amount=?",
            (tier, wallet, expected_staked),
        )
        await self.db.commit()
        return cur.rowcount == 1

    @_storage_errors
    async def record_reward_claim(
        self,
        wallet: str,
        amount: int,
        expected_last_claim: datetime | None,
        claimed_at: datetime,
    ) -> bool:
        stamp = to_iso(claimed_at)
        cur = await self.db.execute(
            "UPDATE stakers SET total_rewards_claimed = total_rewards_claimed + ?,"
            " last_claim_time=?, updated_at=?"
            " WHERE wallet=? AND last_claim_time IS ?",
            (amount, stamp, stamp, wallet, to_iso(expected_last_claim)),
        )
        await self.db.commit()
        return cur.rowcount == 1

    @_storage_errors
    async def revert_reward_claim(
        self,
        wallet: str,
        amount: int,
        claimed_at: datetime,
        previous_last_claim: datetime | None,
    ) -> bool:
        cur = await self.db.execute(
            "UPDATE stakers SET total_rewards_claimed = total_rewards_claimed - ?,"
            " last_claim_time=?, updated_at=?"
            " WHERE wallet=? AND last_claim_time=?",
            (amount, to_iso(previous_last_claim), _now(), wallet, to_iso(claimed_at)),
        )
        await self.db.commit()
        return cur.rowcount == 1

    @_storage_errors
    async def total_weighted_stake(self) -> int:
        async with self.db.execute(
            "SELECT COALESCE(SUM(weighted_stake), 0) AS s FROM stakers"
        ) as cur:
            row = await cur.fetchone()
            return row["s"] if row else 0

    @_storage_errors
    async def total_staked(self) -> int:
        async with self.db.execute(
            "SELECT COALESCE(SUM(staked_amount), 0) AS s FROM stakers"
        ) as cur:
            row = await cur.fetchone()
            return row["s"] if row else 0

    @_storage_errors
    async def count_stakers_by_tier(self) -> dict[str, int]:
        async with self.db.execute(
            "SELECT tier, COUNT(*) AS c FROM stakers GROUP BY tier"
        ) as cur:
            return {row["tier"]: row["c"] async for row in cur}

    # ── Creators ───────────────────────────────────────────

    @_storage_errors
    async def save_creator(self, creator: Creator) -> None:
        await self.db.execute(
            "INSERT OR REPLACE INTO creators (wallet, staked_amount, discount_tier, updated_at)"
            " VALUES (?, ?, ?, ?)",
            (creator.wallet, creator.staked_amount, creator.discount_tier, _now()),
        )
        await self.db.commit()

    @_storage_errors
    async def get_creator(self, wallet: str) -> Creator | None:
        async with self.db.execute("SELECT * FROM creators WHERE wallet=?", (wallet,)) as cur:
            row = await cur.fetchone()
            if row:
                return Creator(
                    wallet=row["wallet"],
                    staked_amount=row["staked_amount"],
                    discount_tier=row["discount_tier"],
                )
        return None

    @_storage_errors
    async def update_creator_discount(self, wallet: str, staked_amount: int, tier: str) -> bool:
        cur = await self.db.execute(
            "UPDATE creators SET staked_amount=?, discount_tier=?, updated_at=? WHERE wallet=?",
            (staked_amount, tier, _now(), wallet),
        )
        await self.db.commit()
        return cur.rowcount == 1

    # ── Platform stats & reward pool ───────────────────────

    @_storage_errors
    async def increment_platform_stats(
        self, unique_stakers: int = 0, total_staked: int = 0, graduated_tokens: int = 0,
    ) -> None:
        await self.db.execute(
            "INSERT INTO platform_stats"
            " (id, unique_stakers, total_staked, graduated_tokens, updated_at)"
            " VALUES (1, ?, ?, ?, ?)"
            " ON CONFLICT(id) DO UPDATE SET"
            " unique_stakers = unique_stakers + excluded.unique_stakers,"
            " total_staked = total_staked + excluded.total_staked,"
            " graduated_tokens = graduated_tokens + excluded.graduated_tokens,"
            " updated_at = excluded.updated_at",
            (unique_stakers, total_staked, graduated_tokens, _now()),
        )
        await self.db.commit()

    @_storage_errors
    async def get_platform_stats(self) -> PlatformStats:
        async with self.db.execute("SELECT * FROM platform_stats WHERE id=1") as cur:
            row = await cur.fetchone()
            if row:
                return PlatformStats(
                    unique_stakers=row["unique_stakers"],
                    total_staked=row["total_staked"],
                    graduated_tokens=row["graduated_tokens"],
                )
        return PlatformStats()

    @_storage_errors
    async def get_reward_pool_balance(self) -> int:
        async with self.db.execute("SELECT balance FROM reward_pool WHERE id=1") as cur:
            row = await cur.fetchone()
            return row["balance"] if row else 0

    @_storage_errors
    async def fund_reward_pool(self, amount: int) -> int:
        await self.db.execute(
            "INSERT INTO reward_pool (id, balance, updated_at) VALUES (1, ?, ?)"
            " ON CONFLICT(id) DO UPDATE SET balance = balance + excluded.balance,"
            " updated_at = excluded.updated_at",
            (amount, _now()),
        )
        await self.db.commit()
        return await self.get_reward_pool_balance()


# ── Row converters ─────────────────────────────────────────


def _row_to_token(row: aiosqlite.Row) -> Token:
    return Token(
        id=row["id"],
        token_mint=row["token_mint"],
        config_key=row["config_key"],
        creator_wallet=row["creator_wallet"],
        status=TokenStatus(row["status"]),
        automation=TokenAutomationConfig(
            burn_enabled=bool(row["burn_enabled"]),
            burn_bps=row["burn_bps"],
            lp_enabled=bool(row["lp_enabled"]),
            lp_bps=row["lp_bps"],
            dividends_enabled=bool(row["dividends_enabled"]),
            dividends_bps=row["dividends_bps"],
        ),
        total_fees_collected=row["total_fees_collected"],
        total_burned=row["total_burned"],
        total_to_lp=row["total_to_lp"],
        total_dividends_paid=row["total_dividends_paid"],
        last_automation_run=from_iso(row["last_automation_run"]),
        graduated_at=from_iso(row["graduated_at"]),
        created_at=from_iso(row["created_at"]),
    )


def _row_to_job(row: aiosqlite.Row) -> AutomationJob:
    return AutomationJob(
        id=row["id"],
        token_id=row["token_id"],
        job_type=JobType(row["job_type"]),
        trigger_type=TriggerType(row["trigger_type"]),
        status=JobStatus(row["status"]),
        claimed_amount=row["claimed_amount"],
        burned_amount=row["burned_amount"],
        lp_added_amount=row["lp_added_amount"],
        dividends_paid_amount=row["dividends_paid_amount"],
        external_references=json.loads(row["external_references"] or "{}"),
        step_results=[
            StepResult.from_dict(d) for d in json.loads(row["step_results"] or "[]")
        ],
        error_message=row["error_message"],
        retry_count=row["retry_count"],
        created_at=from_iso(row["created_at"]),
        started_at=from_iso(row["started_at"]),
        completed_at=from_iso(row["completed_at"]),
    )


def _row_to_staker(row: aiosqlite.Row) -> Staker:
    return Staker(
        wallet=row["wallet"],
        staked_amount=row["staked_amount"],
        weighted_stake=row["weighted_stake"],
        lock_end_time=from_iso(row["lock_end_time"]),
        lock_duration_days=row["lock_duration_days"],
        tier=row["tier"],
        total_rewards_claimed=row["total_rewards_claimed"],
        last_claim_time=from_iso(row["last_claim_time"]),
        created_at=from_iso(row["created_at"]),
        updated_at=from_iso(row["updated_at"]),
    )
