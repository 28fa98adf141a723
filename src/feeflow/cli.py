"""CLI entry point for the feeflow engine."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Awaitable, Callable, TypeVar

import click

from feeflow.config import load_config
from feeflow.daemon import LaunchpadDaemon, run_daemon
from feeflow.errors import FeeflowError
from feeflow.models.config import EngineConfig
from feeflow.models.records import JobType, Token, TokenAutomationConfig

T = TypeVar("T")


def _cfg(ctx: click.Context) -> EngineConfig:
    return ctx.obj["cfg"]


def _with_daemon(cfg: EngineConfig, fn: Callable[[LaunchpadDaemon], Awaitable[T]]) -> T:
    """Open the engine's resources, run ``fn`` against it, and close them."""

    async def _run() -> T:
        daemon = LaunchpadDaemon(cfg)
        await daemon.open()
        try:
            return await fn(daemon)
        finally:
            await daemon.close()

    return asyncio.run(_run())


def _report(result) -> None:
    """Print an action result and exit non-zero on failure."""
    if result.success:
        click.echo(result.message)
        return
    click.echo(f"Error [{result.error_code}]: {result.message}", err=True)
    sys.exit(1)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """feeflow - fee automation and staking rewards engine."""
    ctx.ensure_object(dict)
    try:
        cfg = load_config(config_path)
    except FeeflowError as exc:
        raise click.ClickException(f"Invalid config: {exc.message}") from exc
    ctx.obj["cfg"] = cfg
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Daemon ─────────────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Start the scheduler daemon."""
    cfg = _cfg(ctx)
    click.echo(f"Starting feeflow daemon (chain API: {cfg.chain_api_url})")
    asyncio.run(run_daemon(cfg))


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show configuration and platform totals."""
    cfg = _cfg(ctx)
    click.echo(f"Chain API:    {cfg.chain_api_url}")
    click.echo(f"API key:      {'***configured***' if cfg.chain_api_key else '(not set)'}")
    click.echo(f"DB path:      {cfg.db_path}")
    click.echo(f"Automation:   every {cfg.scheduler.automation_interval}s")
    click.echo(f"Graduation:   every {cfg.scheduler.graduation_interval}s")
    click.echo(f"Cleanup:      every {cfg.scheduler.cleanup_interval}s "
               f"(keep {cfg.scheduler.job_retention_days} days)")

    async def _status(daemon: LaunchpadDaemon) -> None:
        stats = await daemon.repo.get_platform_stats()
        tokens = await daemon.repo.get_automation_tokens()
        click.echo("")
        click.echo(f"Stakers:      {stats.unique_stakers}")
        click.echo(f"Total staked: {stats.total_staked}")
        click.echo(f"Graduated:    {stats.graduated_tokens}")
        click.echo(f"Automated:    {len(tokens)} tokens")

    _with_daemon(cfg, _status)


@cli.command("run-job")
@click.argument("name")
@click.pass_context
def run_job(ctx: click.Context, name: str) -> None:
    """Run a scheduled job now (automation, graduation, cleanup)."""
    _report(_with_daemon(_cfg(ctx), lambda d: d.automation.run_job(name)))


# ── Automation ─────────────────────────────────────────


@cli.command("add-token")
@click.argument("token_id")
@click.option("--mint", default=None, help="Token mint address")
@click.option("--config-key", default=None, help="Fee-share config key used to claim fees")
@click.option("--creator", default=None, help="Creator wallet")
@click.option("--burn", "burn_bps", type=int, default=None, help="Burn share in basis points")
@click.option("--lp", "lp_bps", type=int, default=None, help="LP share in basis points")
@click.option("--dividends", "dividends_bps", type=int, default=None,
              help="Dividend share in basis points")
@click.pass_context
def add_token(
    ctx: click.Context,
    token_id: str,
    mint: str | None,
    config_key: str | None,
    creator: str | None,
    burn_bps: int | None,
    lp_bps: int | None,
    dividends_bps: int | None,
) -> None:
    """Register a token and its fee split. Omitted shares are disabled."""
    token = Token(
        id=token_id,
        token_mint=mint,
        config_key=config_key,
        creator_wallet=creator,
        automation=TokenAutomationConfig(
            burn_enabled=burn_bps is not None,
            burn_bps=burn_bps or 0,
            lp_enabled=lp_bps is not None,
            lp_bps=lp_bps or 0,
            dividends_enabled=dividends_bps is not None,
            dividends_bps=dividends_bps or 0,
        ),
    )
    _report(_with_daemon(_cfg(ctx), lambda d: d.automation.register_token(token)))


@cli.command()
@click.argument("token")
@click.option(
    "--job-type",
    type=click.Choice([t.value for t in JobType], case_sensitive=False),
    default=JobType.FULL_CYCLE.value,
    show_default=True,
)
@click.pass_context
def trigger(ctx: click.Context, token: str, job_type: str) -> None:
    """Run automation for one token (id or mint) now."""
    _report(_with_daemon(_cfg(ctx), lambda d: d.automation.trigger(token, job_type)))


@cli.command()
@click.argument("job_id", type=int)
@click.pass_context
def retry(ctx: click.Context, job_id: int) -> None:
    """Re-run a FAILED job as a new manual job."""
    _report(_with_daemon(_cfg(ctx), lambda d: d.automation.retry(job_id)))


@cli.command()
@click.argument("token_id")
@click.option("-n", "--limit", type=int, default=20, help="Number of recent jobs to show")
@click.pass_context
def jobs(ctx: click.Context, token_id: str, limit: int) -> None:
    """Show recent automation jobs for a token."""
    history = _with_daemon(_cfg(ctx), lambda d: d.automation.job_history(token_id, limit))
    if not history:
        click.echo("No jobs recorded.")
        return
    for j in history:
        click.echo(
            f"  #{j.id} [{j.status:9s}] {j.job_type:13s} {j.trigger_type:9s} "
            f"claimed={j.claimed_amount} burned={j.burned_amount} "
            f"lp={j.lp_added_amount} dividends={j.dividends_paid_amount} "
            f"at={j.created_at}"
        )
        if j.error_message:
            click.echo(f"      error: {j.error_message}")


# ── Staking ────────────────────────────────────────────


@cli.command()
@click.argument("wallet")
@click.argument("amount", type=int)
@click.option("--lock-days", type=int, default=0, show_default=True,
              help="Lock period in days")
@click.pass_context
def stake(ctx: click.Context, wallet: str, amount: int, lock_days: int) -> None:
    """Stake AMOUNT base units for WALLET."""
    result = _with_daemon(_cfg(ctx), lambda d: d.staking.stake(wallet, amount, lock_days))
    _report(result)
    click.echo(f"  Staked:   {result.staked_amount}")
    click.echo(f"  Weighted: {result.weighted_stake}")
    click.echo(f"  Tier:     {result.tier}")
    if result.lock_end_time:
        click.echo(f"  Locked until: {result.lock_end_time}")


@cli.command()
@click.argument("wallet")
@click.argument("amount", type=int)
@click.pass_context
def unstake(ctx: click.Context, wallet: str, amount: int) -> None:
    """Withdraw AMOUNT base units of WALLET's stake."""
    result = _with_daemon(_cfg(ctx), lambda d: d.staking.unstake(wallet, amount))
    _report(result)
    click.echo(f"  Remaining: {result.staked_amount}")
    click.echo(f"  Tier:      {result.tier}")


@cli.command()
@click.argument("wallet")
@click.pass_context
def claim(ctx: click.Context, wallet: str) -> None:
    """Claim WALLET's pending staking rewards."""
    result = _with_daemon(_cfg(ctx), lambda d: d.staking.claim_rewards(wallet))
    _report(result)
    if result.signature:
        click.echo(f"  Tx: {result.signature}")


@cli.command("staking-status")
@click.argument("wallet")
@click.pass_context
def staking_status(ctx: click.Context, wallet: str) -> None:
    """Show WALLET's stake, tier and pending rewards."""
    s = _with_daemon(_cfg(ctx), lambda d: d.staking.get_staking_status(wallet))
    click.echo(f"Wallet:          {s.wallet}")
    click.echo(f"Staked:          {s.staked_amount}")
    click.echo(f"Weighted:        {s.weighted_stake}")
    click.echo(f"Tier:            {s.tier} ({s.fee_discount}% fee discount)")
    click.echo(f"Locked until:    {s.lock_end_time or '(unlocked)'}")
    click.echo(f"Pending rewards: {s.pending_rewards}")
    click.echo(f"Total claimed:   {s.total_rewards_claimed}")


@cli.command()
@click.pass_context
def pool(ctx: click.Context) -> None:
    """Show reward pool, total stake and tier distribution."""
    info = _with_daemon(_cfg(ctx), lambda d: d.staking.get_pool_info())
    click.echo(f"Total staked:  {info.total_staked}")
    click.echo(f"Stakers:       {info.total_stakers}")
    click.echo(f"Rewards pool:  {info.rewards_pool}")
    click.echo(f"APY:           {info.apy:.2f}%")
    click.echo("")
    for t in info.tiers:
        click.echo(f"  {t.name:8s} min={t.min_stake} discount={t.discount}% stakers={t.count}")


@cli.command("fund-pool")
@click.argument("amount", type=int)
@click.pass_context
def fund_pool(ctx: click.Context, amount: int) -> None:
    """Add AMOUNT to the staking reward pool."""
    _report(_with_daemon(_cfg(ctx), lambda d: d.staking.fund_pool(amount)))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
