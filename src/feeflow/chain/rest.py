"""REST chain executor - submits fee and reward operations via the launchpad API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

from feeflow.models.chain import (
    BurnResult,
    ClaimResult,
    DividendResult,
    GraduationStatus,
    LiquidityResult,
    SettlementResult,
)

log = logging.getLogger(__name__)


def _classify_error(exc: Exception) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return "timeout"
    if isinstance(exc, httpx.HTTPStatusError):
        return f"http_{exc.response.status_code}"
    if isinstance(exc, httpx.TransportError):
        return "transport_error"
    if isinstance(exc, (ValueError, KeyError)):
        return "bad_response"
    return "unknown"


def _parse_time(value: str | int | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        # epoch milliseconds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


class RestChainExecutor:
    """ChainExecutor and BondingCurveStatus over the launchpad HTTP API.

    The API signs and submits the transactions; this class only shapes the
    requests. No call is retried: each one moves funds on-chain and is not
    idempotent. Transport and HTTP errors come back as ``success=False``
    results rather than exceptions.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout, connect=10),
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, payload: dict) -> dict:
        resp = await self._client.post(path, json=payload)
        resp.raise_for_status()
        return resp.json()

    # ── Fee automation ────────────────────────────────────

    async def claim_fees(self, config_key: str) -> ClaimResult:
        log.info("Claiming fees for config %s", config_key)
        try:
            data = await self._post("/fees/claim", {"configKey": config_key})
        except Exception as exc:
            error = _classify_error(exc)
            log.error("Fee claim failed for %s: %s (%s)", config_key, error, exc)
            return ClaimResult(success=False, error=f"claim_failed:{error}")

        if not data.get("success"):
            return ClaimResult(success=False, error=data.get("error") or "claim_rejected")

        result = ClaimResult(
            success=True,
            claimed_amount=int(data.get("claimedLamports", 0)),
            signature=data.get("signature"),
        )
        log.info("Claimed %d lamports, tx %s", result.claimed_amount, result.signature)
        return result

    async def execute_burn(self, token_ref: str, amount: int) -> BurnResult:
        log.info("Executing burn: %d lamports for %s", amount, token_ref)
        try:
            data = await self._post(
                "/automation/burn", {"tokenMint": token_ref, "amountLamports": amount},
            )
        except Exception as exc:
            error = _classify_error(exc)
            log.error("Burn failed for %s: %s (%s)", token_ref, error, exc)
            return BurnResult(success=False, error=f"burn_failed:{error}")

        if not data.get("success"):
            return BurnResult(success=False, error=data.get("error") or "burn_rejected")
        return BurnResult(
            success=True,
            burned_amount=int(data.get("burnedTokens", 0)),
            signature=data.get("signature"),
        )

    async def add_liquidity(self, token_ref: str, amount: int) -> LiquidityResult:
        log.info("Adding liquidity: %d lamports for %s", amount, token_ref)
        try:
            data = await self._post(
                "/automation/liquidity", {"tokenMint": token_ref, "amountLamports": amount},
            )
        except Exception as exc:
            error = _classify_error(exc)
            log.error("Add liquidity failed for %s: %s (%s)", token_ref, error, exc)
            return LiquidityResult(success=False, error=f"lp_failed:{error}")

        if not data.get("success"):
            return LiquidityResult(success=False, error=data.get("error") or "lp_rejected")
        return LiquidityResult(
            success=True,
            lp_added=int(data.get("lpTokensAdded", 0)),
            signature=data.get("signature"),
        )

    async def distribute_dividends(self, token_ref: str, amount: int) -> DividendResult:
        log.info("Distributing dividends: %d lamports for %s", amount, token_ref)
        try:
            data = await self._post(
                "/automation/dividends", {"tokenMint": token_ref, "amountLamports": amount},
            )
        except Exception as exc:
            error = _classify_error(exc)
            log.error("Dividend distribution failed for %s: %s (%s)", token_ref, error, exc)
            return DividendResult(success=False, error=f"dividends_failed:{error}")

        if not data.get("success"):
            return DividendResult(success=False, error=data.get("error") or "dividends_rejected")
        return DividendResult(
            success=True,
            total_paid=int(data.get("totalPaid", 0)),
            signature=data.get("signature"),
        )

    # ── Staking rewards ───────────────────────────────────

    async def transfer_rewards(self, wallet: str, amount: int) -> SettlementResult:
        log.info("Transferring %d reward to %s", amount, wallet)
        try:
            data = await self._post(
                "/staking/rewards/transfer", {"wallet": wallet, "amount": str(amount)},
            )
        except Exception as exc:
            error = _classify_error(exc)
            log.error("Reward transfer failed for %s: %s (%s)", wallet, error, exc)
            return SettlementResult(success=False, amount=amount, error=f"transfer_failed:{error}")

        if not data.get("success"):
            return SettlementResult(
                success=False, amount=amount, error=data.get("error") or "transfer_rejected",
            )
        return SettlementResult(success=True, amount=amount, signature=data.get("signature"))

    # ── Bonding curve ─────────────────────────────────────

    async def check_graduation(self, token_mint: str) -> GraduationStatus:
        """Unknown pools read as not graduated; other errors propagate."""
        resp = await self._client.get(f"/pools/{token_mint}")
        if resp.status_code == 404:
            return GraduationStatus(is_graduated=False)
        resp.raise_for_status()
        data = resp.json()
        return GraduationStatus(
            is_graduated=bool(data.get("isGraduated")),
            graduated_at=_parse_time(data.get("graduatedAt")),
        )
