"""Graduation checker - flips tokens whose bonding curve has completed."""

from __future__ import annotations

import logging

from feeflow.clock import Clock, utcnow
from feeflow.interfaces.chain import BondingCurveStatus
from feeflow.interfaces.store import Repository

log = logging.getLogger(__name__)


class GraduationChecker:
    """Queries bonding-curve status for ACTIVE tokens that have not graduated."""

    def __init__(
        self, repo: Repository, status: BondingCurveStatus, clock: Clock = utcnow,
    ) -> None:
        self._repo = repo
        self._status = status
        self._clock = clock

    async def check(self) -> list[str]:
        """Returns the ids of tokens that graduated during this check."""
        candidates = await self._repo.get_graduation_candidates()
        graduated: list[str] = []

        for token in candidates:
            if not token.token_mint:
                continue
            try:
                status = await self._status.check_graduation(token.token_mint)
            except Exception as exc:
                log.warning("Graduation check failed for %s: %s", token.token_mint, exc)
                continue
            if not status.is_graduated:
                continue

            if await self._repo.mark_token_graduated(
                token.id, status.graduated_at or self._clock(),
            ):
                await self._repo.increment_platform_stats(graduated_tokens=1)
                graduated.append(token.id)
                log.info("Token graduated: %s", token.token_mint)

        log.info("Graduation check complete: %d of %d graduated", len(graduated), len(candidates))
        return graduated
