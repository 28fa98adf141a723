"""Single-flight guard for recurring work."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

log = logging.getLogger(__name__)


class SingleFlight:
    """In-process test-and-set flag: at most one holder at a time.

    The check and the set happen without an intervening await, so on one
    event loop acquisition is atomic. This only covers a single process; a
    horizontally scaled deployment needs an external lease with a TTL.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def try_acquire(self) -> bool:
        if self._held:
            return False
        self._held = True
        return True

    def release(self) -> None:
        self._held = False

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[bool]:
        """Yields True if acquired; the caller skips its work on False."""
        acquired = self.try_acquire()
        if not acquired:
            log.info("%s already running, skipping", self._name)
        try:
            yield acquired
        finally:
            if acquired:
                self.release()
