"""Admission control against the shared upstream request budget."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from protectionsync.config.sync import DEFAULT_RESET_MARGIN_SECONDS

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from protectionsync.domain.model import RateState
    from protectionsync.domain.ports.rate_limit import RateLimitSource

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RateGovernor:
    """Serializes the "is there budget" decision for all apply tasks of a run.

    Every call to :meth:`admit` queries the upstream accounting endpoint under a
    lock. Within one reset window the governor never trusts a remaining count
    higher than what it has already handed out, so admissions whose requests
    have not reached upstream yet are not counted twice.
    """

    def __init__(
        self,
        source: RateLimitSource,
        *,
        margin: timedelta = timedelta(seconds=DEFAULT_RESET_MARGIN_SECONDS),
        clock: Callable[[], datetime] = _utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._source = source
        self._margin = margin
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._state: RateState | None = None

    @property
    def state(self) -> RateState | None:
        return self._state

    async def admit(self) -> None:
        """Return once one request may be issued, waiting for a reset if needed.

        Raises:
            RateBudgetError: when the accounting query fails.
        """

        async with self._lock:
            observed = await self._source.current()
            state = self._reconcile(observed)
            if state.exhausted:
                await self._wait_for_reset(state)
                self._state = None
                return
            self._state = state.consume()

    def _reconcile(self, observed: RateState) -> RateState:
        local = self._state
        if local is None or local.reset_at != observed.reset_at:
            return observed
        if observed.remaining <= local.remaining:
            return observed
        return local

    async def _wait_for_reset(self, state: RateState) -> None:
        delay = max((state.reset_at - self._clock()).total_seconds(), 0.0)
        delay += self._margin.total_seconds()
        log.warning(
            "Rate limit exhausted (%s/%s). Waiting until %s (%.1fs)",
            state.remaining,
            state.limit,
            state.reset_at.isoformat(),
            delay,
        )
        await self._sleep(delay)


__all__ = ["RateGovernor"]
