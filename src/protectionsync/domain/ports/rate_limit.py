"""Port for the upstream rate-limit accounting."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from protectionsync.domain.model import RateState


@runtime_checkable
class RateLimitSource(Protocol):
    """Reports the authoritative remaining budget; raises ``RateBudgetError`` on failure."""

    async def current(self) -> RateState:
        ...


__all__ = ["RateLimitSource"]
