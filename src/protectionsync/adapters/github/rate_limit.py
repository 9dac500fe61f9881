"""GitHub-backed implementation of the rate-limit accounting port."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from protectionsync.domain.errors import RateBudgetError

from .client import GitHubAPIError
from .translator import parse_rate_state

if TYPE_CHECKING:
    from protectionsync.domain.model import RateState
    from protectionsync.domain.ports.rate_limit import RateLimitSource

    from .client import GitHubClient


@dataclass(slots=True)
class GitHubRateLimitSource:
    """Reads the ``core`` bucket of ``GET /rate_limit``."""

    client: GitHubClient

    async def current(self) -> RateState:
        try:
            payload = await self.client.get_rate_limit()
        except (GitHubAPIError, httpx.HTTPError, ValidationError) as exc:
            raise RateBudgetError(f"could not read the rate limit: {exc}") from exc
        return parse_rate_state(payload)


if TYPE_CHECKING:
    _source_check: type[RateLimitSource] = GitHubRateLimitSource
