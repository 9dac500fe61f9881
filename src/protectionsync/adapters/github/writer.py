"""GitHub-backed implementation of the apply port."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from protectionsync.domain.errors import ApplyError, BenignConflict

from .client import GitHubAPIError, PatternExistsError

if TYPE_CHECKING:
    from protectionsync.domain.model import TargetRepository
    from protectionsync.domain.ports.applying import ProtectionApplier

    from .client import GitHubClient
    from .schema import ProtectionRequest


@dataclass(slots=True)
class GitHubProtectionApplier:
    """Overwrites the default-branch protection of one target."""

    client: GitHubClient

    async def apply(self, target: TargetRepository, payload: ProtectionRequest) -> None:
        owner, name, branch = target.owner, target.name, target.default_branch
        if not (owner and name and branch):
            raise ApplyError(f"incomplete target {target.full_name}")
        try:
            await self.client.update_branch_protection(owner, name, branch, payload)
        except PatternExistsError as exc:
            raise BenignConflict(exc.message) from exc
        except GitHubAPIError as exc:
            raise ApplyError(exc.message, status_code=exc.status_code) from exc
        except httpx.HTTPError as exc:
            raise ApplyError(f"request failed: {exc}") from exc


if TYPE_CHECKING:
    _applier_check: type[ProtectionApplier[ProtectionRequest]] = GitHubProtectionApplier
