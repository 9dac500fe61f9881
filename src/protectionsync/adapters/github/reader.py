"""GitHub-backed implementations of the read ports."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .client import NotFoundError
from .translator import parse_protection, parse_rulesets, parse_target

if TYPE_CHECKING:
    from protectionsync.domain.model import ProtectionConfig, RulesetCollection, TargetRepository
    from protectionsync.domain.ports.fetching import ProtectionReader, RepositoryLister

    from .client import GitHubClient

log = getLogger(__name__)


@dataclass(slots=True)
class GitHubProtectionReader:
    """Reads the default-branch protection and rulesets of the source repository.

    Raises ``NotFoundError``, ``AuthError`` or ``UpstreamError`` as soon as any of
    the three requests fails; there is no partial result.
    """

    client: GitHubClient

    async def fetch(self, owner: str, repo: str) -> tuple[ProtectionConfig, RulesetCollection]:
        log.info("Fetching branch protection rules from %s/%s", owner, repo)
        repository = await self.client.get_repository(owner, repo)
        branch = repository.default_branch
        if not branch:
            raise NotFoundError(f"{owner}/{repo} has no default branch", status_code=404)

        protection = await self.client.get_branch_protection(owner, repo, branch)
        rulesets = await self.client.list_rulesets(owner, repo)
        config = parse_protection(protection)
        collection = parse_rulesets(rulesets)
        log.info(
            "Read protection of %s/%s@%s with %s rulesets",
            owner,
            repo,
            branch,
            len(collection),
        )
        return config, collection


@dataclass(slots=True)
class GitHubRepositoryLister:
    """Lists all repositories of an organization or user as sync targets."""

    client: GitHubClient

    async def list_targets(self, owner: str) -> list[TargetRepository]:
        repositories = await self.client.list_repositories(owner)
        targets = [parse_target(repository) for repository in repositories]
        log.info("Found %s repositories for %s", len(targets), owner)
        return targets


if TYPE_CHECKING:
    _reader_check: type[ProtectionReader] = GitHubProtectionReader
    _lister_check: type[RepositoryLister] = GitHubRepositoryLister
