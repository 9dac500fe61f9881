"""GitHub adapter package."""

from __future__ import annotations

from .client import (
    AuthError,
    GitHubAPIError,
    GitHubClient,
    NotFoundError,
    PatternExistsError,
    UpstreamError,
    raise_for_github_status,
)
from .rate_limit import GitHubRateLimitSource
from .reader import GitHubProtectionReader, GitHubRepositoryLister
from .schema import ProtectionPayload, ProtectionRequest
from .translator import (
    parse_protection,
    parse_rate_state,
    parse_rulesets,
    parse_target,
    to_apply_payload,
)
from .writer import GitHubProtectionApplier

__all__ = [
    "AuthError",
    "GitHubAPIError",
    "GitHubClient",
    "GitHubProtectionApplier",
    "GitHubProtectionReader",
    "GitHubRateLimitSource",
    "GitHubRepositoryLister",
    "NotFoundError",
    "PatternExistsError",
    "ProtectionPayload",
    "ProtectionRequest",
    "UpstreamError",
    "parse_protection",
    "parse_rate_state",
    "parse_rulesets",
    "parse_target",
    "to_apply_payload",
]
