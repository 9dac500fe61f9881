"""GitHub configuration values."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from .env import optional_env_var, require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_TIMEOUT_SECONDS = 30.0
USER_AGENT = "protectionsync"


def _should_cache_payload(payload: object) -> bool:
    # /rate_limit must always be read from upstream
    if isinstance(payload, Mapping):
        return "resources" not in payload and "rate" not in payload
    return True


@dataclass(frozen=True, slots=True)
class GitHubConfig:
    """Credentials and transport settings for the GitHub REST API."""

    token: str = field(repr=False)
    resilience: ResilienceConfig


def default_github_resilience(api_url: str = DEFAULT_GITHUB_API_URL) -> ResilienceConfig:
    return ResilienceConfig(
        name="github",
        base_url=api_url.rstrip("/"),
        timeout_seconds=GITHUB_TIMEOUT_SECONDS,
        retry=RetryPolicy(total=4),
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        cache=CacheConfig(backend="memory", should_cache=_should_cache_payload),
        default_headers={
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": USER_AGENT,
        },
    )


def get_github_config(
    *,
    token: str | None = None,
    api_url: str | None = None,
    resilience: ResilienceConfig | None = None,
) -> GitHubConfig:
    """Build the GitHub configuration, falling back to GITHUB_TOKEN / GITHUB_API_URL."""

    if token is None or not token.strip():
        token = require_env_vars(("GITHUB_TOKEN",))["GITHUB_TOKEN"]
    effective_url = api_url or optional_env_var("GITHUB_API_URL") or DEFAULT_GITHUB_API_URL
    return GitHubConfig(
        token=token.strip(),
        resilience=resilience or default_github_resilience(effective_url),
    )
