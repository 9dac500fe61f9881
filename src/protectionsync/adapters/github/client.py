"""Async client for the subset of the GitHub REST API used by the sync."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from protectionsync.adapters.http_resilience import ResilientClient

from .schema import (
    ErrorResponse,
    ProtectionPayload,
    RateLimitPayload,
    RepositoryPayload,
    RulesetPayload,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from protectionsync.config.github import GitHubConfig
    from protectionsync.config.http_resilience import ResilienceConfig

    from .schema import ProtectionRequest

log = getLogger(__name__)

DEFAULT_PER_PAGE = 100
MAX_PAGES = 1000


class GitHubAPIError(RuntimeError):
    """Raised when the GitHub API answers with a non-success status."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(GitHubAPIError):
    """Repository, branch or branch protection does not exist."""


class AuthError(GitHubAPIError):
    """The credential was rejected or lacks permission."""


class UpstreamError(GitHubAPIError):
    """Any other unexpected response."""


class PatternExistsError(GitHubAPIError):
    """An identically named branch pattern already exists."""


_STATUS_ERRORS: dict[int, tuple[type[GitHubAPIError], str]] = {
    303: (PatternExistsError, "same branch name pattern already exists"),
    401: (AuthError, "bad credentials"),
    403: (AuthError, "forbidden"),
    404: (NotFoundError, "resource not found"),
    422: (UpstreamError, "validation failed, or the endpoint has been spammed"),
}


def raise_for_github_status(response: httpx.Response) -> None:
    """Map a GitHub response status onto the client error taxonomy."""

    status = response.status_code
    if 200 <= status < 300:
        return
    error_type, message = _STATUS_ERRORS.get(status, (UpstreamError, f"unexpected status {status}"))
    log.debug(
        "GitHub %s %s -> %s: %s",
        response.request.method,
        response.request.url,
        status,
        _upstream_message(response),
    )
    raise error_type(message, status_code=status)


def _upstream_message(response: httpx.Response) -> str | None:
    try:
        return ErrorResponse.model_validate(response.json()).message
    except ValueError:
        return None


async def _log_rate_headers(response: httpx.Response) -> None:
    remaining = response.headers.get("X-RateLimit-Remaining")
    if remaining is not None:
        log.debug(
            "%s %s: rate limit remaining %s", response.request.method, response.url.path, remaining
        )


def _segment(value: str) -> str:
    return quote(value, safe="")


class GitHubClient:
    """Owns one resilient HTTP session for the duration of a sync run.

    Example:
        >>> async with GitHubClient(config=get_github_config(token="ghp_...")) as client:
        ...     repository = await client.get_repository("octo-org", "template")
    """

    def __init__(
        self,
        *,
        config: GitHubConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        resilience = config.resilience
        headers = dict(resilience.default_headers or {})
        headers["Authorization"] = f"Bearer {config.token}"
        self._resilience = replace(
            resilience,
            default_headers=headers,
            response_hooks=(*resilience.response_hooks, _log_rate_headers),
        )
        self._client_factory = client_factory or ResilientClient
        self._http: ResilientClient | None = None

    async def __aenter__(self) -> GitHubClient:
        self._http = self._client_factory(self._resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    @property
    def http(self) -> ResilientClient:
        if self._http is None:
            raise RuntimeError("GitHubClient must be used as an async context manager")
        return self._http

    # --- repositories ---

    async def get_repository(self, owner: str, repo: str) -> RepositoryPayload:
        response = await self.http.get(f"/repos/{_segment(owner)}/{_segment(repo)}")
        raise_for_github_status(response)
        return RepositoryPayload.model_validate(response.json())

    async def list_repositories(self, owner: str) -> list[RepositoryPayload]:
        """List every repository of an organization, or of a user when ``owner`` is not one."""

        try:
            items = await self._paginate(f"/orgs/{_segment(owner)}/repos", params={"type": "all"})
        except NotFoundError:
            log.info("%s is not an organization; listing user repositories", owner)
            items = await self._paginate(f"/users/{_segment(owner)}/repos", params={"type": "owner"})
        return [RepositoryPayload.model_validate(item) for item in items]

    # --- protection ---

    async def get_branch_protection(self, owner: str, repo: str, branch: str) -> ProtectionPayload:
        response = await self.http.get(self._protection_path(owner, repo, branch))
        raise_for_github_status(response)
        return ProtectionPayload.model_validate(response.json())

    async def update_branch_protection(
        self,
        owner: str,
        repo: str,
        branch: str,
        payload: ProtectionRequest,
    ) -> None:
        response = await self.http.put(
            self._protection_path(owner, repo, branch),
            json=payload.to_body(),
        )
        raise_for_github_status(response)

    async def list_rulesets(self, owner: str, repo: str) -> list[RulesetPayload]:
        items = await self._paginate(f"/repos/{_segment(owner)}/{_segment(repo)}/rulesets")
        return [RulesetPayload.model_validate(item) for item in items]

    # --- accounting ---

    async def get_rate_limit(self) -> RateLimitPayload:
        response = await self.http.get("/rate_limit")
        raise_for_github_status(response)
        return RateLimitPayload.model_validate(response.json())

    # --- helpers ---

    @staticmethod
    def _protection_path(owner: str, repo: str, branch: str) -> str:
        return f"/repos/{_segment(owner)}/{_segment(repo)}/branches/{_segment(branch)}/protection"

    async def _paginate(
        self,
        path: str,
        params: dict[str, str] | None = None,
    ) -> list[object]:
        """Fetch all pages of a list endpoint by following ``Link: rel="next"``."""

        query: dict[str, str] | None = {**(params or {}), "per_page": str(DEFAULT_PER_PAGE)}
        url: str = path
        items: list[object] = []
        for _ in range(MAX_PAGES):
            response = await self.http.get(url, params=query)
            raise_for_github_status(response)
            page = response.json()
            if not isinstance(page, list):
                raise UpstreamError(f"expected a list from {path}", status_code=response.status_code)
            items.extend(page)

            next_url = response.links.get("next", {}).get("url")
            if not next_url:
                return items
            base_url = self._resilience.base_url
            if base_url and not next_url.startswith(base_url.rstrip("/") + "/"):
                log.warning("Ignoring pagination link outside %s: %.100s", base_url, next_url)
                return items
            # the next link already carries every query parameter
            url, query = next_url, None
        log.warning("Stopped paginating %s after %s pages", path, MAX_PAGES)
        return items
