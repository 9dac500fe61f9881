from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from protectionsync.adapters.github import GitHubClient, GitHubRateLimitSource
from protectionsync.domain.errors import RateBudgetError
from protectionsync.domain.model import RateState
from tests.helpers.github import GitHubStub, add_rate_limit, make_github_config


def _current(stub: GitHubStub) -> RateState:
    async def scenario() -> RateState:
        async with GitHubClient(
            config=make_github_config(), client_factory=stub.client_factory
        ) as client:
            return await GitHubRateLimitSource(client).current()

    return asyncio.run(scenario())


def test_rate_limit_source_reads_core_bucket() -> None:
    stub = GitHubStub()
    add_rate_limit(stub)

    state = _current(stub)

    assert state == RateState(
        limit=5000, remaining=4999, reset_at=datetime(2026, 1, 1, tzinfo=UTC)
    )


def test_rate_limit_source_wraps_api_errors() -> None:
    stub = GitHubStub()
    stub.add("GET", "/rate_limit", status=401, json_body={"message": "Bad credentials"})

    with pytest.raises(RateBudgetError, match="bad credentials"):
        _current(stub)


def test_rate_limit_source_wraps_malformed_payloads() -> None:
    stub = GitHubStub()
    stub.add("GET", "/rate_limit", json_body={"resources": {}})

    with pytest.raises(RateBudgetError):
        _current(stub)
