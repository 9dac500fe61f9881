from __future__ import annotations

import asyncio
import json
import signal
from typing import TYPE_CHECKING

import pytest

from protectionsync.app import sync_branch_protection, sync_branch_protection_async
from protectionsync.config import SyncConfig
from protectionsync.domain.errors import ConfigFetchError, TargetListError
from protectionsync.domain.model import OutcomeStatus, SyncReport
from tests.helpers.github import (
    GitHubStub,
    add_paginated_repositories,
    add_rate_limit,
    add_source_repository,
    make_github_config,
)

if TYPE_CHECKING:
    from types import FrameType

TARGET_PATHS = {
    "template": "/repos/octo-org/template/branches/main/protection",
    "api": "/repos/octo-org/api/branches/develop/protection",
    "docs": "/repos/octo-org/docs/branches/main/protection",
}


@pytest.fixture
def stub() -> GitHubStub:
    stub = GitHubStub()
    add_source_repository(stub)
    add_paginated_repositories(stub, "/orgs/octo-org/repos")
    add_rate_limit(stub)
    for path in TARGET_PATHS.values():
        stub.add("PUT", path, json_body={})
    return stub


def _sync(stub: GitHubStub, sync: SyncConfig | None = None) -> SyncReport:
    return sync_branch_protection(
        owner="octo-org",
        source_repo="template",
        github=make_github_config(),
        sync=sync,
        client_factory=stub.client_factory,
    )


def test_sync_applies_source_protection_to_every_valid_repository(stub: GitHubStub) -> None:
    report = _sync(stub)

    assert [outcome.target.name for outcome in report.outcomes] == [
        "template",
        "api",
        "empty",
        "docs",
    ]
    assert [outcome.status for outcome in report.outcomes] == [
        OutcomeStatus.APPLIED,
        OutcomeStatus.APPLIED,
        OutcomeStatus.SKIPPED_INVALID,
        OutcomeStatus.APPLIED,
    ]
    assert report.concurrency == 1
    assert [ruleset.name for ruleset in report.rulesets] == ["main-guard", "release-tags"]

    bodies = [
        json.loads(request.content)
        for path in TARGET_PATHS.values()
        for request in stub.requests_for("PUT", path)
    ]
    assert len(bodies) == 3
    assert all(body == bodies[0] for body in bodies)
    assert bodies[0]["enforce_admins"] is True
    assert bodies[0]["required_pull_request_reviews"]["required_approving_review_count"] == 2
    assert len(stub.requests_for("GET", "/rate_limit")) == 3


def test_sync_checks_the_budget_before_each_write(stub: GitHubStub) -> None:
    _sync(stub)

    writes = [
        (request.method, request.url.path)
        for request in stub.requests
        if request.url.path == "/rate_limit" or request.method == "PUT"
    ]
    assert writes == [
        ("GET", "/rate_limit"),
        ("PUT", TARGET_PATHS["template"]),
        ("GET", "/rate_limit"),
        ("PUT", TARGET_PATHS["api"]),
        ("GET", "/rate_limit"),
        ("PUT", TARGET_PATHS["docs"]),
    ]


def test_sync_honours_excluded_repositories(stub: GitHubStub) -> None:
    report = _sync(stub, SyncConfig(excluded_repositories=("api", "docs")))

    assert [outcome.target.name for outcome in report.outcomes] == ["template", "empty"]
    assert stub.requests_for("PUT", TARGET_PATHS["api"]) == []


def test_sync_records_per_target_failures(stub: GitHubStub) -> None:
    stub.add("PUT", TARGET_PATHS["api"], status=404, json_body={"message": "Not Found"})
    stub.add("PUT", TARGET_PATHS["docs"], status=303)

    report = _sync(stub)

    assert [outcome.target.name for outcome in report.failed] == ["api"]
    assert report.failed[0].reason == "resource not found"
    assert [outcome.target.name for outcome in report.applied] == ["template", "docs"]
    assert report.applied[1].reason == "same branch name pattern already exists"


def test_sync_fails_fast_when_source_protection_is_unreadable(stub: GitHubStub) -> None:
    stub.add(
        "GET",
        "/repos/octo-org/template/branches/main/protection",
        status=403,
        json_body={"message": "Resource not accessible"},
    )

    with pytest.raises(ConfigFetchError, match="octo-org/template"):
        _sync(stub)

    assert all(request.method == "GET" for request in stub.requests)


def test_sync_fails_fast_when_targets_cannot_be_listed(stub: GitHubStub) -> None:
    stub.add("GET", "/orgs/octo-org/repos", status=401, json_body={"message": "Bad credentials"})

    with pytest.raises(TargetListError, match="bad credentials"):
        _sync(stub)


def test_async_sync_respects_a_cancelled_run(stub: GitHubStub) -> None:
    async def scenario() -> SyncReport:
        cancel = asyncio.Event()
        cancel.set()
        return await sync_branch_protection_async(
            owner="octo-org",
            source_repo="template",
            github=make_github_config(),
            client_factory=stub.client_factory,
            cancel=cancel,
        )

    report = asyncio.run(scenario())

    assert len(report.cancelled) == 4
    assert not [request for request in stub.requests if request.method == "PUT"]


def test_sync_restores_the_callers_sigint_handler(stub: GitHubStub) -> None:
    def caller_handler(_signum: int, _frame: FrameType | None) -> None:
        return None

    previous = signal.signal(signal.SIGINT, caller_handler)
    try:
        _sync(stub)

        assert signal.getsignal(signal.SIGINT) is caller_handler
    finally:
        signal.signal(signal.SIGINT, previous)
