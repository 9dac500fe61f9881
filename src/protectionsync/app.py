"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
import contextlib
import signal
from dataclasses import replace
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from protectionsync.adapters.github import (
    GitHubAPIError,
    GitHubClient,
    GitHubProtectionApplier,
    GitHubProtectionReader,
    GitHubRateLimitSource,
    GitHubRepositoryLister,
    to_apply_payload,
)
from protectionsync.config.sync import SyncConfig
from protectionsync.domain.errors import ConfigFetchError, TargetListError
from protectionsync.domain.rate_governor import RateGovernor
from protectionsync.domain.sync_engine import SyncEngine

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from protectionsync.adapters.http_resilience import ResilientClient
    from protectionsync.config.github import GitHubConfig
    from protectionsync.config.http_resilience import ResilienceConfig
    from protectionsync.domain.model import SyncReport

log = getLogger(__name__)

_FETCH_ERRORS = (GitHubAPIError, httpx.HTTPError, ValidationError)


def sync_branch_protection(
    *,
    owner: str,
    source_repo: str,
    github: GitHubConfig,
    sync: SyncConfig | None = None,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
) -> SyncReport:
    """Copy the protection of ``source_repo`` onto every repository of ``owner``.

    SIGINT and SIGTERM cancel the run cooperatively: pending targets are reported
    as cancelled instead of raising.
    """

    async def main() -> SyncReport:
        cancel = asyncio.Event()
        with _cancel_on_signals(cancel):
            return await sync_branch_protection_async(
                owner=owner,
                source_repo=source_repo,
                github=github,
                sync=sync,
                client_factory=client_factory,
                cancel=cancel,
            )

    return asyncio.run(main())


async def sync_branch_protection_async(
    *,
    owner: str,
    source_repo: str,
    github: GitHubConfig,
    sync: SyncConfig | None = None,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    cancel: asyncio.Event | None = None,
) -> SyncReport:
    settings = sync or SyncConfig()
    log.info("Starting branch protection sync: owner=%s, source=%s", owner, source_repo)

    async with GitHubClient(config=github, client_factory=client_factory) as client:
        try:
            config, rulesets = await GitHubProtectionReader(client).fetch(owner, source_repo)
        except _FETCH_ERRORS as exc:
            raise ConfigFetchError(
                f"Error fetching branch protection of {owner}/{source_repo}: {exc}"
            ) from exc
        for ruleset in rulesets:
            log.info(
                "Source ruleset %s (id=%s, target=%s, enforcement=%s)",
                ruleset.name,
                ruleset.id,
                ruleset.target,
                ruleset.enforcement,
            )

        try:
            targets = await GitHubRepositoryLister(client).list_targets(owner)
        except _FETCH_ERRORS as exc:
            raise TargetListError(f"Error fetching repositories of {owner}: {exc}") from exc

        excluded = set(settings.excluded_repositories)
        if excluded:
            targets = [target for target in targets if target.name not in excluded]
            log.info("Excluding %s; %s targets remain", ", ".join(sorted(excluded)), len(targets))

        engine = SyncEngine(
            governor=RateGovernor(
                GitHubRateLimitSource(client),
                margin=timedelta(seconds=settings.reset_margin_seconds),
            ),
            applier=GitHubProtectionApplier(client),
            translate=to_apply_payload,
            concurrency_divisor=settings.concurrency_divisor,
        )
        report = await engine.run(owner, config, targets, cancel=cancel)

    report = replace(report, rulesets=rulesets)
    log.info(
        "Finished branch protection sync: applied=%s, skipped=%s, failed=%s, cancelled=%s",
        len(report.applied),
        len(report.skipped),
        len(report.failed),
        len(report.cancelled),
    )
    for outcome in report.failed:
        log.warning("Failed: %s (%s)", outcome.target.full_name, outcome.reason)
    return report


@contextlib.contextmanager
def _cancel_on_signals(cancel: asyncio.Event) -> Iterator[None]:
    loop = asyncio.get_running_loop()
    installed: dict[signal.Signals, signal.Handlers | Callable[..., object] | int | None] = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous = signal.getsignal(signum)
        try:
            loop.add_signal_handler(signum, _request_cancel, cancel, signum)
        except (NotImplementedError, RuntimeError, ValueError):
            continue
        installed[signum] = previous
    try:
        yield
    finally:
        for signum, previous in installed.items():
            loop.remove_signal_handler(signum)
            # remove_signal_handler resets to the default, not to the caller's handler
            if previous is not None:
                signal.signal(signum, previous)


def _request_cancel(cancel: asyncio.Event, signum: signal.Signals) -> None:
    log.warning("Received %s; cancelling the sync", signum.name)
    cancel.set()
