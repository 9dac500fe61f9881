"""Apply one protection configuration to many target repositories."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, Any

from protectionsync.config.sync import DEFAULT_CONCURRENCY_DIVISOR
from protectionsync.domain.errors import (
    ApplyError,
    BenignConflict,
    FatalSyncError,
    TargetValidationError,
)
from protectionsync.domain.model import ApplyOutcome, SyncReport

if TYPE_CHECKING:
    from collections.abc import Sequence

    from protectionsync.domain.model import ProtectionConfig, TargetRepository
    from protectionsync.domain.ports.applying import ProtectionApplier, ProtectionTranslator
    from protectionsync.domain.rate_governor import RateGovernor

log = getLogger(__name__)


def concurrency_limit(target_count: int, divisor: int = DEFAULT_CONCURRENCY_DIVISOR) -> int:
    """One slot per ``divisor`` targets, never fewer than one."""

    return max(1, target_count // divisor)


class SyncEngine[PayloadT]:
    """Runs one apply task per target under a fixed-size admission pool.

    A failing target only affects its own outcome. ``RateBudgetError`` is the
    exception: it cancels the remaining tasks and propagates.
    """

    def __init__(
        self,
        *,
        governor: RateGovernor,
        applier: ProtectionApplier[PayloadT],
        translate: ProtectionTranslator[PayloadT],
        concurrency_divisor: int = DEFAULT_CONCURRENCY_DIVISOR,
    ) -> None:
        if concurrency_divisor < 1:
            raise ValueError("concurrency_divisor must be at least 1")
        self._governor = governor
        self._applier = applier
        self._translate = translate
        self._divisor = concurrency_divisor

    async def run(
        self,
        owner: str,
        config: ProtectionConfig,
        targets: Sequence[TargetRepository],
        *,
        cancel: asyncio.Event | None = None,
    ) -> SyncReport:
        limit = concurrency_limit(len(targets), self._divisor)
        semaphore = asyncio.Semaphore(limit)
        outcomes: dict[int, ApplyOutcome] = {}
        log.info(
            "Syncing branch protection to %s repositories of %s (concurrency=%s)",
            len(targets),
            owner,
            limit,
        )

        async def worker(index: int, target: TargetRepository) -> None:
            async with semaphore:
                outcomes[index] = await self._sync_target(config, target)

        tasks = [
            asyncio.create_task(worker(index, target), name=f"sync:{target.full_name}")
            for index, target in enumerate(targets)
        ]
        try:
            await self._wait(tasks, cancel)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        return SyncReport(
            outcomes=tuple(
                outcomes.get(index) or ApplyOutcome.cancelled(target)
                for index, target in enumerate(targets)
            ),
            concurrency=limit,
        )

    async def _wait(self, tasks: list[asyncio.Task[None]], cancel: asyncio.Event | None) -> None:
        if cancel is not None and cancel.is_set():
            log.warning("Cancellation requested before any target was admitted")
            return
        pending: set[asyncio.Future[Any]] = set(tasks)
        cancel_waiter = asyncio.ensure_future(cancel.wait()) if cancel is not None else None
        try:
            while pending:
                waiting = pending | {cancel_waiter} if cancel_waiter is not None else pending
                done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)
                if cancel_waiter is not None and cancel_waiter in done:
                    log.warning("Cancellation requested; %s targets not finished", len(pending))
                    return
                for task in done:
                    pending.discard(task)
                    task.result()
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

    async def _sync_target(self, config: ProtectionConfig, target: TargetRepository) -> ApplyOutcome:
        name = target.full_name
        log.info("Starting branch protection sync for %s", name)
        try:
            target.validate()
        except TargetValidationError as exc:
            log.warning("Skipping %s: %s", name, exc)
            return ApplyOutcome.skipped_invalid(target, str(exc))

        await self._governor.admit()
        payload = self._translate(config)
        try:
            await self._applier.apply(target, payload)
        except BenignConflict as exc:
            log.info("Branch protection already present on %s: %s", name, exc)
            return ApplyOutcome.applied(target, reason=str(exc))
        except ApplyError as exc:
            log.error("Failed to apply branch protection to %s: %s", name, exc.reason)
            return ApplyOutcome.failed(target, exc.reason)
        except FatalSyncError:
            raise
        except Exception as exc:
            log.exception("Unexpected error applying branch protection to %s", name)
            return ApplyOutcome.failed(target, f"{type(exc).__name__}: {exc}")

        log.info("Branch protection applied to %s (%s)", name, target.default_branch)
        return ApplyOutcome.applied(target)


__all__ = ["SyncEngine", "concurrency_limit"]
