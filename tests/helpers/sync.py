"""Fakes for the sync engine and rate governor ports."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from protectionsync.domain.errors import RateBudgetError
from protectionsync.domain.model import ProtectionConfig, RateState, TargetRepository

if TYPE_CHECKING:
    from collections.abc import Iterable

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def make_target(name: str | None = "repo", *, branch: str | None = "main") -> TargetRepository:
    return TargetRepository(owner="octo-org", name=name, default_branch=branch)


def make_targets(count: int) -> list[TargetRepository]:
    return [make_target(f"repo-{index:02d}") for index in range(count)]


def plenty(remaining: int = 5000, *, reset_at: datetime | None = None) -> RateState:
    return RateState(limit=5000, remaining=remaining, reset_at=reset_at or NOW + timedelta(hours=1))


class FakeRateSource:
    """Replays the given states, repeating the last one once exhausted."""

    def __init__(self, states: Iterable[RateState] = (), *, fail: bool = False) -> None:
        self._states = list(states) or [plenty()]
        self._fail = fail
        self.calls = 0

    async def current(self) -> RateState:
        self.calls += 1
        if self._fail:
            raise RateBudgetError("could not read the rate limit: boom")
        index = min(self.calls - 1, len(self._states) - 1)
        return self._states[index]


@dataclass
class RecordingApplier:
    """Records applied targets; raises the configured error for a target name."""

    errors: dict[str, Exception] = field(default_factory=dict)
    block_on: str | None = None
    applied: list[tuple[str, object]] = field(default_factory=list)
    events: list[tuple[str, object]] | None = None
    started: asyncio.Event = field(default_factory=asyncio.Event)
    in_flight: int = 0
    max_in_flight: int = 0

    async def apply(self, target: TargetRepository, payload: object) -> None:
        if self.events is not None:
            self.events.append(("apply", target.full_name))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if target.name == self.block_on:
                self.started.set()
                await asyncio.Event().wait()
            await asyncio.sleep(0)
            error = self.errors.get(target.name or "")
            if error is not None:
                raise error
            self.applied.append((target.full_name, payload))
        finally:
            self.in_flight -= 1


def identity_translate(config: ProtectionConfig) -> ProtectionConfig:
    return config


class FakeSleep:
    def __init__(self, events: list[tuple[str, object]] | None = None) -> None:
        self.delays: list[float] = []
        self._events = events

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self._events is not None:
            self._events.append(("sleep", delay))
