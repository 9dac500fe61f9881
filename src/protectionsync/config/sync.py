"""Synchronization defaults for the protection sync engine."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CONCURRENCY_DIVISOR = 10
DEFAULT_RESET_MARGIN_SECONDS = 1.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    concurrency_divisor: int = DEFAULT_CONCURRENCY_DIVISOR
    reset_margin_seconds: float = DEFAULT_RESET_MARGIN_SECONDS
    excluded_repositories: tuple[str, ...] = ()


def get_sync_config(*, excluded_repositories: tuple[str, ...] = ()) -> SyncConfig:
    return SyncConfig(excluded_repositories=excluded_repositories)
