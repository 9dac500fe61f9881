"""Ports for reading the source configuration and the target list."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from protectionsync.domain.model import ProtectionConfig, RulesetCollection, TargetRepository


@runtime_checkable
class ProtectionReader(Protocol):
    """Reads the canonical protection settings of one repository's default branch."""

    async def fetch(self, owner: str, repo: str) -> tuple[ProtectionConfig, RulesetCollection]:
        ...


@runtime_checkable
class RepositoryLister(Protocol):
    """Returns every repository owned by an organization or user."""

    async def list_targets(self, owner: str) -> list[TargetRepository]:
        ...


__all__ = ["ProtectionReader", "RepositoryLister"]
