"""Ports for shaping and submitting protection payloads."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from protectionsync.domain.model import ProtectionConfig, TargetRepository


class ProtectionTranslator[PayloadT](Protocol):
    """Pure mapping from the read configuration to a write payload."""

    def __call__(self, config: ProtectionConfig, /) -> PayloadT:
        ...


class ProtectionApplier[PayloadT](Protocol):
    """Overwrites the protection of a target's default branch.

    Implementations raise ``BenignConflict`` when an equivalent configuration
    already exists and ``ApplyError`` for any other failure.
    """

    async def apply(self, target: TargetRepository, payload: PayloadT) -> None:
        ...


__all__ = ["ProtectionApplier", "ProtectionTranslator"]
