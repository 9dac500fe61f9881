"""Error taxonomy for a protection sync run.

Fatal errors abort the run before or during the apply phase. The remaining
errors are recovered per target and end up in that target's outcome.
"""

from __future__ import annotations


class SyncError(RuntimeError):
    """Base class for sync errors."""


class FatalSyncError(SyncError):
    """Base class for errors that terminate the whole run."""


class ConfigFetchError(FatalSyncError):
    """Raised when the source protection or rulesets cannot be read."""


class TargetListError(FatalSyncError):
    """Raised when the owner's repositories cannot be listed."""


class RateBudgetError(FatalSyncError):
    """Raised when the rate-limit accounting query fails."""


class TargetValidationError(SyncError):
    """Raised when a target repository lacks identifying fields."""

    def __init__(self, missing: tuple[str, ...]) -> None:
        super().__init__(f"missing {', '.join(missing)}")
        self.missing = missing


class ApplyError(SyncError):
    """Raised when applying protection to a single target fails."""

    def __init__(self, reason: str, *, status_code: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class BenignConflict(SyncError):
    """Raised when an equivalent configuration already exists on the target."""


__all__ = [
    "ApplyError",
    "BenignConflict",
    "ConfigFetchError",
    "FatalSyncError",
    "RateBudgetError",
    "SyncError",
    "TargetListError",
    "TargetValidationError",
]
