"""Domain values for branch protection sync.

Everything here is frozen: a fetched configuration is shared read-only by all
apply tasks of a run.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING

from .errors import TargetValidationError

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True)
class StatusCheck:
    context: str
    app_id: int | None = None


@dataclass(frozen=True, slots=True)
class StatusChecks:
    strict: bool = False
    checks: tuple[StatusCheck, ...] = ()


@dataclass(frozen=True, slots=True)
class Principals:
    """Users (logins), teams (slugs) and apps (slugs) named by a restriction."""

    users: tuple[str, ...] = ()
    teams: tuple[str, ...] = ()
    apps: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ReviewRequirements:
    dismiss_stale_reviews: bool = False
    require_code_owner_reviews: bool = False
    required_approving_review_count: int = 0
    require_last_push_approval: bool = False
    dismissal_restrictions: Principals | None = None
    bypass_pull_request_allowances: Principals | None = None


@dataclass(frozen=True, slots=True)
class ProtectionConfig:
    """Canonical branch protection settings read from the source repository."""

    required_status_checks: StatusChecks | None = None
    required_pull_request_reviews: ReviewRequirements | None = None
    enforce_admins: bool = False
    required_linear_history: bool = False
    allow_force_pushes: bool = False
    allow_deletions: bool = False
    required_conversation_resolution: bool = False
    block_creations: bool = False
    lock_branch: bool = False
    allow_fork_syncing: bool = False
    restrictions: Principals | None = None


@dataclass(frozen=True, slots=True)
class Ruleset:
    id: int
    name: str
    target: str | None = None
    enforcement: str | None = None


RulesetCollection = tuple[Ruleset, ...]


@dataclass(frozen=True, slots=True)
class TargetRepository:
    owner: str | None
    name: str | None
    default_branch: str | None
    archived: bool = False

    @property
    def missing_fields(self) -> tuple[str, ...]:
        fields = {"owner": self.owner, "name": self.name, "default_branch": self.default_branch}
        return tuple(key for key, value in fields.items() if value is None or not value.strip())

    @property
    def is_valid(self) -> bool:
        return not self.missing_fields

    @property
    def full_name(self) -> str:
        return f"{self.owner or '?'}/{self.name or '?'}"

    def validate(self) -> None:
        missing = self.missing_fields
        if missing:
            raise TargetValidationError(missing)


@dataclass(frozen=True, slots=True)
class RateState:
    """Remaining request budget of the current accounting window."""

    limit: int
    remaining: int
    reset_at: datetime

    @property
    def exhausted(self) -> bool:
        return self.remaining < 1

    def consume(self) -> RateState:
        return replace(self, remaining=self.remaining - 1)


class OutcomeStatus(StrEnum):
    APPLIED = "applied"
    SKIPPED_INVALID = "skipped-invalid"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class ApplyOutcome:
    target: TargetRepository
    status: OutcomeStatus
    reason: str | None = None

    @classmethod
    def applied(cls, target: TargetRepository, reason: str | None = None) -> ApplyOutcome:
        return cls(target=target, status=OutcomeStatus.APPLIED, reason=reason)

    @classmethod
    def skipped_invalid(cls, target: TargetRepository, reason: str) -> ApplyOutcome:
        return cls(target=target, status=OutcomeStatus.SKIPPED_INVALID, reason=reason)

    @classmethod
    def failed(cls, target: TargetRepository, reason: str) -> ApplyOutcome:
        return cls(target=target, status=OutcomeStatus.FAILED, reason=reason)

    @classmethod
    def cancelled(cls, target: TargetRepository) -> ApplyOutcome:
        return cls(target=target, status=OutcomeStatus.CANCELLED, reason="run cancelled")


@dataclass(frozen=True, slots=True)
class SyncReport:
    """Outcome of a sync run, one entry per target in input order."""

    outcomes: tuple[ApplyOutcome, ...]
    concurrency: int
    rulesets: RulesetCollection = field(default_factory=tuple)

    def _with_status(self, status: OutcomeStatus) -> tuple[ApplyOutcome, ...]:
        return tuple(outcome for outcome in self.outcomes if outcome.status is status)

    @property
    def applied(self) -> tuple[ApplyOutcome, ...]:
        return self._with_status(OutcomeStatus.APPLIED)

    @property
    def skipped(self) -> tuple[ApplyOutcome, ...]:
        return self._with_status(OutcomeStatus.SKIPPED_INVALID)

    @property
    def failed(self) -> tuple[ApplyOutcome, ...]:
        return self._with_status(OutcomeStatus.FAILED)

    @property
    def cancelled(self) -> tuple[ApplyOutcome, ...]:
        return self._with_status(OutcomeStatus.CANCELLED)

    @property
    def succeeded(self) -> bool:
        return not self.failed and not self.cancelled
