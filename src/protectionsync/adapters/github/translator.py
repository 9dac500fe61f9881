"""Translate GitHub payloads into domain values and back into write requests."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from protectionsync.domain.model import (
    Principals,
    ProtectionConfig,
    RateState,
    ReviewRequirements,
    Ruleset,
    StatusCheck,
    StatusChecks,
    TargetRepository,
)

from .schema import (
    PrincipalsRequest,
    ProtectionPayload,
    ProtectionRequest,
    PullRequestReviewsRequest,
    StatusCheckRequest,
    StatusChecksRequest,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from protectionsync.domain.model import RulesetCollection

    from .schema import (
        EnabledFlag,
        RateLimitPayload,
        RepositoryPayload,
        RestrictionsPayload,
        RulesetPayload,
        StatusChecksPayload,
    )


def _enabled(flag: EnabledFlag | None) -> bool:
    return flag is not None and flag.enabled


def _principals(payload: RestrictionsPayload | None) -> Principals | None:
    if payload is None:
        return None
    return Principals(
        users=tuple(user.login for user in payload.users),
        teams=tuple(team.slug for team in payload.teams),
        apps=tuple(app.slug for app in payload.apps),
    )


def _status_checks(payload: StatusChecksPayload | None) -> StatusChecks | None:
    if payload is None:
        return None
    checks = [StatusCheck(context=check.context, app_id=check.app_id) for check in payload.checks]
    known = {check.context for check in checks}
    # legacy "contexts" only lists names; keep those not already described by "checks"
    checks.extend(
        StatusCheck(context=context) for context in payload.contexts if context not in known
    )
    return StatusChecks(strict=payload.strict, checks=tuple(checks))


def parse_protection(payload: ProtectionPayload | Mapping[str, object]) -> ProtectionConfig:
    """Return the domain configuration for a branch protection GET response."""

    if not isinstance(payload, ProtectionPayload):
        payload = ProtectionPayload.model_validate(payload)

    reviews = payload.required_pull_request_reviews
    return ProtectionConfig(
        required_status_checks=_status_checks(payload.required_status_checks),
        required_pull_request_reviews=(
            ReviewRequirements(
                dismiss_stale_reviews=reviews.dismiss_stale_reviews,
                require_code_owner_reviews=reviews.require_code_owner_reviews,
                required_approving_review_count=reviews.required_approving_review_count,
                require_last_push_approval=reviews.require_last_push_approval,
                dismissal_restrictions=_principals(reviews.dismissal_restrictions),
                bypass_pull_request_allowances=_principals(reviews.bypass_pull_request_allowances),
            )
            if reviews is not None
            else None
        ),
        enforce_admins=_enabled(payload.enforce_admins),
        required_linear_history=_enabled(payload.required_linear_history),
        allow_force_pushes=_enabled(payload.allow_force_pushes),
        allow_deletions=_enabled(payload.allow_deletions),
        required_conversation_resolution=_enabled(payload.required_conversation_resolution),
        block_creations=_enabled(payload.block_creations),
        lock_branch=_enabled(payload.lock_branch),
        allow_fork_syncing=_enabled(payload.allow_fork_syncing),
        restrictions=_principals(payload.restrictions),
    )


def parse_rulesets(payloads: Iterable[RulesetPayload]) -> RulesetCollection:
    return tuple(
        Ruleset(
            id=payload.id,
            name=payload.name,
            target=payload.target,
            enforcement=payload.enforcement,
        )
        for payload in payloads
    )


def parse_target(payload: RepositoryPayload) -> TargetRepository:
    return TargetRepository(
        owner=payload.owner.login if payload.owner is not None else None,
        name=payload.name,
        default_branch=payload.default_branch,
        archived=payload.archived,
    )


def parse_rate_state(payload: RateLimitPayload) -> RateState:
    core = payload.resources.core
    return RateState(
        limit=core.limit,
        remaining=core.remaining,
        reset_at=datetime.fromtimestamp(core.reset, tz=UTC),
    )


def _principals_request(principals: Principals | None) -> PrincipalsRequest:
    if principals is None:
        return PrincipalsRequest()
    return PrincipalsRequest(users=principals.users, teams=principals.teams, apps=principals.apps)


def _status_checks_request(checks: StatusChecks | None) -> StatusChecksRequest:
    if checks is None:
        return StatusChecksRequest()
    return StatusChecksRequest(
        strict=checks.strict,
        checks=tuple(
            StatusCheckRequest(context=check.context, app_id=check.app_id) for check in checks.checks
        ),
    )


def _reviews_request(reviews: ReviewRequirements | None) -> PullRequestReviewsRequest:
    if reviews is None:
        return PullRequestReviewsRequest()
    return PullRequestReviewsRequest(
        dismissal_restrictions=_principals_request(reviews.dismissal_restrictions),
        dismiss_stale_reviews=reviews.dismiss_stale_reviews,
        require_code_owner_reviews=reviews.require_code_owner_reviews,
        required_approving_review_count=reviews.required_approving_review_count,
        require_last_push_approval=reviews.require_last_push_approval,
        bypass_pull_request_allowances=_principals_request(reviews.bypass_pull_request_allowances),
    )


def to_apply_payload(config: ProtectionConfig) -> ProtectionRequest:
    """Shape ``config`` as a branch protection PUT body.

    Absent sections become explicit empty values (empty lists, ``False``, zero
    approvals): GitHub leaves omitted settings untouched, and the target must end
    up identical to the source.
    """

    return ProtectionRequest(
        required_status_checks=_status_checks_request(config.required_status_checks),
        enforce_admins=config.enforce_admins,
        required_pull_request_reviews=_reviews_request(config.required_pull_request_reviews),
        restrictions=_principals_request(config.restrictions),
        required_linear_history=config.required_linear_history,
        allow_force_pushes=config.allow_force_pushes,
        allow_deletions=config.allow_deletions,
        block_creations=config.block_creations,
        required_conversation_resolution=config.required_conversation_resolution,
        lock_branch=config.lock_branch,
        allow_fork_syncing=config.allow_fork_syncing,
    )
