"""Pydantic models describing the GitHub REST payloads.

Read models mirror the GET responses and ignore unknown fields. Write models
are frozen and serialize to the exact PUT body; every section is always
present so that the request overwrites the target instead of leaving
settings untouched.
"""

from __future__ import annotations

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    model_serializer,
)


class GitHubBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# --- read side -------------------------------------------------------------


class AccountPayload(GitHubBaseModel):
    login: str


class SlugPayload(GitHubBaseModel):
    slug: str


class EnabledFlag(GitHubBaseModel):
    enabled: bool = False


class StatusCheckPayload(GitHubBaseModel):
    context: str
    app_id: int | None = None


class StatusChecksPayload(GitHubBaseModel):
    strict: bool = False
    contexts: list[str] = Field(default_factory=list)
    checks: list[StatusCheckPayload] = Field(default_factory=list)


class RestrictionsPayload(GitHubBaseModel):
    users: list[AccountPayload] = Field(default_factory=list)
    teams: list[SlugPayload] = Field(default_factory=list)
    apps: list[SlugPayload] = Field(default_factory=list)


class PullRequestReviewsPayload(GitHubBaseModel):
    dismissal_restrictions: RestrictionsPayload | None = None
    bypass_pull_request_allowances: RestrictionsPayload | None = None
    dismiss_stale_reviews: bool = False
    require_code_owner_reviews: bool = False
    required_approving_review_count: int = 0
    require_last_push_approval: bool = False


class ProtectionPayload(GitHubBaseModel):
    required_status_checks: StatusChecksPayload | None = None
    required_pull_request_reviews: PullRequestReviewsPayload | None = None
    enforce_admins: EnabledFlag | None = None
    required_linear_history: EnabledFlag | None = None
    allow_force_pushes: EnabledFlag | None = None
    allow_deletions: EnabledFlag | None = None
    required_conversation_resolution: EnabledFlag | None = None
    block_creations: EnabledFlag | None = None
    lock_branch: EnabledFlag | None = None
    allow_fork_syncing: EnabledFlag | None = None
    restrictions: RestrictionsPayload | None = None


class RulesetPayload(GitHubBaseModel):
    id: int
    name: str
    target: str | None = None
    enforcement: str | None = None


class RepositoryPayload(GitHubBaseModel):
    name: str | None = None
    full_name: str | None = None
    owner: AccountPayload | None = None
    default_branch: str | None = None
    archived: bool = False


class RateBucketPayload(GitHubBaseModel):
    limit: int
    remaining: int
    reset: int
    used: int | None = None


class RateResourcesPayload(GitHubBaseModel):
    core: RateBucketPayload


class RateLimitPayload(GitHubBaseModel):
    resources: RateResourcesPayload


class ErrorResponse(GitHubBaseModel):
    message: str | None = None
    documentation_url: str | None = None


# --- write side ------------------------------------------------------------


class WriteModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class StatusCheckRequest(WriteModel):
    """A required check; ``app_id`` is left out of the body when unset."""

    context: str
    app_id: int | None = None

    @model_serializer(mode="wrap")
    def _omit_unset_app(self, handler: SerializerFunctionWrapHandler) -> dict[str, object]:
        data = handler(self)
        if self.app_id is None:
            data.pop("app_id", None)
        return data


class StatusChecksRequest(WriteModel):
    strict: bool = False
    checks: tuple[StatusCheckRequest, ...] = ()


class PrincipalsRequest(WriteModel):
    users: tuple[str, ...] = ()
    teams: tuple[str, ...] = ()
    apps: tuple[str, ...] = ()


class PullRequestReviewsRequest(WriteModel):
    dismissal_restrictions: PrincipalsRequest = PrincipalsRequest()
    dismiss_stale_reviews: bool = False
    require_code_owner_reviews: bool = False
    required_approving_review_count: int = 0
    require_last_push_approval: bool = False
    bypass_pull_request_allowances: PrincipalsRequest = PrincipalsRequest()


class ProtectionRequest(WriteModel):
    """Body of ``PUT /repos/{owner}/{repo}/branches/{branch}/protection``."""

    required_status_checks: StatusChecksRequest
    enforce_admins: bool
    required_pull_request_reviews: PullRequestReviewsRequest
    restrictions: PrincipalsRequest
    required_linear_history: bool
    allow_force_pushes: bool
    allow_deletions: bool
    block_creations: bool
    required_conversation_resolution: bool
    lock_branch: bool
    allow_fork_syncing: bool

    def to_body(self) -> dict[str, object]:
        return self.model_dump(mode="json")
