"""Contains results of synchronization runs."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from upstream_sync.schemas.link import PullRequestReference


class OutcomeKind(str, Enum):
    """Enum for the result of synchronizing one downstream repository."""

    PULL_REQUEST_CREATED = "pull-request-created"
    OPTED_OUT = "opted-out"
    ALREADY_EXISTS = "already-exists"
    PROVIDER_ERROR = "provider-error"


class ReportModel(BaseModel):
    """Base model for results returned to callers, serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SynchronizationOutcome(ReportModel):
    """Result of synchronizing one downstream repository with its upstream."""

    kind: OutcomeKind
    target: str
    pull_request: PullRequestReference | None = None
    detail: str | None = None
    msg: str | None = None

    @classmethod
    def pull_request_created(cls, target: str, pull_request: PullRequestReference) -> "SynchronizationOutcome":
        """Outcome for a newly opened pull request."""
        return cls(
            kind=OutcomeKind.PULL_REQUEST_CREATED,
            target=target,
            pull_request=pull_request,
            msg=f"Opened pull request #{pull_request.number} on {target}.",
        )

    @classmethod
    def opted_out(cls, target: str) -> "SynchronizationOutcome":
        """Outcome for a repository that declined automated pull requests."""
        return cls(kind=OutcomeKind.OPTED_OUT, target=target, msg="This repo opted out of automated upstream pull requests.")

    @classmethod
    def already_exists(cls, target: str, detail: str | None = None) -> "SynchronizationOutcome":
        """Outcome for a repository that already has the pull request open."""
        return cls(
            kind=OutcomeKind.ALREADY_EXISTS,
            target=target,
            detail=detail,
            msg="There's already a pull request for this repo, no need to create another.",
        )

    @classmethod
    def provider_error(cls, target: str, detail: str) -> "SynchronizationOutcome":
        """Outcome for a repository whose synchronization failed at the provider."""
        return cls(kind=OutcomeKind.PROVIDER_ERROR, target=target, detail=detail, msg="The provider rejected the synchronization.")

    @property
    def succeeded(self) -> bool:
        """Whether the outcome leaves the repository in the desired state."""
        return self.kind is not OutcomeKind.PROVIDER_ERROR


class ForkEnumerationResult(ReportModel):
    """Contains the results of synchronizing every fork of an upstream."""

    fork_count: int
    pages: int
    outcomes: list[SynchronizationOutcome] = Field(default_factory=list)

    def count(self, kind: OutcomeKind) -> int:
        """Number of forks that ended with the given outcome."""
        return sum(1 for outcome in self.outcomes if outcome.kind is kind)


class SynchronizationReport(ReportModel):
    """Report returned to callers for one link run.

    ``status`` is ``ok`` whenever the link was acted on and ``skipped`` when it
    failed closed without any provider call.
    """

    status: Literal["ok", "skipped"] = "ok"
    is_enabled: bool
    many: bool = False
    fork_count: int = 0
    pull_request: SynchronizationOutcome | None = None
    outcomes: list[SynchronizationOutcome] = Field(default_factory=list)
    error: Literal["not-enabled", "to-or-from-false"] | None = None
    msg: str | None = None
