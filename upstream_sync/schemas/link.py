"""Pydantic schemas for links between upstream and downstream repositories."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator

from upstream_sync.exceptions import IncompleteRepositoryReferenceError


class TargetType(str, Enum):
    """Enum for the kinds of repository reference a link can point at."""

    REPO = "repo"
    FORK_ALL = "fork-all"


class RepositoryReference(BaseModel):
    """Pydantic model for a repository on a hosting provider.

    The owner and repository name may be given separately or through the
    canonical ``name`` field formatted as ``owner/repo``. Whichever form is
    supplied, the other is derived from it.

    ``type`` and ``provider`` are kept as plain strings so that unknown values
    survive parsing and are rejected with a named error by the dispatcher.
    """

    model_config = ConfigDict(extra="ignore")

    type: str = TargetType.REPO.value
    provider: str = "github"
    owner: str | None = None
    repo: str | None = None
    name: str | None = None
    branch: str | None = None
    branches: list[str] = Field(default_factory=list)
    fork: bool = False
    private: bool = False

    @model_validator(mode="after")
    def derive_owner_and_repo(self) -> "RepositoryReference":
        """Fill in owner/repo from name, or name from owner/repo."""
        if (self.owner is None or self.repo is None) and self.name:
            parts = self.name.strip("/").split("/")
            if len(parts) == 2 and all(parts):
                self.owner = self.owner or parts[0]
                self.repo = self.repo or parts[1]
        if self.name is None and self.owner and self.repo:
            self.name = f"{self.owner}/{self.repo}"
        return self

    def owner_and_repo(self) -> tuple[str, str]:
        """Return the (owner, repo) identity pair of this repository."""
        if not self.owner or not self.repo:
            raise IncompleteRepositoryReferenceError(
                f"Repository reference must provide 'owner' and 'repo' or a 'name' formatted as 'owner/repo', got name={self.name!r}"
            )
        return self.owner, self.repo

    @property
    def full_name(self) -> str:
        """The 'owner/repo' form of this repository, or an empty string when unknown."""
        if self.owner and self.repo:
            return f"{self.owner}/{self.repo}"
        return self.name or ""


class Link(BaseModel):
    """Pydantic model for a synchronization link.

    ``to`` is either a single downstream repository or a ``fork-all`` marker
    meaning every fork of ``from``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str | None = None
    enabled: bool = False
    from_: RepositoryReference | None = Field(default=None, alias="from")
    to: RepositoryReference | None = None


class ForkSummary(BaseModel):
    """Pydantic model for one entry of a provider's fork listing."""

    owner: str
    repo: str
    private: bool = False

    @property
    def full_name(self) -> str:
        """The 'owner/repo' form of this fork."""
        return f"{self.owner}/{self.repo}"


class StagingRepository(BaseModel):
    """Pydantic model for a bot-owned copy of an upstream repository."""

    owner: str
    repo: str
    branch: str
    head_sha: str | None = None

    @property
    def full_name(self) -> str:
        """The 'owner/repo' form of the staging repository."""
        return f"{self.owner}/{self.repo}"


class PullRequestReference(BaseModel):
    """Pydantic model for a pull request opened on a downstream repository."""

    number: int
    url: str | None = None
    head: str | None = None
    base: str | None = None


class BotIdentity(BaseModel):
    """Pydantic model for the dedicated bot account that owns staging repositories."""

    login: str
    token: SecretStr
