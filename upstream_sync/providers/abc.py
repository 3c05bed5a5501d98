"""Base ABC for hosting provider gateways."""

from abc import ABC, abstractmethod

from upstream_sync.schemas.link import BotIdentity, ForkSummary, PullRequestReference, RepositoryReference, StagingRepository


class ProviderGateway(ABC):
    """Capability interface the synchronization engine needs from a hosting provider.

    Implementations raise ``ProviderError`` (or a subclass) for every failed
    provider call, and ``DuplicatePullRequestError`` when a pull request that
    is being created already exists.
    """

    # Search
    @abstractmethod
    async def search_issues(self, query: str) -> int:
        """Return the total number of issues and pull requests matching a search query."""
        pass

    # Branches
    @abstractmethod
    async def get_branch_head(self, owner: str, repo: str, branch: str) -> str:
        """Return the commit identifier at the head of a branch."""
        pass

    @abstractmethod
    async def update_branch_head(self, owner: str, repo: str, branch: str, sha: str) -> None:
        """Point a branch at a commit, creating the branch if it does not exist."""
        pass

    # Forks
    @abstractmethod
    async def list_forks(self, owner: str, repo: str, page: int, page_size: int) -> list[ForkSummary]:
        """List one page of forks of a repository. Pages are numbered from 0."""
        pass

    # Staging repositories
    @abstractmethod
    async def create_staging_repo(self, source: RepositoryReference, bot: BotIdentity) -> StagingRepository:
        """Create, or return the existing, copy of a repository owned by the bot."""
        pass

    # Pull requests
    @abstractmethod
    async def create_pull_request(
        self,
        owner: str,
        repo: str,
        base: str,
        head: str,
        title: str,
        body: str,
    ) -> PullRequestReference:
        """Open a pull request on a repository."""
        pass
