"""Provider gateway adapter for GitHub, built on the githubkit library."""

import asyncio
from functools import wraps
from pathlib import Path
from typing import Any, Awaitable, Callable, Self, TypeVar

import structlog
from githubkit import Response
from githubkit.exception import GitHubException, RequestFailed, RequestTimeout
from githubkit.versions.latest.models import (
    BranchWithProtection,
    FullRepository,
    MinimalRepository,
    PullRequest,
)

from upstream_sync.configuration.models import GitHubAuthenticationType
from upstream_sync.exceptions import DuplicatePullRequestError, ProviderError, ProviderTimeoutError
from upstream_sync.providers.abc import ProviderGateway
from upstream_sync.schemas.link import BotIdentity, ForkSummary, PullRequestReference, RepositoryReference, StagingRepository
from upstream_sync.utils.github import staging_repository_name
from upstream_sync.utils.retry import retry_on_rate_limit

from .client import GitHubClient, get_bot_client, get_github_client

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])
T = TypeVar("T")

DEFAULT_TIMEOUT = 30.0


def describe_request_failure(exc: RequestFailed) -> tuple[str, list[Any]]:
    """Pull the message and error list out of a failed GitHub response."""
    try:
        error_data = exc.response.json()
    except Exception:
        error_data = {}
    if not isinstance(error_data, dict):
        error_data = {}
    return error_data.get("message", str(exc)), error_data.get("errors", [])


def handle_github_errors(duplicate_on_422: bool = False) -> Callable[[F], F]:
    """Decorator translating githubkit failures into provider errors.

    A 422 Unprocessable Entity raised by a method created with
    ``duplicate_on_422=True`` becomes a ``DuplicatePullRequestError``.
    Timeouts become ``ProviderTimeoutError`` and every other githubkit failure
    becomes a ``ProviderError``.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except RequestFailed as exc:
                status_code = exc.response.status_code
                message, errors = describe_request_failure(exc)
                detail = f"GitHub {status_code} error in {func.__name__}: {message}"
                if errors:
                    detail = f"{detail} | errors: {errors}"
                if status_code == 422 and duplicate_on_422:
                    logger.info("GitHub reported an unprocessable duplicate", function=func.__name__, message=message, errors=errors)
                    raise DuplicatePullRequestError(detail, status_code=status_code) from exc
                logger.error("GitHub request failed", function=func.__name__, status_code=status_code, message=message, errors=errors)
                raise ProviderError(detail, status_code=status_code) from exc
            except (asyncio.TimeoutError, RequestTimeout) as exc:
                logger.error("GitHub request timed out", function=func.__name__)
                raise ProviderTimeoutError(f"GitHub request timed out in {func.__name__}") from exc
            except GitHubException as exc:
                logger.error("GitHub request error", function=func.__name__, error=str(exc), error_type=type(exc).__name__)
                raise ProviderError(f"GitHub request error in {func.__name__}: {exc}") from exc

        return wrapper  # type: ignore

    return decorator


class GitHubKitAdapter(ProviderGateway):
    """Provider gateway adapter for the githubkit library."""

    def __init__(
        self,
        client: GitHubClient,
        timeout: float = DEFAULT_TIMEOUT,
        staging_ready_attempts: int = 5,
        staging_poll_interval: float = 2.0,
    ) -> None:
        """Initialize the GitHub gateway with an already-initialized client."""
        self.client = client
        self.timeout = timeout
        self.staging_ready_attempts = staging_ready_attempts
        self.staging_poll_interval = staging_poll_interval

    async def _call(self, awaitable: Awaitable[T]) -> T:
        """Await one GitHub API call, bounded by the per-call timeout."""
        return await asyncio.wait_for(awaitable, self.timeout)

    @classmethod
    async def create(
        cls,
        repo: str,
        github_auth_type: GitHubAuthenticationType,
        github_pat_token: str | None = None,
        github_app_id: int | None = None,
        github_app_private_key_path: Path | None = None,
        github_app_installation_id: int | None = None,
        github_api_url: str = "https://api.github.com",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> Self:
        """Create a gateway that reads repositories on behalf of the link owner.

        Args:
            repo: Upstream repository in 'owner/repo' format (used to locate the App installation)
            github_auth_type: Type of authentication (PAT or APP)
            github_pat_token: Personal access token (required for PAT auth)
            github_app_id: GitHub App ID (required for APP auth)
            github_app_private_key_path: Path to private key file (required for APP auth)
            github_app_installation_id: Installation ID (required for APP auth)
            github_api_url: GitHub API URL (defaults to https://api.github.com)
            timeout: Per-call timeout in seconds

        Returns:
            Configured GitHubKitAdapter instance
        """
        logger.info("Creating client for GitHub instance", github_api_url=github_api_url, repo=repo, auth_type=github_auth_type.value)
        client = await get_github_client(
            repo=repo,
            github_auth_type=github_auth_type,
            github_pat_token=github_pat_token,
            github_app_id=github_app_id,
            github_app_private_key_path=github_app_private_key_path,
            github_app_installation_id=github_app_installation_id,
            github_api_url=github_api_url,
            timeout=timeout,
        )
        return cls(client, timeout=timeout)

    @classmethod
    async def create_for_bot(cls, bot: BotIdentity, github_api_url: str = "https://api.github.com", timeout: float = DEFAULT_TIMEOUT) -> Self:
        """Create a gateway that acts as the bot account."""
        logger.info("Creating bot client for GitHub instance", github_api_url=github_api_url, bot_login=bot.login)
        client = await get_bot_client(bot, github_api_url, timeout=timeout)
        return cls(client, timeout=timeout)

    # Search
    @handle_github_errors()
    @retry_on_rate_limit()
    async def search_issues(self, query: str) -> int:
        """Return the total number of issues and pull requests matching a search query."""
        response = await self._call(self.client.rest.search.async_issues_and_pull_requests(q=query, per_page=1))
        total_count = response.parsed_data.total_count
        logger.debug("Searched issues", query=query, total_count=total_count)
        return total_count

    # Branches
    @handle_github_errors()
    @retry_on_rate_limit()
    async def get_branch_head(self, owner: str, repo: str, branch: str) -> str:
        """Return the SHA at the head of a branch."""
        response: Response[BranchWithProtection] = await self._call(self.client.rest.repos.async_get_branch(owner=owner, repo=repo, branch=branch))
        return response.parsed_data.commit.sha

    @handle_github_errors()
    @retry_on_rate_limit()
    async def update_branch_head(self, owner: str, repo: str, branch: str, sha: str) -> None:
        """Force a branch to a commit, creating it when missing.

        A freshly created fork may not be ready to accept ref updates yet;
        404 and 409 responses are retried a bounded number of times.
        """
        for attempt in range(1, self.staging_ready_attempts + 1):
            try:
                await self._call(self.client.rest.git.async_update_ref(owner=owner, repo=repo, ref=f"heads/{branch}", sha=sha, force=True))
                logger.info("Updated branch head", owner=owner, repo=repo, branch=branch, sha=sha)
                return
            except RequestFailed as exc:
                status_code = exc.response.status_code
                if status_code == 422:
                    # Reference does not exist yet on the staging repository.
                    await self._call(self.client.rest.git.async_create_ref(owner=owner, repo=repo, ref=f"refs/heads/{branch}", sha=sha))
                    logger.info("Created branch", owner=owner, repo=repo, branch=branch, sha=sha)
                    return
                if status_code not in (404, 409) or attempt == self.staging_ready_attempts:
                    raise
                logger.info(
                    "Repository not ready for ref updates, waiting",
                    owner=owner,
                    repo=repo,
                    status_code=status_code,
                    attempt=attempt,
                    wait_time=self.staging_poll_interval,
                )
                await asyncio.sleep(self.staging_poll_interval)

    # Forks
    @handle_github_errors()
    @retry_on_rate_limit()
    async def list_forks(self, owner: str, repo: str, page: int, page_size: int) -> list[ForkSummary]:
        """List one page of forks. Page 0 maps to GitHub's first page."""
        response: Response[list[MinimalRepository]] = await self._call(
            self.client.rest.repos.async_list_forks(owner=owner, repo=repo, per_page=page_size, page=page + 1)
        )
        forks = [ForkSummary(owner=fork.owner.login, repo=fork.name, private=bool(fork.private)) for fork in response.parsed_data]
        logger.debug("Fetched forks page", owner=owner, repo=repo, page=page, page_size=page_size, fork_count=len(forks))
        return forks

    # Staging repositories
    @handle_github_errors()
    @retry_on_rate_limit()
    async def create_staging_repo(self, source: RepositoryReference, bot: BotIdentity) -> StagingRepository:
        """Fork the source repository into the bot account.

        GitHub answers a repeated fork request with the fork that already
        exists, so the call converges on a single staging repository.
        """
        owner, repo = source.owner_and_repo()
        response: Response[FullRepository] = await self._call(
            self.client.rest.repos.async_create_fork(owner=owner, repo=repo, name=staging_repository_name(owner, repo))
        )
        staging = response.parsed_data
        if staging.owner.login != bot.login:
            logger.warning("Staging repository owner differs from bot login", staging_owner=staging.owner.login, bot_login=bot.login)
        logger.info("Staging repository ready", source=source.full_name, staging=staging.full_name)
        return StagingRepository(owner=staging.owner.login, repo=staging.name, branch=source.branch or staging.default_branch)

    # Pull requests
    @handle_github_errors(duplicate_on_422=True)
    @retry_on_rate_limit()
    async def create_pull_request(
        self,
        owner: str,
        repo: str,
        base: str,
        head: str,
        title: str,
        body: str,
    ) -> PullRequestReference:
        """Open a pull request. A 422 (pull request already exists) raises DuplicatePullRequestError."""
        response: Response[PullRequest] = await self._call(
            self.client.rest.pulls.async_create(owner=owner, repo=repo, title=title, head=head, base=base, body=body)
        )
        pull_request = response.parsed_data
        return PullRequestReference(number=pull_request.number, url=pull_request.html_url, head=head, base=base)
