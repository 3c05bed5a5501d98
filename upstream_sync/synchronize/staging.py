"""Contains logic for materializing bot-owned staging copies of upstream repositories."""

import asyncio

import structlog

from upstream_sync.exceptions import IncompleteRepositoryReferenceError, UnsupportedProviderError
from upstream_sync.providers.abc import ProviderGateway
from upstream_sync.providers.registry import Provider, resolve_provider
from upstream_sync.schemas.link import BotIdentity, RepositoryReference, StagingRepository

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def get_branch_head(gateway: ProviderGateway, provider: str | Provider | None, repo_ref: RepositoryReference) -> str:
    """Get the head commit of a repository's configured branch.

    Raises:
        UnsupportedProviderError: If the provider has no branch lookup implementation.
        IncompleteRepositoryReferenceError: If the repository has no branch configured.
    """
    resolved = resolve_provider(provider)
    owner, repo = repo_ref.owner_and_repo()
    if not repo_ref.branch:
        raise IncompleteRepositoryReferenceError(f"Repository {owner}/{repo} has no branch configured")
    if resolved is Provider.GITHUB:
        return await gateway.get_branch_head(owner, repo, repo_ref.branch)
    raise UnsupportedProviderError(provider)


class StagingRepositoryMaterializer:
    """Produces a push-accessible, bot-owned copy of an upstream branch.

    The copy serves as the head of pull requests opened against downstream
    repositories, so the bot never needs write access to the upstream itself.
    """

    def __init__(self, gateway: ProviderGateway, bot_gateway: ProviderGateway) -> None:
        """Initialize with the link owner's gateway (reads upstream) and the bot's gateway (owns the copy)."""
        self.gateway = gateway
        self.bot_gateway = bot_gateway

    async def materialize(self, source_repo: RepositoryReference, bot: BotIdentity) -> StagingRepository:
        """Bring the bot's staging copy of ``source_repo`` up to the upstream branch head.

        Safe to call repeatedly: the staging repository is reused and its
        branch is force-pointed at the current upstream head each time.
        """
        head_sha = await get_branch_head(self.gateway, source_repo.provider, source_repo)
        staging = await self.bot_gateway.create_staging_repo(source_repo, bot)
        branch = source_repo.branch or staging.branch
        await self.bot_gateway.update_branch_head(staging.owner, staging.repo, branch, head_sha)
        logger.info(
            "Materialized staging repository",
            source=source_repo.full_name,
            staging=staging.full_name,
            branch=branch,
            head_sha=head_sha,
        )
        return staging.model_copy(update={"branch": branch, "head_sha": head_sha})


class SharedStagingRepository:
    """Materializes one staging copy on first use and hands it to every later caller.

    Concurrent callers wait on a lock, so the copy is created and its branch
    updated once per run however many targets share it. A failed attempt is
    not cached; the next caller tries again.
    """

    def __init__(self, materializer: StagingRepositoryMaterializer, source_repo: RepositoryReference, bot: BotIdentity) -> None:
        self.materializer = materializer
        self.source_repo = source_repo
        self.bot = bot
        self.staging: StagingRepository | None = None
        self._lock = asyncio.Lock()

    async def get(self) -> StagingRepository:
        """Return the staging copy, materializing it if no caller has yet."""
        async with self._lock:
            if self.staging is None:
                self.staging = await self.materializer.materialize(self.source_repo, self.bot)
            return self.staging
