"""Contains unit tests for the synchronize staging module."""

import asyncio

import pytest

from tests.unit.fakes import FakeGateway
from upstream_sync.exceptions import IncompleteRepositoryReferenceError, ProviderError, UnsupportedProviderError
from upstream_sync.schemas.link import BotIdentity, RepositoryReference, StagingRepository
from upstream_sync.synchronize.staging import SharedStagingRepository, StagingRepositoryMaterializer, get_branch_head


@pytest.mark.asyncio
async def test_get_branch_head(upstream: RepositoryReference) -> None:
    """Test that the head of the configured branch is read."""
    gateway = FakeGateway(head_sha="deadbeef")
    assert await get_branch_head(gateway, "github", upstream) == "deadbeef"
    assert gateway.calls_to("get_branch_head") == [{"owner": "octo", "repo": "widget", "branch": "main"}]


@pytest.mark.asyncio
async def test_get_branch_head_requires_branch() -> None:
    """Test that a repository without a branch is rejected before any call."""
    gateway = FakeGateway()
    with pytest.raises(IncompleteRepositoryReferenceError):
        await get_branch_head(gateway, "github", RepositoryReference(name="octo/widget"))
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_get_branch_head_unsupported_provider(upstream: RepositoryReference) -> None:
    """Test that an unsupported provider is rejected before any call."""
    gateway = FakeGateway()
    with pytest.raises(UnsupportedProviderError):
        await get_branch_head(gateway, "bitbucket", upstream)
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_materialize_splits_reads_and_writes(upstream: RepositoryReference, bot: BotIdentity) -> None:
    """Test that the upstream is read as the link owner and the staging copy is written as the bot."""
    gateway = FakeGateway(head_sha="deadbeef")
    bot_gateway = FakeGateway()
    materializer = StagingRepositoryMaterializer(gateway, bot_gateway)

    staging = await materializer.materialize(upstream, bot)

    assert staging.owner == "sync-bot"
    assert staging.repo == "octo-widget"
    assert staging.branch == "main"
    assert staging.head_sha == "deadbeef"
    assert [name for name, _ in gateway.calls] == ["get_branch_head"]
    assert [name for name, _ in bot_gateway.calls] == ["create_staging_repo", "update_branch_head"]
    assert bot_gateway.calls_to("update_branch_head") == [{"owner": "sync-bot", "repo": "octo-widget", "branch": "main", "sha": "deadbeef"}]


@pytest.mark.asyncio
async def test_materialize_is_repeatable(upstream: RepositoryReference, bot: BotIdentity) -> None:
    """Test that materializing twice converges on the same staging repository."""
    gateway = FakeGateway()
    bot_gateway = FakeGateway()
    materializer = StagingRepositoryMaterializer(gateway, bot_gateway)

    first = await materializer.materialize(upstream, bot)
    second = await materializer.materialize(upstream, bot)

    assert first == second
    assert len(bot_gateway.calls_to("update_branch_head")) == 2


class FailingOnceGateway(FakeGateway):
    """Fails the first staging copy request."""

    async def create_staging_repo(self, source: RepositoryReference, bot: BotIdentity) -> StagingRepository:
        if not self.calls_to("create_staging_repo"):
            self.calls.append(("create_staging_repo", {"source": source.full_name, "bot": bot.login}))
            raise ProviderError("GitHub 502 error in create_fork: Bad Gateway", status_code=502)
        return await super().create_staging_repo(source, bot)


@pytest.mark.asyncio
async def test_shared_staging_materializes_once(upstream: RepositoryReference, bot: BotIdentity) -> None:
    """Test that concurrent callers of a shared staging copy trigger one materialization."""
    gateway = FakeGateway()
    bot_gateway = FakeGateway()
    shared = SharedStagingRepository(StagingRepositoryMaterializer(gateway, bot_gateway), upstream, bot)

    results = await asyncio.gather(*(shared.get() for _ in range(5)))

    assert all(result == results[0] for result in results)
    assert len(gateway.calls_to("get_branch_head")) == 1
    assert [name for name, _ in bot_gateway.calls] == ["create_staging_repo", "update_branch_head"]


@pytest.mark.asyncio
async def test_shared_staging_retries_after_failure(upstream: RepositoryReference, bot: BotIdentity) -> None:
    """Test that a failed materialization is not cached."""
    bot_gateway = FailingOnceGateway()
    shared = SharedStagingRepository(StagingRepositoryMaterializer(FakeGateway(), bot_gateway), upstream, bot)

    with pytest.raises(ProviderError):
        await shared.get()
    staging = await shared.get()

    assert staging.repo == "octo-widget"
    assert len(bot_gateway.calls_to("create_staging_repo")) == 2
