"""Contains logic for synchronizing every fork of an upstream repository."""

import asyncio
from dataclasses import dataclass

import structlog
from structlog.contextvars import bound_contextvars

from upstream_sync.exceptions import ProviderError
from upstream_sync.providers.abc import ProviderGateway
from upstream_sync.schemas.link import ForkSummary, RepositoryReference
from upstream_sync.synchronize.pull_requests import PullRequestSynchronizer
from upstream_sync.synchronize.results import ForkEnumerationResult, SynchronizationOutcome
from upstream_sync.synchronize.staging import SharedStagingRepository

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_CONCURRENCY = 10


@dataclass
class ForkPageCursor:
    """Position of a fork enumeration run."""

    page: int
    page_size: int
    processed: int = 0


def fork_target(fork: ForkSummary, from_repo: RepositoryReference, to_template: RepositoryReference) -> RepositoryReference:
    """Build the downstream reference for one fork.

    Every fork is synchronized against the upstream's own branch.
    """
    return RepositoryReference(
        type="repo",
        provider=to_template.provider,
        owner=fork.owner,
        repo=fork.repo,
        branch=from_repo.branch,
        branches=[],
        fork=True,
        private=fork.private,
    )


async def sync_fork_page(
    forks: list[ForkSummary],
    from_repo: RepositoryReference,
    to_template: RepositoryReference,
    synchronizer: PullRequestSynchronizer,
    semaphore: asyncio.Semaphore,
    staging: SharedStagingRepository | None = None,
) -> list[SynchronizationOutcome]:
    """Synchronize every fork on one page concurrently and wait for all of them to settle.

    A provider failure is scoped to its own fork. Any other failure is raised
    once the whole page has settled.
    """

    async def sync_one(target: RepositoryReference) -> SynchronizationOutcome:
        async with semaphore:
            return await synchronizer.sync(from_repo, target, staging=staging)

    targets = [fork_target(fork, from_repo, to_template) for fork in forks]
    results = await asyncio.gather(*(sync_one(target) for target in targets), return_exceptions=True)

    outcomes: list[SynchronizationOutcome] = []
    unexpected: BaseException | None = None
    for target, result in zip(targets, results):
        if isinstance(result, ProviderError):
            logger.warning("Fork synchronization failed", target=target.full_name, error=result.detail, status_code=result.status_code)
            outcomes.append(SynchronizationOutcome.provider_error(target.full_name, result.detail))
        elif isinstance(result, BaseException):
            logger.error("Fork synchronization raised an unexpected error", target=target.full_name, error=str(result), error_type=type(result).__name__)
            unexpected = unexpected or result
        else:
            outcomes.append(result)
    if unexpected is not None:
        raise unexpected
    return outcomes


async def enumerate_forks(
    from_repo: RepositoryReference,
    to_template: RepositoryReference,
    synchronizer: PullRequestSynchronizer,
    gateway: ProviderGateway,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> ForkEnumerationResult:
    """Page through the forks of ``from_repo`` and synchronize each one.

    Pages are fetched one after another; the forks on a page are synchronized
    concurrently, at most ``max_concurrency`` at a time. The run ends at the
    first page holding fewer than ``page_size`` forks. All forks share one
    staging copy, materialized when the first fork that has not opted out
    needs it.

    Raises:
        ProviderError: If a fork page cannot be listed. Pull requests opened
            for earlier pages stay in place.
    """
    if page_size < 1:
        raise ValueError(f"Fork page size must be at least 1, got {page_size}")
    owner, repo = from_repo.owner_and_repo()
    cursor = ForkPageCursor(page=0, page_size=page_size)
    semaphore = asyncio.Semaphore(max_concurrency)
    staging = SharedStagingRepository(synchronizer.materializer, from_repo, synchronizer.bot)
    outcomes: list[SynchronizationOutcome] = []

    while True:
        with bound_contextvars(upstream=f"{owner}/{repo}", page=cursor.page):
            forks = await gateway.list_forks(owner, repo, cursor.page, cursor.page_size)
            logger.info("Synchronizing fork page", fork_count=len(forks), page_size=cursor.page_size)
            outcomes.extend(await sync_fork_page(forks, from_repo, to_template, synchronizer, semaphore, staging=staging))
            cursor.processed = cursor.page * cursor.page_size + len(forks)

        if len(forks) < cursor.page_size:
            break
        cursor.page += 1

    logger.info("Synchronized all forks", upstream=f"{owner}/{repo}", fork_count=cursor.processed, pages=cursor.page + 1)
    return ForkEnumerationResult(fork_count=cursor.processed, pages=cursor.page + 1, outcomes=outcomes)
