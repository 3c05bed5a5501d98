"""Orchestrates the synchronization of a link."""

import time
from dataclasses import dataclass

import structlog
from structlog.contextvars import bound_contextvars

from upstream_sync.configuration.models import SyncConfig
from upstream_sync.exceptions import IncompleteLinkError, IncompleteRepositoryReferenceError, UnsupportedTargetTypeError
from upstream_sync.providers.abc import ProviderGateway
from upstream_sync.providers.registry import create_bot_gateway, create_gateway, resolve_provider
from upstream_sync.schemas.link import BotIdentity, Link, RepositoryReference, TargetType
from upstream_sync.synchronize.forks import DEFAULT_MAX_CONCURRENCY, DEFAULT_PAGE_SIZE, enumerate_forks
from upstream_sync.synchronize.opt_out import DEFAULT_OPT_OUT_LABEL
from upstream_sync.synchronize.pull_requests import PullRequestSynchronizer
from upstream_sync.synchronize.results import SynchronizationReport
from upstream_sync.utils.github import web_url_from_api_url

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

MISSING_TO_OR_FROM_MESSAGE = 'Please set both a "to" and "from" on this link.'


def check_link_actionable(link: Link) -> SynchronizationReport | None:
    """Return a fail-closed report when a link cannot be acted on, otherwise None."""
    if not link.enabled:
        return SynchronizationReport(status="skipped", is_enabled=False, error="not-enabled", msg="This link is disabled.")
    if link.from_ is None or link.to is None:
        missing = [field for field, value in (("from", link.from_), ("to", link.to)) if value is None]
        return SynchronizationReport(
            status="skipped",
            is_enabled=True,
            error="to-or-from-false",
            msg=f"{MISSING_TO_OR_FROM_MESSAGE} Missing: {', '.join(missing)}.",
        )
    return None


@dataclass(frozen=True)
class LinkTargets:
    """The endpoints of an actionable link and the kind of target it names."""

    from_repo: RepositoryReference
    to_repo: RepositoryReference
    target_type: TargetType


def validate_link_targets(link: Link) -> LinkTargets:
    """Validate the endpoints, providers, target types and branches of a link.

    Fork targets inherit the upstream's branch, so only a repo target needs
    its own.

    Raises:
        IncompleteLinkError: If the link lacks its 'from' or 'to' repository.
        UnsupportedProviderError: If either side names a provider with no gateway.
        UnsupportedTargetTypeError: If the upstream is not a repo, or the target
            is neither a repo nor every fork of the upstream.
        IncompleteRepositoryReferenceError: If a repository lacks an owner,
            a name or a branch.
    """
    from_repo, to_repo = link.from_, link.to
    if from_repo is None or to_repo is None:
        raise IncompleteLinkError(MISSING_TO_OR_FROM_MESSAGE)
    resolve_provider(from_repo.provider)
    resolve_provider(to_repo.provider)
    if from_repo.type != TargetType.REPO.value:
        raise UnsupportedTargetTypeError(from_repo.type, "The 'upstream' repo must be a repo, not a bunch of forks.")
    try:
        target_type = TargetType(to_repo.type)
    except ValueError:
        raise UnsupportedTargetTypeError(to_repo.type) from None

    from_repo.owner_and_repo()
    if not from_repo.branch:
        raise IncompleteRepositoryReferenceError(f"The upstream {from_repo.full_name} has no branch configured")
    if target_type is TargetType.REPO:
        to_repo.owner_and_repo()
        if not to_repo.branch:
            raise IncompleteRepositoryReferenceError(f"The target {to_repo.full_name} has no branch configured")
    return LinkTargets(from_repo=from_repo, to_repo=to_repo, target_type=target_type)


async def run_link(
    link: Link,
    gateway: ProviderGateway,
    bot_gateway: ProviderGateway,
    bot: BotIdentity,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    opt_out_label: str = DEFAULT_OPT_OUT_LABEL,
    web_url: str = "https://github.com",
) -> SynchronizationReport:
    """Run one link: fail closed, or synchronize its single target, or every fork of its upstream.

    Raises:
        ConfigurationError: For unsupported providers or target types, or a missing
            branch, before any provider call.
        ProviderError: If synchronizing a single target fails at the provider.
    """
    report = check_link_actionable(link)
    if report is not None:
        logger.info("Link is not actionable", link_name=link.name, error=report.error)
        return report

    targets = validate_link_targets(link)
    from_repo, to_repo = targets.from_repo, targets.to_repo
    synchronizer = PullRequestSynchronizer(gateway, bot_gateway, bot, opt_out_label=opt_out_label, web_url=web_url)

    with bound_contextvars(link_name=link.name, upstream=from_repo.full_name):
        if targets.target_type is TargetType.REPO:
            outcome = await synchronizer.sync(from_repo, to_repo)
            logger.info("Synchronized link target", target=to_repo.full_name, outcome=outcome.kind.value)
            return SynchronizationReport(status="ok", is_enabled=True, many=False, fork_count=1, pull_request=outcome)

        result = await enumerate_forks(from_repo, to_repo, synchronizer, gateway, page_size=page_size, max_concurrency=max_concurrency)
        return SynchronizationReport(status="ok", is_enabled=True, many=True, fork_count=result.fork_count, outcomes=result.outcomes)


async def run_link_workflow(link: Link, config: SyncConfig) -> SynchronizationReport:
    """Build gateways from configuration and run one link."""
    report = check_link_actionable(link)
    if report is not None:
        return report
    from_repo = validate_link_targets(link).from_repo

    bot = BotIdentity(login=config.bot_login, token=config.bot_token)  # type: ignore[arg-type]
    gateway = await create_gateway(from_repo.provider, config, repo=from_repo.full_name)
    bot_gateway = await create_bot_gateway(from_repo.provider, bot, config)

    start_time = time.time()
    logger.info("Running link", link_name=link.name, upstream=from_repo.full_name, start_time=start_time)
    report = await run_link(
        link,
        gateway,
        bot_gateway,
        bot,
        page_size=config.page_size,
        max_concurrency=config.max_concurrency,
        opt_out_label=config.opt_out_label,
        web_url=web_url_from_api_url(config.github_api_url),
    )
    logger.info("Ran link", link_name=link.name, fork_count=report.fork_count, many=report.many, duration=round(time.time() - start_time, 2))
    return report
