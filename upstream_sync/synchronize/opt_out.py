"""Contains logic for checking whether a downstream repository opted out of automated pull requests."""

import structlog

from upstream_sync.exceptions import UnsupportedProviderError
from upstream_sync.providers.abc import ProviderGateway
from upstream_sync.providers.registry import Provider, resolve_provider
from upstream_sync.schemas.link import RepositoryReference

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

DEFAULT_OPT_OUT_LABEL = "optout"


def build_opt_out_query(owner: str, repo: str, label: str = DEFAULT_OPT_OUT_LABEL) -> str:
    """Build the GitHub search query matching pull requests that carry the opt-out label."""
    return f'repo:{owner}/{repo} is:pr label:"{label}"'


async def has_opted_out(
    gateway: ProviderGateway,
    provider: str | Provider | None,
    repo_ref: RepositoryReference,
    label: str = DEFAULT_OPT_OUT_LABEL,
) -> bool:
    """Determine whether a repository opted out of automated pull requests.

    A repository opts out by carrying at least one pull request labeled with
    the opt-out label.

    Raises:
        UnsupportedProviderError: If the provider has no opt-out implementation.
    """
    resolved = resolve_provider(provider)
    owner, repo = repo_ref.owner_and_repo()
    if resolved is Provider.GITHUB:
        total_count = await gateway.search_issues(build_opt_out_query(owner, repo, label))
        opted_out = total_count > 0
        logger.debug("Checked opt-out status", repo=f"{owner}/{repo}", label=label, labeled_pull_requests=total_count, opted_out=opted_out)
        return opted_out
    raise UnsupportedProviderError(provider)
