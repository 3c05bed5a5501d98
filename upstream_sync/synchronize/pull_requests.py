"""Contains logic for synchronizing a downstream repository through a pull request."""

import structlog
from structlog.contextvars import bound_contextvars

from upstream_sync.exceptions import DuplicatePullRequestError, IncompleteRepositoryReferenceError, UnsupportedProviderError
from upstream_sync.providers.abc import ProviderGateway
from upstream_sync.providers.registry import Provider, resolve_provider
from upstream_sync.schemas.link import BotIdentity, PullRequestReference, RepositoryReference, StagingRepository
from upstream_sync.synchronize.opt_out import DEFAULT_OPT_OUT_LABEL, has_opted_out
from upstream_sync.synchronize.results import SynchronizationOutcome
from upstream_sync.synchronize.staging import SharedStagingRepository, StagingRepositoryMaterializer
from upstream_sync.utils.templates import get_bundled_template, render_template

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

PULL_REQUEST_BODY_TEMPLATE = "pull_request_body.md.j2"


def generate_pull_request_title(owner: str, repo: str) -> str:
    """Generate the title of a pull request carrying changes from an upstream."""
    return f"Update from upstream repo {owner}/{repo}"


def generate_pull_request_body(
    owner: str,
    repo: str,
    staging_repo: str,
    staging_owner: str,
    web_url: str = "https://github.com",
    opt_out_label: str = DEFAULT_OPT_OUT_LABEL,
) -> str:
    """Generate the body of a pull request carrying changes from an upstream.

    The body names the upstream as ``owner/repo`` and the staging repository
    as ``staging_owner/staging_repo`` so both can be located by a human
    resolving conflicts.
    """
    template = get_bundled_template(PULL_REQUEST_BODY_TEMPLATE)
    return render_template(
        template,
        upstream_owner=owner,
        upstream_repo=repo,
        staging_owner=staging_owner,
        staging_repo=staging_repo,
        web_url=web_url.rstrip("/"),
        opt_out_label=opt_out_label,
    )


def check_pull_request_endpoints(upstream_repo: RepositoryReference, child_repo: RepositoryReference) -> tuple[str, str]:
    """Return the (upstream, child) branches once both repositories are known to be complete.

    Raises:
        IncompleteRepositoryReferenceError: If either repository is incomplete.
    """
    upstream_repo.owner_and_repo()
    child_repo.owner_and_repo()
    if not upstream_repo.branch or not child_repo.branch:
        raise IncompleteRepositoryReferenceError(
            f"Both the upstream ({upstream_repo.full_name}) and the target ({child_repo.full_name}) need a branch to open a pull request"
        )
    return upstream_repo.branch, child_repo.branch


async def create_pull_request(
    gateway: ProviderGateway,
    provider: str | Provider | None,
    upstream_repo: RepositoryReference,
    child_repo: RepositoryReference,
    staging_repo: StagingRepository,
    web_url: str = "https://github.com",
    opt_out_label: str = DEFAULT_OPT_OUT_LABEL,
) -> PullRequestReference:
    """Open a pull request on ``child_repo`` whose head is the staging copy of ``upstream_repo``.

    Raises:
        UnsupportedProviderError: If the provider has no pull request implementation.
        DuplicatePullRequestError: If the provider reports the pull request already exists.
        ProviderError: For any other provider failure.
    """
    resolved = resolve_provider(provider)
    upstream_branch, child_branch = check_pull_request_endpoints(upstream_repo, child_repo)
    upstream_owner, upstream_name = upstream_repo.owner_and_repo()
    child_owner, child_name = child_repo.owner_and_repo()
    if resolved is Provider.GITHUB:
        head = f"{staging_repo.owner}:{upstream_branch}"
        logger.info("Creating pull request", repo=f"{child_owner}/{child_name}", base=child_branch, head=head)
        return await gateway.create_pull_request(
            owner=child_owner,
            repo=child_name,
            base=child_branch,
            head=head,
            title=generate_pull_request_title(upstream_owner, upstream_name),
            body=generate_pull_request_body(
                upstream_owner,
                upstream_name,
                staging_repo.repo,
                staging_repo.owner,
                web_url=web_url,
                opt_out_label=opt_out_label,
            ),
        )
    raise UnsupportedProviderError(provider)


class PullRequestSynchronizer:
    """Runs the per-target workflow: opt-out check, staging copy, pull request.

    ``gateway`` acts on behalf of the link owner and is only used to read.
    ``bot_gateway`` acts as ``bot`` and owns every write: the staging copy and
    the pull request itself.
    """

    def __init__(
        self,
        gateway: ProviderGateway,
        bot_gateway: ProviderGateway,
        bot: BotIdentity,
        opt_out_label: str = DEFAULT_OPT_OUT_LABEL,
        web_url: str = "https://github.com",
        materializer: StagingRepositoryMaterializer | None = None,
    ) -> None:
        """Initialize the synchronizer with its gateways and bot identity."""
        self.gateway = gateway
        self.bot_gateway = bot_gateway
        self.bot = bot
        self.opt_out_label = opt_out_label
        self.web_url = web_url
        self.materializer = materializer or StagingRepositoryMaterializer(gateway, bot_gateway)

    async def sync(
        self,
        from_repo: RepositoryReference,
        to_repo: RepositoryReference,
        staging: SharedStagingRepository | None = None,
    ) -> SynchronizationOutcome:
        """Synchronize ``to_repo`` with ``from_repo``.

        Targets of one run pass a shared ``staging`` copy; without one the
        copy is materialized for this target alone.

        Returns an ``opted-out``, ``pull-request-created`` or ``already-exists``
        outcome. Any other provider failure is raised as ``ProviderError`` so
        the caller decides its scope. An incomplete repository reference is
        raised before any provider call.
        """
        check_pull_request_endpoints(from_repo, to_repo)
        target = to_repo.full_name
        with bound_contextvars(upstream=from_repo.full_name, target=target):
            if await has_opted_out(self.gateway, to_repo.provider, to_repo, label=self.opt_out_label):
                logger.info("Target opted out of upstream pull requests")
                return SynchronizationOutcome.opted_out(target)

            if staging is not None:
                staging_repo = await staging.get()
            else:
                staging_repo = await self.materializer.materialize(from_repo, self.bot)
            try:
                pull_request = await create_pull_request(
                    self.bot_gateway,
                    to_repo.provider,
                    from_repo,
                    to_repo,
                    staging_repo,
                    web_url=self.web_url,
                    opt_out_label=self.opt_out_label,
                )
            except DuplicatePullRequestError as exc:
                logger.info("Pull request already exists", detail=exc.detail)
                return SynchronizationOutcome.already_exists(target, detail=exc.detail)

            logger.info("Created pull request", pr_number=pull_request.number, pr_url=pull_request.url)
            return SynchronizationOutcome.pull_request_created(target, pull_request)
