"""Resolves provider identifiers to gateway implementations."""

from enum import Enum

import structlog

from upstream_sync.configuration.models import SyncConfig
from upstream_sync.exceptions import UnsupportedProviderError
from upstream_sync.providers.abc import ProviderGateway
from upstream_sync.providers.github.adapter import GitHubKitAdapter
from upstream_sync.schemas.link import BotIdentity

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class Provider(str, Enum):
    """Enum for the hosting providers with a gateway implementation."""

    GITHUB = "github"


def resolve_provider(provider: str | Provider | None) -> Provider:
    """Resolve a provider identifier, raising UnsupportedProviderError for anything unknown."""
    try:
        return Provider(provider)
    except ValueError:
        raise UnsupportedProviderError(provider) from None


async def create_gateway(provider: str | Provider, config: SyncConfig, repo: str) -> ProviderGateway:
    """Create the gateway that reads repositories on behalf of the link owner.

    ``repo`` is the upstream repository in 'owner/repo' format; GitHub App
    authentication uses it to locate the App installation.
    """
    resolved = resolve_provider(provider)
    if resolved is Provider.GITHUB:
        return await GitHubKitAdapter.create(
            repo=repo,
            github_auth_type=config.github_authentication_type,
            github_pat_token=config.github_pat_token,
            github_app_id=config.github_app_id,
            github_app_private_key_path=config.github_app_private_key_path,
            github_app_installation_id=config.github_app_installation_id,
            github_api_url=config.github_api_url,
            timeout=config.provider_timeout,
        )
    raise UnsupportedProviderError(provider)


async def create_bot_gateway(provider: str | Provider, bot: BotIdentity, config: SyncConfig) -> ProviderGateway:
    """Create the gateway that acts as the bot account."""
    resolved = resolve_provider(provider)
    if resolved is Provider.GITHUB:
        return await GitHubKitAdapter.create_for_bot(bot, github_api_url=config.github_api_url, timeout=config.provider_timeout)
    raise UnsupportedProviderError(provider)
