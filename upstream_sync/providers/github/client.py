"""Sets up the authenticated githubkit clients."""

from pathlib import Path
from typing import TypeAlias

from githubkit import GitHub
from githubkit.auth import (
    AppAuthStrategy,
    AppInstallationAuthStrategy,
    TokenAuthStrategy,
)
from githubkit.versions.latest.models import Installation

from upstream_sync.configuration.models import GitHubAuthenticationType
from upstream_sync.schemas.link import BotIdentity
from upstream_sync.utils.github import split_repository_name

GitHubClient: TypeAlias = GitHub[AppInstallationAuthStrategy] | GitHub[TokenAuthStrategy]


async def get_github_app_client(
    repo: str,
    github_app_id: int,
    github_app_private_key_path: Path,
    github_api_url: str,
    timeout: float | None = None,
) -> GitHub[AppInstallationAuthStrategy]:
    """Returns a GitHub client authenticated as the App installation that covers a repository."""
    try:
        with open(github_app_private_key_path) as f:
            private_key = f.read()
        auth = AppAuthStrategy(
            app_id=github_app_id,
            private_key=private_key,
        )
        # Disable HTTP caching to always get fresh data
        app_client = GitHub(auth=auth, base_url=github_api_url, http_cache=False, timeout=timeout)

        owner, repository = await split_repository_name(repo)

        resp = await app_client.rest.apps.async_get_repo_installation(
            owner=owner,
            repo=repository,
        )
        repo_installation: Installation = resp.parsed_data
        return app_client.with_auth(app_client.auth.as_installation(repo_installation.id))
    except Exception as e:
        raise ValueError(f"Failed to get GitHub App installation: {e}") from e


async def get_github_pat_client(github_pat_token: str, github_api_url: str, timeout: float | None = None) -> GitHub[TokenAuthStrategy]:
    """Returns a GitHub client authenticated with a personal access token."""
    if not github_pat_token:
        raise RuntimeError("GitHub PAT authentication requires github_pat_token in config.")
    # Disable HTTP caching to always get fresh data
    return GitHub(auth=TokenAuthStrategy(github_pat_token), base_url=github_api_url, http_cache=False, timeout=timeout)


async def get_github_client(
    repo: str,
    github_auth_type: GitHubAuthenticationType,
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
    github_api_url: str,
    timeout: float | None = None,
) -> GitHubClient:
    """Returns the client used to read repositories on behalf of the link owner.

    Supports custom base URL for GitHub Enterprise Server (GHES).
    """
    if github_auth_type == GitHubAuthenticationType.APP:
        if not (github_app_id and github_app_private_key_path and github_app_installation_id):
            raise RuntimeError("GitHub App authentication requires app_id, private_key_path, and installation_id in config.")
        return await get_github_app_client(repo, github_app_id, github_app_private_key_path, github_api_url, timeout=timeout)
    if not github_pat_token:
        raise RuntimeError("GitHub PAT authentication requires github_pat_token in config.")
    return await get_github_pat_client(github_pat_token, github_api_url, timeout=timeout)


async def get_bot_client(bot: BotIdentity, github_api_url: str, timeout: float | None = None) -> GitHub[TokenAuthStrategy]:
    """Returns a client authenticated as the bot account, never as the link owner."""
    return await get_github_pat_client(bot.token.get_secret_value(), github_api_url, timeout=timeout)
