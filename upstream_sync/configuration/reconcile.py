"""Reconcile GitHub authentication and bot configuration."""

from pathlib import Path

from upstream_sync.configuration.exceptions import (
    BotIdentityUndefinedError,
    GitHubAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
)
from upstream_sync.configuration.models import GitHubAuthenticationType, SyncConfig
from upstream_sync.schemas.link import BotIdentity


GITHUB_APP_ELEMENTS = (
    ("GitHub App ID", "github_app_id", "GITHUB_APP_ID"),
    ("GitHub App private key path", "github_app_private_key_path", "GITHUB_APP_PRIVATE_KEY_PATH"),
    ("GitHub App installation ID", "github_app_installation_id", "GITHUB_APP_INSTALLATION_ID"),
)


def describe_missing_elements(missing: list[RequiredConfigurationElementError]) -> str:
    """Join missing configuration elements into one readable sentence."""
    return ", ".join(f"{error.name} (command line option {error.cli_name}, environment variable {error.env_name})" for error in missing)


async def validate_github_authentication_configuration(
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
) -> GitHubAuthenticationType:
    """Validates the authentication used to read repositories on behalf of the link owner.

    Exactly one of a personal access token or a complete GitHub App
    configuration must be given.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If neither or both are given, or the App configuration is partial.
    """
    app_values = (github_app_id, github_app_private_key_path, github_app_installation_id)
    if github_pat_token and any(app_values):
        raise GitHubAuthenticationConfigurationUndefinedError("Both PAT and GitHub App configurations are defined. Please use one or the other.")
    if github_pat_token:
        return GitHubAuthenticationType.PAT
    if not any(app_values):
        raise GitHubAuthenticationConfigurationUndefinedError(
            "No GitHub authentication configuration provided. Please provide either a PAT or a GitHub App configuration."
        )

    missing = [RequiredConfigurationElementError(*element) for element, value in zip(GITHUB_APP_ELEMENTS, app_values) if not value]
    if missing:
        raise GitHubAuthenticationConfigurationUndefinedError(
            "Incomplete GitHub App configuration - missing settings include " + describe_missing_elements(missing)
        )
    return GitHubAuthenticationType.APP


async def validate_bot_identity_configuration(bot_login: str | None, bot_token: str | None) -> BotIdentity:
    """Validates the bot account configuration and builds the bot identity.

    The bot identity is always a separate account from the one used to read
    repositories, so both the login and a token are required.

    Raises:
        BotIdentityUndefinedError: If the login or token is missing.
    """
    missing: list[RequiredConfigurationElementError] = []
    if not bot_login:
        missing.append(RequiredConfigurationElementError("Bot login", "bot_login", "BOT_LOGIN"))
    if not bot_token:
        missing.append(RequiredConfigurationElementError("Bot token", "bot_token", "BOT_TOKEN"))
    if missing:
        raise BotIdentityUndefinedError("Incomplete bot configuration - " + "; ".join(str(error) for error in missing))
    return BotIdentity(login=bot_login, token=bot_token)  # type: ignore[arg-type]


async def reconcile_sync_configuration(
    cli_debug: bool,
    cli_github_api_url: str,
    cli_github_pat_token: str | None,
    cli_github_app_id: int | None,
    cli_github_app_private_key_path: Path | None,
    cli_github_app_installation_id: int | None,
    cli_bot_login: str | None,
    cli_bot_token: str | None,
    cli_opt_out_label: str = "optout",
    cli_page_size: int = 100,
    cli_max_concurrency: int = 10,
    cli_provider_timeout: float = 30.0,
) -> SyncConfig:
    """Reconcile CLI arguments (already merged with environment variables by Typer) into a SyncConfig."""
    github_auth_type = await validate_github_authentication_configuration(
        github_pat_token=cli_github_pat_token,
        github_app_id=cli_github_app_id,
        github_app_private_key_path=cli_github_app_private_key_path,
        github_app_installation_id=cli_github_app_installation_id,
    )
    bot = await validate_bot_identity_configuration(cli_bot_login, cli_bot_token)
    if cli_page_size < 1:
        raise ValueError(f"Fork page size must be at least 1, got {cli_page_size}")
    if cli_max_concurrency < 1:
        raise ValueError(f"Maximum concurrency must be at least 1, got {cli_max_concurrency}")
    return SyncConfig(
        debug=cli_debug,
        github_api_url=cli_github_api_url,
        github_authentication_type=github_auth_type,
        github_pat_token=cli_github_pat_token,
        github_app_id=cli_github_app_id,
        github_app_private_key_path=cli_github_app_private_key_path,
        github_app_installation_id=cli_github_app_installation_id,
        bot_login=bot.login,
        bot_token=bot.token.get_secret_value(),
        opt_out_label=cli_opt_out_label,
        page_size=cli_page_size,
        max_concurrency=cli_max_concurrency,
        provider_timeout=cli_provider_timeout,
    )
