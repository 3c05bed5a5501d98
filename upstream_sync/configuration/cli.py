"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
from pathlib import Path

import typer
from dotenv import load_dotenv
from typer import Argument, Option
from typing_extensions import Annotated

from upstream_sync.config import settings
from upstream_sync.configuration.exceptions import BotIdentityUndefinedError, GitHubAuthenticationConfigurationUndefinedError
from upstream_sync.configuration.reconcile import reconcile_sync_configuration, validate_github_authentication_configuration
from upstream_sync.exceptions import ConfigurationError, ProviderError
from upstream_sync.logging import configure_logging
from upstream_sync.providers.github.adapter import GitHubKitAdapter
from upstream_sync.schemas.link import RepositoryReference
from upstream_sync.synchronize.driver import run_link_workflow
from upstream_sync.synchronize.opt_out import has_opted_out
from upstream_sync.synchronize.results import OutcomeKind, SynchronizationReport
from upstream_sync.utils.github import split_repository_name
from upstream_sync.utils.yaml import load_link_file

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False)


@typer_app.callback()
def main_callback(
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug logging.")] = settings.DEBUG,
) -> None:
    """Open pull requests that carry upstream changes into downstream repositories."""
    configure_logging(debug)


def echo_report(report: SynchronizationReport) -> None:
    """Print a human readable summary of a link run."""
    if report.status == "skipped":
        typer.echo(f"Skipped ({report.error}): {report.msg}")
        return
    if report.pull_request is not None:
        outcome = report.pull_request
        typer.echo(f"{outcome.target}: {outcome.kind.value} - {outcome.msg}")
        return
    typer.echo(f"Processed {report.fork_count} fork(s)")
    for kind in OutcomeKind:
        count = sum(1 for outcome in report.outcomes if outcome.kind is kind)
        if count:
            typer.echo(f"  {kind.value}: {count}")
    for outcome in report.outcomes:
        if outcome.kind is OutcomeKind.PROVIDER_ERROR:
            typer.echo(f"{outcome.target}: {outcome.detail}", err=True)


@typer_app.command(name="run")
def run_cli(
    link_file: Annotated[Path, Argument(envvar="LINK_FILE", help="Path to a YAML or JSON link definition.")],
    github_api_url: Annotated[str, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = settings.GITHUB_API_URL,
    github_pat_token: Annotated[str | None, Option(envvar="GITHUB_PAT_TOKEN", help="GitHub Personal Access Token.")] = None,
    github_app_id: Annotated[int | None, Option(envvar="GITHUB_APP_ID", help="GitHub App ID.")] = None,
    github_app_private_key_path: Annotated[Path | None, Option(envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")] = None,
    github_app_installation_id: Annotated[int | None, Option(envvar="GITHUB_APP_INSTALLATION_ID", help="GitHub App Installation ID.")] = None,
    bot_login: Annotated[str | None, Option(envvar="BOT_LOGIN", help="Login of the bot account that owns staging repositories.")] = None,
    bot_token: Annotated[str | None, Option(envvar="BOT_TOKEN", help="Token of the bot account.")] = None,
    opt_out_label: Annotated[str, Option(envvar="OPT_OUT_LABEL", help="Label marking a repository as opted out.")] = settings.OPT_OUT_LABEL,
    page_size: Annotated[int, Option(envvar="FORK_PAGE_SIZE", help="Number of forks fetched per page.")] = settings.FORK_PAGE_SIZE,
    max_concurrency: Annotated[int, Option(envvar="MAX_CONCURRENCY", help="Maximum forks synchronized at once.")] = settings.MAX_CONCURRENCY,
    provider_timeout: Annotated[float, Option(envvar="PROVIDER_TIMEOUT", help="Seconds allowed for each provider call.")] = settings.PROVIDER_TIMEOUT,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")] = settings.DEBUG,
    json_output: Annotated[bool, Option("--json", help="Print the report as JSON.")] = False,
) -> None:
    """Run one link and print its synchronization report."""
    try:
        link = load_link_file(link_file)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc

    try:
        config = asyncio.run(
            reconcile_sync_configuration(
                cli_debug=debug,
                cli_github_api_url=github_api_url,
                cli_github_pat_token=github_pat_token,
                cli_github_app_id=github_app_id,
                cli_github_app_private_key_path=github_app_private_key_path,
                cli_github_app_installation_id=github_app_installation_id,
                cli_bot_login=bot_login,
                cli_bot_token=bot_token,
                cli_opt_out_label=opt_out_label,
                cli_page_size=page_size,
                cli_max_concurrency=max_concurrency,
                cli_provider_timeout=provider_timeout,
            )
        )
    except (GitHubAuthenticationConfigurationUndefinedError, BotIdentityUndefinedError, ValueError) as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(1) from exc

    try:
        report = asyncio.run(run_link_workflow(link, config))
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(1) from exc
    except ProviderError as exc:
        typer.echo(f"Provider error: {exc.detail}", err=True)
        raise typer.Exit(1) from exc

    if json_output:
        typer.echo(report.model_dump_json(by_alias=True, exclude_none=True, indent=2))
    else:
        echo_report(report)


# --- Typer group for commands acting on a single repository ---
repo_app = typer.Typer(help="Repository-related commands")


def repo_callback(
    ctx: typer.Context,
    repo: Annotated[str, Argument(help="Repository name (owner/repo).")],
    github_api_url: Annotated[str, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = settings.GITHUB_API_URL,
    github_pat_token: Annotated[str | None, Option(envvar="GITHUB_PAT_TOKEN", help="GitHub Personal Access Token.")] = None,
    github_app_id: Annotated[int | None, Option(envvar="GITHUB_APP_ID", help="GitHub App ID.")] = None,
    github_app_private_key_path: Annotated[Path | None, Option(envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")] = None,
    github_app_installation_id: Annotated[int | None, Option(envvar="GITHUB_APP_INSTALLATION_ID", help="GitHub App Installation ID.")] = None,
    provider_timeout: Annotated[float, Option(envvar="PROVIDER_TIMEOUT", help="Seconds allowed for each provider call.")] = settings.PROVIDER_TIMEOUT,
) -> None:
    """Set the repository for the current context."""
    ctx.ensure_object(dict)
    ctx.obj["repo"] = repo
    ctx.obj["github_api_url"] = github_api_url
    ctx.obj["github_pat_token"] = github_pat_token
    ctx.obj["github_app_id"] = github_app_id
    ctx.obj["github_app_private_key_path"] = github_app_private_key_path
    ctx.obj["github_app_installation_id"] = github_app_installation_id
    ctx.obj["provider_timeout"] = provider_timeout
    try:
        github_auth_type = asyncio.run(
            validate_github_authentication_configuration(
                github_pat_token=github_pat_token,
                github_app_id=github_app_id,
                github_app_private_key_path=github_app_private_key_path,
                github_app_installation_id=github_app_installation_id,
            )
        )
    except GitHubAuthenticationConfigurationUndefinedError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(1) from exc
    ctx.obj["github_auth_type"] = github_auth_type


repo_app.callback()(repo_callback)


async def create_repo_adapter(ctx: typer.Context) -> GitHubKitAdapter:
    """Build a gateway for the repository held in the CLI context."""
    return await GitHubKitAdapter.create(
        repo=ctx.obj["repo"],
        github_auth_type=ctx.obj["github_auth_type"],
        github_pat_token=ctx.obj["github_pat_token"],
        github_app_id=ctx.obj["github_app_id"],
        github_app_private_key_path=ctx.obj["github_app_private_key_path"],
        github_app_installation_id=ctx.obj["github_app_installation_id"],
        github_api_url=ctx.obj["github_api_url"],
        timeout=ctx.obj["provider_timeout"],
    )


@repo_app.command(name="opt-out-status")
def opt_out_status_cli(
    ctx: typer.Context,
    label: Annotated[str, Option("--label", envvar="OPT_OUT_LABEL", help="Label marking a repository as opted out.")] = settings.OPT_OUT_LABEL,
) -> None:
    """Report whether the repository opted out of automated upstream pull requests."""
    repo: str = ctx.obj["repo"]

    async def check_opt_out() -> bool:
        owner, name = await split_repository_name(repo)
        adapter = await create_repo_adapter(ctx)
        return await has_opted_out(adapter, "github", RepositoryReference(owner=owner, repo=name), label=label)

    try:
        opted_out = asyncio.run(check_opt_out())
    except (ConfigurationError, ValueError) as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(1) from exc
    except ProviderError as exc:
        typer.echo(f"Provider error: {exc.detail}", err=True)
        raise typer.Exit(1) from exc

    if opted_out:
        typer.echo(f"{repo} has opted out (pull requests labeled '{label}' exist)")
    else:
        typer.echo(f"{repo} accepts upstream pull requests")


@repo_app.command(name="list-forks")
def list_forks_cli(
    ctx: typer.Context,
    page_size: Annotated[int, Option(envvar="FORK_PAGE_SIZE", help="Number of forks fetched per page.")] = settings.FORK_PAGE_SIZE,
) -> None:
    """List every fork of the repository, one page at a time."""
    repo: str = ctx.obj["repo"]
    if page_size < 1:
        typer.echo(f"Fork page size must be at least 1, got {page_size}", err=True)
        raise typer.Exit(1)

    async def list_forks() -> int:
        owner, name = await split_repository_name(repo)
        adapter = await create_repo_adapter(ctx)
        page = 0
        while True:
            forks = await adapter.list_forks(owner, name, page, page_size)
            for fork in forks:
                visibility = "private" if fork.private else "public"
                typer.echo(f"{fork.full_name} ({visibility})")
            if len(forks) < page_size:
                return page * page_size + len(forks)
            page += 1

    try:
        fork_count = asyncio.run(list_forks())
    except ValueError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(1) from exc
    except ProviderError as exc:
        typer.echo(f"Provider error: {exc.detail}", err=True)
        raise typer.Exit(1) from exc
    typer.echo(f"{repo} has {fork_count} fork(s)")


# --- Register the repo_app as a sub-app of the main Typer app ---
typer_app.add_typer(repo_app, name="repo")
