"""Integration tests for the CLI."""

import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from typer.testing import CliRunner

from tests.unit.fakes import FakeGateway, make_forks
from upstream_sync.configuration import cli
from upstream_sync.configuration.cli import typer_app

runner = CliRunner()

CREDENTIALS = {"GITHUB_PAT_TOKEN": "user-token", "BOT_LOGIN": "sync-bot", "BOT_TOKEN": "bot-token"}


def write_link(tmp_path: Path, enabled: bool = True, to_type: str = "repo") -> Path:
    """Write a link definition to a YAML file."""
    path = tmp_path / "link.yaml"
    path.write_text(
        f"""\
name: widget
enabled: {str(enabled).lower()}
from:
  type: repo
  provider: github
  name: octo/widget
  branch: main
to:
  type: {to_type}
  provider: github
  name: alice/widget
  branch: main
"""
    )
    return path


def test_run_missing_link_file(tmp_path: Path) -> None:
    """Test that the CLI exits with an error if the link file does not exist."""
    result = runner.invoke(typer_app, ["run", str(tmp_path / "missing.yaml")], env=CREDENTIALS)
    assert result.exit_code == 1
    assert "Link file not found" in result.output


def test_run_without_credentials(tmp_path: Path) -> None:
    """Test that the CLI exits with an error without authentication."""
    result = runner.invoke(typer_app, ["run", str(write_link(tmp_path))])
    assert result.exit_code == 1
    assert "No GitHub authentication configuration provided" in result.output


def test_run_disabled_link(tmp_path: Path) -> None:
    """Test that a disabled link is skipped."""
    result = runner.invoke(typer_app, ["run", str(write_link(tmp_path, enabled=False))], env=CREDENTIALS)
    assert result.exit_code == 0
    assert "Skipped (not-enabled)" in result.output


def test_run_disabled_link_json(tmp_path: Path) -> None:
    """Test that the report can be printed as camelCase JSON."""
    result = runner.invoke(typer_app, ["run", str(write_link(tmp_path, enabled=False)), "--json"], env=CREDENTIALS)
    assert result.exit_code == 0
    payload = json.loads(result.output[result.output.index("{") : result.output.rindex("}") + 1])
    assert payload["status"] == "skipped"
    assert payload["isEnabled"] is False
    assert payload["error"] == "not-enabled"


def test_run_unsupported_target_type(tmp_path: Path) -> None:
    """Test that an unsupported target type is a configuration error."""
    result = runner.invoke(typer_app, ["run", str(write_link(tmp_path, to_type="mirror"))], env=CREDENTIALS)
    assert result.exit_code == 1
    assert "No such 'to' type: mirror" in result.output


def test_run_single_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test running a link to a single repository end to end."""
    gateway = FakeGateway()
    bot_gateway = FakeGateway()
    monkeypatch.setattr("upstream_sync.synchronize.driver.create_gateway", AsyncMock(return_value=gateway))
    monkeypatch.setattr("upstream_sync.synchronize.driver.create_bot_gateway", AsyncMock(return_value=bot_gateway))

    result = runner.invoke(typer_app, ["run", str(write_link(tmp_path))], env=CREDENTIALS)

    assert result.exit_code == 0
    assert "alice/widget: pull-request-created" in result.output
    assert len(bot_gateway.calls_to("create_pull_request")) == 1


@pytest.mark.parametrize(
    "opted_out,expected",
    [
        pytest.param({"alice/widget"}, "alice/widget has opted out", id="opted out"),
        pytest.param(set(), "alice/widget accepts upstream pull requests", id="not opted out"),
    ],
)
def test_repo_opt_out_status(monkeypatch: pytest.MonkeyPatch, opted_out: set[str], expected: str) -> None:
    """Test reporting a repository's opt-out status."""
    monkeypatch.setattr(cli.GitHubKitAdapter, "create", AsyncMock(return_value=FakeGateway(opted_out=opted_out)))

    result = runner.invoke(typer_app, ["repo", "alice/widget", "opt-out-status"], env=CREDENTIALS)

    assert result.exit_code == 0
    assert expected in result.output


def test_repo_list_forks(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test listing forks across pages."""
    gateway = FakeGateway(forks=make_forks(5))
    monkeypatch.setattr(cli.GitHubKitAdapter, "create", AsyncMock(return_value=gateway))

    result = runner.invoke(typer_app, ["repo", "octo/widget", "list-forks", "--page-size", "2"], env=CREDENTIALS)

    assert result.exit_code == 0
    assert "user4/widget (public)" in result.output
    assert "octo/widget has 5 fork(s)" in result.output
    assert [call["page"] for call in gateway.calls_to("list_forks")] == [0, 1, 2]


def test_repo_without_credentials() -> None:
    """Test that repository commands require authentication."""
    result = runner.invoke(typer_app, ["repo", "octo/widget", "list-forks"])
    assert result.exit_code == 1
    assert "No GitHub authentication configuration provided" in result.output
