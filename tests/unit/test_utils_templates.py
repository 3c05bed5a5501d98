"""Contains unit tests for the utils.templates module."""

import jinja2
import pytest

from upstream_sync.utils.templates import construct_jinja2_environment, get_bundled_template, render_template


def test_render_bundled_template() -> None:
    """Test rendering the bundled pull request body."""
    template = get_bundled_template("pull_request_body.md.j2")
    body = render_template(
        template,
        upstream_owner="octo",
        upstream_repo="widget",
        staging_owner="sync-bot",
        staging_repo="octo-widget",
        web_url="https://github.com",
        opt_out_label="optout",
    )
    assert "octo/widget" in body
    assert "sync-bot/octo-widget" in body


def test_render_template_undefined_variable() -> None:
    """Test that a missing variable fails instead of rendering empty text."""
    template = get_bundled_template("pull_request_body.md.j2")
    with pytest.raises(jinja2.UndefinedError):
        render_template(template, upstream_owner="octo")


def test_environment_loads_from_templates_directory() -> None:
    """Test that the environment resolves bundled templates by name and is strict."""
    environment = construct_jinja2_environment()
    assert environment.undefined is jinja2.StrictUndefined
    assert "pull_request_body.md.j2" in environment.list_templates()


def test_get_bundled_template_missing() -> None:
    """Test that a missing bundled template raises."""
    with pytest.raises(jinja2.TemplateNotFound):
        get_bundled_template("does-not-exist.j2")
