"""Contains unit tests for the utils.github module."""

import pytest

from upstream_sync.utils.github import split_repository_name, staging_repository_name, web_url_from_api_url


@pytest.mark.asyncio
async def test_split_repository_valid() -> None:
    """Test splitting a valid owner/repo string."""
    owner, repo = await split_repository_name("octocat/Hello-World")
    assert owner == "octocat"
    assert repo == "Hello-World"


@pytest.mark.asyncio
async def test_split_repository_missing() -> None:
    """Test that ValueError is raised if repo is None."""
    with pytest.raises(ValueError, match="'owner/repo' is required"):
        await split_repository_name(None)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "malformed_repo",
    [
        pytest.param("", id="empty string"),
        pytest.param("/", id="only a slash"),
        pytest.param("octocat-HelloWorld", id="no slash"),
        pytest.param("owner/repo/extra", id="too many parts"),
    ],
)
async def test_split_repository_various_malformed(malformed_repo: str) -> None:
    """Test that ValueError is raised if repo is malformed (various cases)."""
    with pytest.raises(ValueError):
        await split_repository_name(malformed_repo)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "repo_input,expected_owner,expected_repo",
    [
        pytest.param("/octocat/Hello-World", "octocat", "Hello-World", id="leading slash"),
        pytest.param("octocat/Hello-World/", "octocat", "Hello-World", id="trailing slash"),
        pytest.param("/octocat/Hello-World/", "octocat", "Hello-World", id="both slashes"),
    ],
)
async def test_split_repository_strips_slashes(repo_input: str, expected_owner: str, expected_repo: str) -> None:
    """Test that leading/trailing slashes are stripped and owner/repo are parsed correctly."""
    owner, repo = await split_repository_name(repo_input)
    assert owner == expected_owner
    assert repo == expected_repo


def test_staging_repository_name() -> None:
    """Test that staging repositories are named after the upstream owner and repo."""
    assert staging_repository_name("octo", "widget") == "octo-widget"


@pytest.mark.parametrize(
    "api_url,expected",
    [
        pytest.param("https://api.github.com", "https://github.com", id="github.com"),
        pytest.param("https://github.example.com/api/v3", "https://github.example.com", id="enterprise server"),
        pytest.param("https://github.example.com/api/v3/", "https://github.example.com", id="enterprise server trailing slash"),
    ],
)
def test_web_url_from_api_url(api_url: str, expected: str) -> None:
    """Test that the web URL is derived from the API URL."""
    assert web_url_from_api_url(api_url) == expected
