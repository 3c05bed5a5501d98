"""Contains utility functions for GitHub interactions."""


async def split_repository_name(repo: str | None) -> tuple[str, str]:
    """Splits an 'owner/repo' repository name into owner and repository."""
    if repo is None:
        raise ValueError("A repository name in the format 'owner/repo' is required.")
    repo = repo.strip("/")
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError("Repository must be in the format 'owner/repo' with no leading/trailing slashes or extra parts.")
    owner, repository = parts
    return owner, repository


def staging_repository_name(owner: str, repo: str) -> str:
    """Name of the bot-owned staging copy of an upstream repository.

    The name is deterministic so that repeated runs for the same upstream
    converge on the same staging repository.
    """
    return f"{owner}-{repo}"


def web_url_from_api_url(github_api_url: str) -> str:
    """Derive the web base URL from a GitHub API URL.

    e.g., "https://api.github.com" -> "https://github.com"
    or "https://github.example.com/api/v3" -> "https://github.example.com"
    """
    if "api.github.com" in github_api_url:
        return "https://github.com"
    return github_api_url.rstrip("/").replace("/api/v3", "").replace("/api", "")
