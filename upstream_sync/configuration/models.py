"""Reconciles configuration between CLI arguments and environment variables."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class GitHubAuthenticationType(str, Enum):
    """Enum for GitHub authentication types."""

    PAT = "pat"
    APP = "app"


@dataclass
class SyncConfig:
    """Reconciled configuration for a synchronization run."""

    debug: bool
    github_api_url: str
    github_authentication_type: GitHubAuthenticationType
    github_pat_token: str | None
    github_app_id: int | None
    github_app_private_key_path: Path | None
    github_app_installation_id: int | None
    bot_login: str
    bot_token: str
    opt_out_label: str = "optout"
    page_size: int = 100
    max_concurrency: int = 10
    provider_timeout: float = 30.0
