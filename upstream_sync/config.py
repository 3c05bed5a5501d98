"""Pydantic Settings model for application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False

    # GitHub API settings
    GITHUB_API_URL: str = "https://api.github.com"

    # GitHub PAT settings
    GITHUB_PAT_TOKEN: str | None = None

    # GitHub App settings
    GITHUB_APP_ID: str | None = None
    GITHUB_APP_PRIVATE_KEY_PATH: Path | None = None
    GITHUB_APP_INSTALLATION_ID: str | None = None

    # Bot account that owns staging repositories and opens pull requests
    BOT_LOGIN: str | None = None
    BOT_TOKEN: str | None = None

    # Synchronization settings
    OPT_OUT_LABEL: str = "optout"
    FORK_PAGE_SIZE: int = 100
    MAX_CONCURRENCY: int = 10
    PROVIDER_TIMEOUT: float = 30.0


settings = Settings()
