"""Pytest configuration for integration tests."""

import logging
from typing import Generator

import pytest
import structlog


@pytest.fixture(autouse=True)
def restore_logging() -> Generator[None, None, None]:
    """Undo the logging configuration each CLI invocation installs."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    root_logger.handlers = handlers
    root_logger.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop credentials the developer's shell may carry."""
    for name in (
        "GITHUB_PAT_TOKEN",
        "GITHUB_APP_ID",
        "GITHUB_APP_PRIVATE_KEY_PATH",
        "GITHUB_APP_INSTALLATION_ID",
        "BOT_LOGIN",
        "BOT_TOKEN",
        "DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
