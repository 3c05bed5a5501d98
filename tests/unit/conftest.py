"""Fixtures for unit tests."""

from typing import Generator

import pytest
import structlog

from upstream_sync.schemas.link import BotIdentity, Link, RepositoryReference


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def bot() -> BotIdentity:
    """The bot account that owns staging repositories."""
    return BotIdentity(login="sync-bot", token="bot-token")


@pytest.fixture
def upstream() -> RepositoryReference:
    """An upstream repository tracking its main branch."""
    return RepositoryReference(type="repo", provider="github", owner="octo", repo="widget", branch="main")


@pytest.fixture
def downstream() -> RepositoryReference:
    """A single downstream repository."""
    return RepositoryReference(type="repo", provider="github", owner="alice", repo="widget", branch="main", fork=True)


@pytest.fixture
def repo_link(upstream: RepositoryReference, downstream: RepositoryReference) -> Link:
    """An enabled link to a single downstream repository."""
    return Link(name="widget-to-alice", enabled=True, from_=upstream, to=downstream)


@pytest.fixture
def fork_all_link(upstream: RepositoryReference) -> Link:
    """An enabled link to every fork of the upstream."""
    return Link(name="widget-to-forks", enabled=True, from_=upstream, to=RepositoryReference(type="fork-all", provider="github"))
