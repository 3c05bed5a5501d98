"""Retry decorator for handling GitHub API rate limits.

Rate-limited calls are retried with bounded exponential backoff, honoring the
provider's retry-after and x-ratelimit-reset hints. Every other failure is
raised immediately so the caller can classify it.
"""

import asyncio
import functools
import inspect
import time
from typing import Any, Callable, TypeVar

import structlog
from githubkit.exception import PrimaryRateLimitExceeded, RequestFailed, SecondaryRateLimitExceeded

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def is_rate_limit_failure(exc: RequestFailed) -> bool:
    """Check whether a failed request was rejected because of a rate limit."""
    if isinstance(exc, (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded)):
        return True
    status_code = exc.response.status_code
    return status_code == 429 or (status_code == 403 and "rate limit" in str(exc).lower())


def rate_limit_wait_time(exc: RequestFailed, fallback: float, max_delay: float) -> float:
    """Work out how long to wait before retrying a rate-limited request."""
    retry_after_delta = getattr(exc, "retry_after", None)
    if retry_after_delta:
        return min(retry_after_delta.total_seconds(), max_delay)

    headers = exc.response.headers
    retry_after = headers.get("retry-after")
    if retry_after:
        try:
            return min(float(retry_after), max_delay)
        except ValueError:
            logger.warning("Invalid retry-after header value", retry_after=retry_after)

    rate_limit_reset = headers.get("x-ratelimit-reset")
    if rate_limit_reset:
        try:
            wait_time = int(rate_limit_reset) - int(time.time()) + 1
            if wait_time > 0:
                return min(wait_time, max_delay)
        except ValueError:
            logger.warning("Invalid x-ratelimit-reset header value", rate_limit_reset=rate_limit_reset)

    return min(fallback, max_delay)


def retry_on_rate_limit(
    max_retries: int = 5,
    initial_delay: float = 2.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
) -> Callable[[F], F]:
    """Decorator for retrying async provider calls that hit a GitHub rate limit.

    Args:
        max_retries: Maximum number of retry attempts (default: 5)
        initial_delay: Initial delay in seconds between retries (default: 2.0)
        max_delay: Maximum delay in seconds between retries (default: 60.0)
        exponential_base: Base for exponential backoff calculation (default: 2.0)

    Returns:
        Decorated function with retry logic

    Example:
        @retry_on_rate_limit()
        async def list_forks(self, owner: str, repo: str) -> list[ForkSummary]:
            ...
    """

    def decorator(func: F) -> F:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"Function {func.__name__} decorated with @retry_on_rate_limit must be async.")

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded, RequestFailed) as e:
                    if not is_rate_limit_failure(e):
                        raise
                    if attempt >= max_retries:
                        logger.error(
                            "Max retries reached for rate limit error",
                            function=func.__name__,
                            attempt=attempt + 1,
                            status_code=e.response.status_code,
                        )
                        raise
                    wait_time = rate_limit_wait_time(e, fallback=delay, max_delay=max_delay)
                    logger.warning(
                        f"Rate limit hit, retrying in {wait_time} seconds",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        wait_time=wait_time,
                        status_code=e.response.status_code,
                    )
                    await asyncio.sleep(wait_time)
                    delay = min(delay * exponential_base, max_delay)
                    attempt += 1

        return wrapper  # type: ignore

    return decorator
