"""Contains exceptions raised by the synchronization engine and provider gateways."""


class ConfigurationError(Exception):
    """Raised when a link or provider configuration cannot be acted on.

    Configuration errors are never retried and are always raised before any
    provider call is made for the affected operation.
    """

    pass


class UnsupportedProviderError(ConfigurationError):
    """Raised when an operation is requested for a provider with no gateway implementation."""

    def __init__(self, provider: object) -> None:
        """Initializes the exception with the offending provider value."""
        super().__init__(f"No such provider: {provider}")
        self.provider = provider


class UnsupportedTargetTypeError(ConfigurationError):
    """Raised when a link target has a type other than 'repo' or 'fork-all'."""

    def __init__(self, target_type: object, message: str | None = None) -> None:
        """Initializes the exception with the offending target type."""
        super().__init__(message or f"No such 'to' type: {target_type}")
        self.target_type = target_type


class IncompleteLinkError(ConfigurationError):
    """Raised when a link lacks its 'from' or 'to' repository."""

    pass


class IncompleteRepositoryReferenceError(ConfigurationError):
    """Raised when an owner and repository name cannot be derived from a repository reference."""

    pass


class ProviderError(Exception):
    """Raised when a hosting provider call fails."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        """Initializes the exception with the provider's error detail and HTTP status code."""
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class DuplicatePullRequestError(ProviderError):
    """Raised when the provider reports that an identical pull request already exists."""

    pass


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call does not complete within the configured timeout."""

    pass
