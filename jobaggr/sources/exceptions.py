"""Custom exceptions for job sources."""


class SourceError(Exception):
    """Base exception for all source errors.

    Any source failure aborts the whole search: the aggregator re-raises the
    first one it observes, unmodified, and discards every partial result.
    """

    pass


class SourceHTTPError(SourceError):
    """HTTP request failed with a 4xx/5xx status or never got a response.

    ``status_code`` is 0 when the request failed before a response arrived
    (DNS failure, refused connection, TLS error).
    """

    def __init__(self, message: str, status_code: int, url: str) -> None:
        """Initialize HTTP error with status code and URL.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (e.g., 404, 500), or 0 without a response
            url: URL that failed
        """
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class SourceTimeoutError(SourceError):
    """HTTP request timed out.

    This is a source failure, not a cancellation: it is raised when the
    request's own timeout elapses while the search deadline is still live.
    """

    def __init__(self, message: str, url: str) -> None:
        """Initialize timeout error with URL.

        Args:
            message: Human-readable error message
            url: URL that timed out
        """
        super().__init__(message)
        self.url = url


class SourceResponseError(SourceError):
    """Response parsing or validation failed.

    Raised when a response arrived but was not usable (invalid JSON,
    unexpected shape, GraphQL errors).
    """

    pass


class SourceConfigurationError(SourceError):
    """Invalid source configuration, such as an unsupported ATS type."""

    pass
