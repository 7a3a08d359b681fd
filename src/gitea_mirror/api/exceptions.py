"""Exceptions raised while talking to GitHub and Gitea."""

from typing import Any, Optional


class MirrorError(Exception):
    """Base exception for gitea-mirror."""

    pass


class ConfigurationError(MirrorError):
    """Missing or invalid configuration, detected before any network call."""

    pass


class EmptySourceError(MirrorError):
    """The source listing returned no repositories where some were expected."""

    pass


class MirrorAPIError(MirrorError):
    """Base exception for HTTP API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Any] = None,
    ):
        """Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code
            response_data: Response body returned by the API
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class TransientUpstreamError(MirrorAPIError):
    """Rate limiting or a transient upstream failure (429, 502, 503, 504)."""

    pass


class NotFoundError(MirrorAPIError):
    """Resource not found."""

    pass


class UnclassifiedHTTPError(MirrorAPIError):
    """Status code that is neither success, already-exists nor retryable."""

    pass


class AuthenticationError(UnclassifiedHTTPError):
    """Credentials were rejected (401 or 403)."""

    pass


class RetriesExhaustedError(MirrorAPIError):
    """The request kept failing with retryable errors."""

    def __init__(self, message: str, attempts: int, **kwargs):
        """Initialize retries exhausted error.

        Args:
            message: Error message
            attempts: Number of attempts made
            **kwargs: Additional arguments for base class
        """
        super().__init__(message, **kwargs)
        self.attempts = attempts
