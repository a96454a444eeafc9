"""GitHub API client exceptions.

Every failure the fetch client can report is one of a small set of kinds so
callers can tell a transient network problem from a configuration or
authentication problem without parsing messages.
"""

import enum
from typing import Any


class ErrorKind(str, enum.Enum):
    """Category of a fetch failure."""

    TRANSPORT_UNAVAILABLE = "transport_unavailable"
    TIMEOUT = "timeout"
    API_ERROR = "api_error"
    INVALID_RESPONSE = "invalid_response"
    AUTHENTICATION_MISSING = "authentication_missing"


class GitHubError(Exception):
    """Base exception for GitHub API errors."""

    kind: ErrorKind = ErrorKind.API_ERROR

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: dict[str, Any] | None = None,
    ):
        """Initialize GitHub error.

        Args:
            message: Human-readable error message
            status_code: HTTP status code
            response_data: Response data from GitHub API
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}


class GitHubConnectionError(GitHubError):
    """Raised when the API cannot be reached at all."""

    kind = ErrorKind.TRANSPORT_UNAVAILABLE


class GitHubTimeoutError(GitHubError):
    """Raised when a request exceeds its time budget."""

    kind = ErrorKind.TIMEOUT


class GitHubAPIError(GitHubError):
    """Raised when the API answers with an error.

    Covers HTTP error statuses and GraphQL ``errors`` lists alike.
    """

    kind = ErrorKind.API_ERROR

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: dict[str, Any] | None = None,
    ):
        message = message.strip() or "GitHub API error"
        super().__init__(message, status_code, response_data)


class GitHubAuthenticationError(GitHubAPIError):
    """Raised when the API rejects the credentials."""

    pass


class GitHubRateLimitError(GitHubAPIError):
    """Raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str,
        reset_time: int | None = None,
        remaining: int = 0,
        limit: int = 0,
        status_code: int | None = None,
        response_data: dict[str, Any] | None = None,
    ):
        """Initialize rate limit error.

        Args:
            message: Error message
            reset_time: Unix timestamp when rate limit resets
            remaining: Remaining API calls
            limit: Total rate limit
            status_code: HTTP status code, when the limit came from HTTP
            response_data: Response body that reported the limit
        """
        super().__init__(message, status_code, response_data)
        self.reset_time = reset_time
        self.remaining = remaining
        self.limit = limit


class GitHubServerError(GitHubAPIError):
    """Raised when GitHub server returns 5xx error."""

    pass


class GitHubInvalidResponseError(GitHubError):
    """Raised when a response body cannot be decoded."""

    kind = ErrorKind.INVALID_RESPONSE

    def __init__(
        self,
        message: str = "Invalid response from GitHub API",
        status_code: int | None = None,
        response_data: dict[str, Any] | None = None,
    ):
        super().__init__(message, status_code, response_data)


class GitHubAuthenticationMissingError(GitHubError):
    """Raised when no token or viewer identity is available."""

    kind = ErrorKind.AUTHENTICATION_MISSING

    def __init__(self, message: str = "GitHub not authenticated"):
        super().__init__(message)
