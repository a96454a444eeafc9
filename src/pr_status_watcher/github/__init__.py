"""GitHub fetch client."""

from .auth import AuthProvider, AuthToken, EnvironmentTokenAuth, TokenAuth
from .client import GitHubClient, GitHubClientConfig
from .conversion import convert_node
from .exceptions import (
    ErrorKind,
    GitHubAPIError,
    GitHubAuthenticationError,
    GitHubAuthenticationMissingError,
    GitHubConnectionError,
    GitHubError,
    GitHubInvalidResponseError,
    GitHubRateLimitError,
    GitHubServerError,
    GitHubTimeoutError,
)
from .pagination import CursorPaginator, SearchPage
from .service import GitHubPullRequestService

__all__ = [
    "AuthProvider",
    "AuthToken",
    "CursorPaginator",
    "EnvironmentTokenAuth",
    "ErrorKind",
    "GitHubAPIError",
    "GitHubAuthenticationError",
    "GitHubAuthenticationMissingError",
    "GitHubClient",
    "GitHubClientConfig",
    "GitHubConnectionError",
    "GitHubError",
    "GitHubInvalidResponseError",
    "GitHubPullRequestService",
    "GitHubRateLimitError",
    "GitHubServerError",
    "GitHubTimeoutError",
    "SearchPage",
    "TokenAuth",
    "convert_node",
]
