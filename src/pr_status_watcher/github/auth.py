"""GitHub authentication handlers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import GitHubAuthenticationMissingError


@dataclass
class AuthToken:
    """Authentication token."""

    token: str
    token_type: str = "Bearer"

    def to_header(self) -> dict[str, str]:
        """Convert to authorization header."""
        return {"Authorization": f"{self.token_type} {self.token}"}


class AuthProvider(ABC):
    """Abstract base class for authentication providers."""

    @abstractmethod
    async def get_token(self) -> AuthToken:
        """Get authentication token.

        Raises:
            GitHubAuthenticationMissingError: If no token is available
        """
        pass


class TokenAuth(AuthProvider):
    """Fixed token authentication."""

    DEFAULT_TOKEN_TYPE = "Bearer"  # nosec B105

    def __init__(self, token: str, token_type: str | None = None):
        """Initialize token authentication.

        Args:
            token: Personal access token or OAuth token
            token_type: Authorization scheme. Uses Bearer by default.
        """
        if not token:
            raise GitHubAuthenticationMissingError("GitHub token is empty")
        self._token = AuthToken(token=token, token_type=token_type or self.DEFAULT_TOKEN_TYPE)

    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        return self._token


class GitHubCredentials(BaseSettings):
    """Token taken from the environment.

    Environment variables:
    - GITHUB_TOKEN: Token used for API calls
    - GH_TOKEN: Fallback, as exported by the GitHub CLI
    """

    model_config = SettingsConfigDict(extra="ignore")

    token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GITHUB_TOKEN", "GH_TOKEN"),
        description="GitHub API token",
    )


class EnvironmentTokenAuth(AuthProvider):
    """Token authentication resolved from the environment on each call."""

    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        credentials = GitHubCredentials()
        if not credentials.token:
            raise GitHubAuthenticationMissingError(
                "GitHub not authenticated: set GITHUB_TOKEN or GH_TOKEN"
            )
        return AuthToken(token=credentials.token)
