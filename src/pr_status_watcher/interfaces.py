"""Contracts for the collaborators the monitor worker depends on."""

from abc import ABC, abstractmethod

from .models import FilterSettings, PullRequest


class PullRequestService(ABC):
    """Source of pull request data."""

    @abstractmethod
    async def fetch_authored(self, username: str) -> list[PullRequest]:
        """Fetch open pull requests authored by a user.

        Raises:
            GitHubError: If the fetch fails
        """
        pass

    @abstractmethod
    async def fetch_review_requested(self, username: str) -> list[PullRequest]:
        """Fetch open pull requests awaiting a user's review.

        Raises:
            GitHubError: If the fetch fails
        """
        pass

    @abstractmethod
    async def resolve_current_identity(self) -> str | None:
        """Return the viewer's login, or None if it cannot be resolved."""
        pass


class SettingsStore(ABC):
    """Persistence for user settings.

    Loads never raise; missing or unreadable values yield defaults.
    """

    @abstractmethod
    def load_filter_settings(self) -> FilterSettings:
        pass

    @abstractmethod
    def save_filter_settings(self, settings: FilterSettings) -> None:
        pass

    @abstractmethod
    def load_refresh_interval(self) -> int:
        """Polling interval in seconds."""
        pass

    @abstractmethod
    def save_refresh_interval(self, seconds: int) -> None:
        pass


class NotificationService(ABC):
    """Delivery channel for status notifications."""

    @abstractmethod
    def request_permission(self) -> None:
        """Ask for permission to deliver notifications."""
        pass

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether notifications can be delivered at all."""
        pass

    @property
    @abstractmethod
    def permission_granted(self) -> bool:
        pass

    @abstractmethod
    def send(self, title: str, body: str, url: str | None = None) -> None:
        """Deliver a notification.

        Must be a no-op when the channel is unavailable.
        """
        pass
