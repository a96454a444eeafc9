"""Notification delivery through the logging system."""

import logging

from .interfaces import NotificationService

logger = logging.getLogger(__name__)


class LoggingNotificationService(NotificationService):
    """Writes notifications to the log.

    Stands in for a desktop notification channel when running headless.
    Messages go to the ``pr_status_watcher.notifications`` logger at INFO.
    """

    def __init__(self, enabled: bool = True):
        self._enabled = enabled
        self._permission_granted = False
        self.sent_count = 0

    def request_permission(self) -> None:
        self._permission_granted = self._enabled
        logger.debug(f"Notification permission granted: {self._permission_granted}")

    @property
    def is_available(self) -> bool:
        return self._enabled

    @property
    def permission_granted(self) -> bool:
        return self._permission_granted

    def send(self, title: str, body: str, url: str | None = None) -> None:
        """Log a notification; a no-op when unavailable or not permitted."""
        if not self.is_available or not self._permission_granted:
            return
        suffix = f" <{url}>" if url else ""
        logger.info(f"[{title}] {body}{suffix}")
        self.sent_count += 1
