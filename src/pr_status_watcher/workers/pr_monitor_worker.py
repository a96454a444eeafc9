"""PR Monitor Worker.

Coordinates the refresh cycle: fetches the viewer's own pull requests and
the pull requests awaiting the viewer's review in parallel, keeps the last
good result of each, notifies about CI transitions and drives the polling
scheduler. All state is mutated by the coroutine running ``refresh_all``
after both fetches have resolved.
"""

import asyncio
import logging
import signal
import sys
from datetime import UTC, datetime
from typing import Any

from ..config.loader import ConfigurationLoader
from ..config.models import Config
from ..config.settings_store import YamlSettingsStore
from ..github.auth import AuthProvider, EnvironmentTokenAuth, TokenAuth
from ..github.client import GitHubClient, GitHubClientConfig
from ..github.exceptions import GitHubAuthenticationMissingError
from ..github.service import GitHubPullRequestService
from ..interfaces import NotificationService, PullRequestService, SettingsStore
from ..models import FilterSettings, PullRequest, ReadinessPartition, summary
from ..notifications import LoggingNotificationService
from .monitor.change_detection import StatusChangeDetector
from .monitor.models import StatusSnapshot
from .monitor.scheduler import PollingScheduler

logger = logging.getLogger(__name__)

REVIEW_ERROR_PREFIX = "Reviews: "


class PRMonitorWorker:
    """Holds the current pull request state and keeps it fresh.

    Collaborators are always injected. ``refresh_all`` never raises for a
    failed fetch: the previous state is kept and the failure is reported
    through ``last_error``.
    """

    def __init__(
        self,
        service: PullRequestService,
        settings_store: SettingsStore,
        notification_service: NotificationService,
        *,
        change_detector: StatusChangeDetector | None = None,
        scheduler: PollingScheduler | None = None,
    ):
        """Initialize PR monitor worker.

        Args:
            service: Pull request source
            settings_store: User settings persistence
            notification_service: Notification delivery channel
            change_detector: Detector for notification-worthy changes
            scheduler: Scheduler driving periodic refreshes
        """
        self.service = service
        self.settings_store = settings_store
        self.notification_service = notification_service
        self.change_detector = change_detector or StatusChangeDetector()
        self.scheduler = scheduler or PollingScheduler()

        # Visible state
        self.pull_requests: list[PullRequest] = []
        self.review_pull_requests: list[PullRequest] = []
        self.last_error: str | None = None
        self.last_exception: Exception | None = None
        self.has_completed_initial_load = False
        self.gh_user: str | None = None
        self.is_refreshing = False

        # User settings
        self.filter_settings: FilterSettings = settings_store.load_filter_settings()
        self.refresh_interval: int = settings_store.load_refresh_interval()

        # Previous cycle of authored pull requests, for change detection
        self._snapshot = StatusSnapshot.empty()
        self._has_fetched_authored = False

        self._startup_task: asyncio.Task[None] | None = None
        self._shutdown_requested = False

        # Statistics
        self.stats: dict[str, Any] = {
            "worker_started_at": None,
            "total_refresh_cycles": 0,
            "successful_cycles": 0,
            "failed_cycles": 0,
            "skipped_refreshes": 0,
            "notifications_sent": 0,
            "last_cycle_at": None,
        }

        self.notification_service.request_permission()

    # Refresh cycle

    async def refresh_all(self) -> None:
        """Run one refresh cycle.

        Returns immediately when no identity is known or another refresh is
        already in flight.
        """
        user = self.gh_user
        if not user:
            error = GitHubAuthenticationMissingError()
            logger.warning("Refresh skipped: no GitHub user")
            self.last_exception = error
            self.last_error = error.message
            return

        # Checked and set before the first await
        if self.is_refreshing:
            logger.info("Refresh already in progress, skipping")
            self.stats["skipped_refreshes"] += 1
            return
        self.is_refreshing = True

        cycle_start = datetime.now(UTC)
        logger.info(f"Starting refresh cycle for {user}")
        try:
            authored, reviews = await asyncio.gather(
                self.service.fetch_authored(user),
                self.service.fetch_review_requested(user),
                return_exceptions=True,
            )

            authored_ok = self._apply_authored(authored)
            reviews_ok = self._apply_reviews(reviews)

            self.stats["total_refresh_cycles"] += 1
            self.stats["last_cycle_at"] = cycle_start
            if authored_ok and reviews_ok:
                self.stats["successful_cycles"] += 1
            else:
                self.stats["failed_cycles"] += 1

            self.has_completed_initial_load = True
            logger.info(
                f"Refresh cycle completed: {len(self.pull_requests)} authored, "
                f"{len(self.review_pull_requests)} review requests"
            )
        finally:
            self.is_refreshing = False

    def _apply_authored(self, result: list[PullRequest] | BaseException) -> bool:
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.error(f"Fetching authored pull requests failed: {result}")
            self.last_exception = result
            self.last_error = str(result)
            return False

        if self._has_fetched_authored:
            for notification in self.change_detector.detect_from_snapshot(
                self._snapshot, result
            ):
                logger.info(f"Notifying: {notification.title}: {notification.body}")
                self.notification_service.send(
                    notification.title, notification.body, notification.url
                )
                self.stats["notifications_sent"] += 1
        self._has_fetched_authored = True

        self._snapshot = StatusSnapshot.from_pull_requests(result)
        self.pull_requests = list(result)
        self.last_error = None
        self.last_exception = None
        return True

    def _apply_reviews(self, result: list[PullRequest] | BaseException) -> bool:
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.error(f"Fetching review requests failed: {result}")
            review_error = f"{REVIEW_ERROR_PREFIX}{result}"
            if self.last_error:
                self.last_error = f"{self.last_error} | {review_error}"
            else:
                self.last_error = review_error
                self.last_exception = result
            return False

        self.review_pull_requests = list(result)
        return True

    # Lifecycle

    async def start(self) -> None:
        """Resolve the identity, refresh once, then poll on the interval."""
        self.stats["worker_started_at"] = datetime.now(UTC)

        if self.gh_user is None:
            logger.info("Resolving GitHub user...")
            self.gh_user = await self.service.resolve_current_identity()
            logger.info(f"GitHub user resolved to {self.gh_user}")

        await self.refresh_all()

        if self._shutdown_requested:
            return
        self._start_polling()

    def start_in_background(self) -> asyncio.Task[None]:
        """Run ``start`` as a task so the caller is not blocked."""
        if self._startup_task is None or self._startup_task.done():
            self._startup_task = asyncio.create_task(self.start(), name="pr-monitor-startup")
        return self._startup_task

    async def shutdown(self) -> None:
        """Stop polling.

        An in-flight refresh is allowed to complete; no new one starts.
        """
        logger.info("Shutting down PR Monitor Worker...")
        self._shutdown_requested = True
        self.scheduler.stop()
        await self.scheduler.wait_closed()
        if self._startup_task is not None and not self._startup_task.done():
            await asyncio.gather(self._startup_task, return_exceptions=True)
        logger.info("PR Monitor Worker stopped")

    def _start_polling(self) -> None:
        self.scheduler.start(self.refresh_interval, self.refresh_all)

    # Settings

    def update_filter_settings(self, settings: FilterSettings) -> None:
        """Replace and persist the filter settings."""
        self.settings_store.save_filter_settings(settings)
        self.filter_settings = settings

    def update_refresh_interval(self, seconds: int) -> None:
        """Replace and persist the refresh interval.

        A running scheduler is restarted with the new interval.

        Raises:
            ValueError: If the interval is not positive
        """
        if seconds <= 0:
            raise ValueError("Refresh interval must be positive")
        self.settings_store.save_refresh_interval(seconds)
        self.refresh_interval = seconds
        if self.scheduler.is_running:
            self._start_polling()

    # Derived views

    @property
    def visible_pull_requests(self) -> list[PullRequest]:
        """Authored pull requests outside ignored repositories."""
        return self.filter_settings.without_ignored_repositories(self.pull_requests)

    @property
    def visible_review_pull_requests(self) -> list[PullRequest]:
        return self.filter_settings.without_ignored_repositories(self.review_pull_requests)

    @property
    def filtered_review_pull_requests(self) -> list[PullRequest]:
        """Review requests with every filter applied."""
        return self.filter_settings.apply(self.review_pull_requests)

    def review_partition(self, now: datetime | None = None) -> ReadinessPartition:
        """Filtered review requests split into SLA-exceeded, ready and not ready."""
        return self.filter_settings.partition(self.filtered_review_pull_requests, now=now)

    @property
    def status_bar_summary(self) -> str:
        return summary.status_bar_summary(self.pull_requests)

    @property
    def overall_status(self) -> summary.OverallStatus:
        return summary.overall_status(self.pull_requests)

    @property
    def has_failure(self) -> bool:
        return summary.has_failure(self.pull_requests)

    @property
    def next_refresh_at(self) -> datetime | None:
        return self.scheduler.next_refresh_at

    @property
    def notifications_available(self) -> bool:
        return self.notification_service.is_available


def build_worker(config: Config) -> tuple[PRMonitorWorker, GitHubClient]:
    """Wire a worker with the production collaborators.

    Returns:
        The worker and the client it uses, which the caller must close
    """
    auth: AuthProvider
    if config.github.token:
        auth = TokenAuth(config.github.token)
    else:
        auth = EnvironmentTokenAuth()

    client = GitHubClient(
        auth=auth,
        config=GitHubClientConfig(
            base_url=config.github.base_url,
            timeout=config.github.timeout,
            max_retries=config.github.max_retries,
            user_agent=config.github.user_agent,
        ),
    )
    service = GitHubPullRequestService(
        client,
        page_size=config.polling.page_size,
        max_pages=config.polling.max_pages,
        max_items=config.polling.max_pull_requests,
    )
    settings_store = YamlSettingsStore(
        config.storage.resolved_settings_path,
        default_refresh_interval=config.polling.interval_seconds,
    )
    worker = PRMonitorWorker(service, settings_store, LoggingNotificationService())
    return worker, client


def _log_summary(worker: PRMonitorWorker) -> None:
    partition = worker.review_partition()
    logger.info(
        f"{worker.gh_user}: {len(worker.visible_pull_requests)} authored "
        f"[{worker.status_bar_summary or '-'}] status={worker.overall_status.value}; "
        f"reviews: {len(partition.sla_exceeded)} overdue, {len(partition.ready)} ready, "
        f"{len(partition.not_ready)} not ready"
    )
    for pr in worker.visible_pull_requests:
        ignored = worker.filter_settings.ignored_check_names
        logger.info(f"  {pr} color={pr.effective_status_color(ignored).value}")


async def run(worker: PRMonitorWorker, once: bool = False) -> int:
    """Run the worker until interrupted, or for a single cycle.

    Returns:
        Process exit code
    """
    if once:
        worker.gh_user = await worker.service.resolve_current_identity()
        await worker.refresh_all()
        _log_summary(worker)
        if worker.last_error:
            logger.error(f"Refresh failed: {worker.last_error}")
            return 1
        return 0

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def signal_handler(sig: int, frame: Any) -> None:
        logger.info(f"Received signal {sig}, initiating shutdown...")
        loop.call_soon_threadsafe(shutdown_event.set)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    worker.start_in_background()
    try:
        await shutdown_event.wait()
    finally:
        await worker.shutdown()
    return 0


async def main(argv: list[str] | None = None) -> int:
    """Main entry point for the PR status watcher."""
    import argparse

    parser = argparse.ArgumentParser(description="PR Status Watcher")
    parser.add_argument("--config", help="Configuration file path")
    parser.add_argument("--log-level", default=None, help="Log level")
    parser.add_argument(
        "--once", action="store_true", help="Run a single refresh and exit"
    )

    args = parser.parse_args(argv)

    config_loader = ConfigurationLoader()
    if args.config:
        config = config_loader.load_from_file(args.config)
    else:
        config = config_loader.load_default()

    log_level = args.log_level or config.system.log_level.value

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    worker, client = build_worker(config)
    try:
        return await run(worker, once=args.once)
    finally:
        await client.close()


def cli() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Worker failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    cli()
