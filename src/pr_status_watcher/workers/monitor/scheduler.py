"""Restartable fixed-interval scheduler for the refresh cycle."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[object]]


class PollingScheduler:
    """Runs an async action every ``interval`` seconds until stopped.

    Each run owns its own stop event. The loop waits on that event with the
    interval as timeout: the event being set ends the loop without running
    the action, and only a timeout runs it. The action is awaited before the
    next wait starts, so invocations never overlap. Stopping while the action
    runs lets it finish and prevents the next one.
    """

    def __init__(self, name: str = "pr-status-poller"):
        self.name = name
        self._task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None
        self._interval: float | None = None
        self._next_refresh_at: datetime | None = None

        # Stopped runs that may still be finishing an action
        self._retired: set[asyncio.Task[None]] = set()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def interval(self) -> float | None:
        """Interval of the current run, or None when idle."""
        return self._interval if self.is_running else None

    @property
    def next_refresh_at(self) -> datetime | None:
        """Estimated time of the next action, or None when idle or busy."""
        return self._next_refresh_at if self.is_running else None

    def start(self, interval_seconds: float, action: Action) -> None:
        """Start polling, replacing any current run.

        Args:
            interval_seconds: Seconds between the end of one action and the
                start of the next
            action: Coroutine function to run on every tick

        Raises:
            ValueError: If the interval is not positive
        """
        if interval_seconds <= 0:
            raise ValueError("Polling interval must be positive")

        self.stop()

        stop_event = asyncio.Event()
        self._stop_event = stop_event
        self._interval = interval_seconds
        self._task = asyncio.create_task(
            self._run(interval_seconds, action, stop_event), name=self.name
        )
        logger.info(f"Polling scheduler started (interval: {interval_seconds}s)")

    def stop(self) -> None:
        """Stop the current run. Safe to call when idle."""
        if self._stop_event is not None:
            self._stop_event.set()

        if self._task is not None:
            if not self._task.done():
                self._retired.add(self._task)
                self._task.add_done_callback(self._retired.discard)
            logger.info("Polling scheduler stopped")

        self._task = None
        self._stop_event = None
        self._interval = None
        self._next_refresh_at = None

    async def wait_closed(self) -> None:
        """Wait until every stopped run has finished its in-progress action."""
        if self._retired:
            await asyncio.gather(*self._retired, return_exceptions=True)

    async def _run(
        self, interval: float, action: Action, stop_event: asyncio.Event
    ) -> None:
        while not stop_event.is_set():
            self._set_next_refresh(stop_event, interval)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
                # Stop event was set
                break
            except TimeoutError:
                # Normal timeout, run the action
                pass

            if stop_event.is_set():
                break

            self._set_next_refresh(stop_event, None)
            try:
                await action()
            except Exception as e:
                logger.error(f"Scheduled refresh failed: {e}")

    def _set_next_refresh(self, stop_event: asyncio.Event, interval: float | None) -> None:
        # A retired run must not overwrite the state of its replacement
        if stop_event is not self._stop_event:
            return
        if interval is None:
            self._next_refresh_at = None
        else:
            self._next_refresh_at = datetime.now(UTC) + timedelta(seconds=interval)
