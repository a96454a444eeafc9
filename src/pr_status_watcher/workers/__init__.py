"""Background workers for the PR status watcher."""

from .pr_monitor_worker import PRMonitorWorker

__all__ = ["PRMonitorWorker"]
