"""PR Monitor Worker - change detection and scheduling.

- Data models: StatusNotification, StatusSnapshot
- Change detection: StatusChangeDetector compares two cycles of the viewer's
  own pull requests
- Scheduling: PollingScheduler runs the refresh cycle on a fixed interval
"""

from .change_detection import (
    CHECKS_PASSED_TITLE,
    CI_FAILED_TITLE,
    NO_LONGER_OPEN_TITLE,
    StatusChangeDetector,
)
from .models import StatusNotification, StatusSnapshot
from .scheduler import PollingScheduler

__all__ = [
    "CHECKS_PASSED_TITLE",
    "CI_FAILED_TITLE",
    "NO_LONGER_OPEN_TITLE",
    "PollingScheduler",
    "StatusChangeDetector",
    "StatusNotification",
    "StatusSnapshot",
]
