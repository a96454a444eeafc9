"""Summary values derived from a list of pull requests."""

import enum
from collections.abc import Sequence

from .enums import CIStatus, PRState
from .pull_request import PullRequest


class OverallStatus(str, enum.Enum):
    """Single status summarizing the authored pull requests."""

    IDLE = "idle"
    FAILURE = "failure"
    PENDING = "pending"
    SETTLED = "settled"
    SUCCESS = "success"


def overall_status(prs: Sequence[PullRequest]) -> OverallStatus:
    """Worst status across the pull requests.

    ``IDLE`` when there is nothing to show, ``SETTLED`` when every pull
    request is merged or closed.
    """
    if not prs:
        return OverallStatus.IDLE
    if has_failure(prs):
        return OverallStatus.FAILURE
    if any(pr.ci_status == CIStatus.PENDING for pr in prs):
        return OverallStatus.PENDING
    if all(pr.state in (PRState.MERGED, PRState.CLOSED) for pr in prs):
        return OverallStatus.SETTLED
    return OverallStatus.SUCCESS


def has_failure(prs: Sequence[PullRequest]) -> bool:
    return any(pr.ci_status == CIStatus.FAILURE for pr in prs)


def open_count(prs: Sequence[PullRequest]) -> int:
    """Open pull requests not in the merge queue."""
    return sum(1 for pr in prs if pr.state == PRState.OPEN and not pr.is_in_merge_queue)


def draft_count(prs: Sequence[PullRequest]) -> int:
    return sum(1 for pr in prs if pr.state == PRState.DRAFT)


def queued_count(prs: Sequence[PullRequest]) -> int:
    return sum(1 for pr in prs if pr.is_in_merge_queue)


def status_bar_summary(prs: Sequence[PullRequest]) -> str:
    """Compact draft·open·queued summary, e.g. ``"3·10·2"``.

    Zero counts are omitted.
    """
    if not prs:
        return ""
    counts = (draft_count(prs), open_count(prs), queued_count(prs))
    return "·".join(str(count) for count in counts if count > 0)


def refresh_interval_label(seconds: int) -> str:
    """Human-readable label for a polling interval."""
    if seconds < 60:
        return f"{seconds}s"
    if seconds == 60:
        return "1 min"
    if seconds % 60 == 0:
        return f"{seconds // 60} min"
    return f"{seconds}s"
