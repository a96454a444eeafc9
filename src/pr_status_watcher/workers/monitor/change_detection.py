"""CI status change detection for the PR monitor worker.

Compares the previous cycle's snapshot of the viewer's own pull requests with
a fresh fetch and decides what is worth a notification. Only transitions out
of ``pending`` are reported, so settled or flapping pull requests do not
produce a stream of notifications. Pull requests seen for the first time are
never reported.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from ...models import CIStatus, PullRequest
from .models import StatusNotification, StatusSnapshot

logger = logging.getLogger(__name__)

CI_FAILED_TITLE = "CI Failed"
CHECKS_PASSED_TITLE = "All Checks Passed"
NO_LONGER_OPEN_TITLE = "PR No Longer Open"


class StatusChangeDetector:
    """Stateless detector of notification-worthy CI transitions."""

    def detect_changes(
        self,
        previous_ci_states: Mapping[str, CIStatus],
        previous_pr_ids: Iterable[str],
        new_prs: Sequence[PullRequest],
    ) -> list[StatusNotification]:
        """Detect notification-worthy changes between two cycles.

        Args:
            previous_ci_states: CI status per pull request id from the last cycle
            previous_pr_ids: Pull request ids from the last cycle
            new_prs: Pull requests from the current cycle

        Returns:
            Transition notifications in input order, followed by one
            notification per pull request that is no longer present
        """
        notifications = []

        for pr in new_prs:
            previous = previous_ci_states.get(pr.id)
            if previous != CIStatus.PENDING:
                continue

            if pr.ci_status == CIStatus.FAILURE:
                notifications.append(self._transition(CI_FAILED_TITLE, pr))
            elif pr.ci_status == CIStatus.SUCCESS:
                notifications.append(self._transition(CHECKS_PASSED_TITLE, pr))

        current_ids = {pr.id for pr in new_prs}
        for pr_id in previous_pr_ids:
            if pr_id not in current_ids:
                notifications.append(
                    StatusNotification(
                        title=NO_LONGER_OPEN_TITLE,
                        body=f"{pr_id} was merged or closed",
                        url=None,
                    )
                )

        if notifications:
            logger.debug(f"Detected {len(notifications)} status changes")
        return notifications

    def detect_from_snapshot(
        self, snapshot: StatusSnapshot, new_prs: Sequence[PullRequest]
    ) -> list[StatusNotification]:
        """Detect changes against a stored snapshot."""
        return self.detect_changes(
            snapshot.previous_ci_states, snapshot.previous_pr_ids, new_prs
        )

    def _transition(self, title: str, pr: PullRequest) -> StatusNotification:
        return StatusNotification(
            title=title,
            body=f"{pr.repo_full_name} {pr.display_number}: {pr.title}",
            url=pr.url,
        )
