"""Data models for the PR monitor worker.

A ``StatusSnapshot`` records what the previous successful cycle saw of the
viewer's own pull requests; comparing it with a fresh fetch yields
``StatusNotification`` values for the notification service.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from ...models import CIStatus, PullRequest


@dataclass(frozen=True)
class StatusNotification:
    """A notification-worthy change, ready to send."""

    title: str
    body: str
    url: str | None = None


@dataclass(frozen=True)
class StatusSnapshot:
    """CI status per pull request id, plus the set of ids, from one cycle."""

    previous_ci_states: dict[str, CIStatus] = field(default_factory=dict)
    previous_pr_ids: frozenset[str] = frozenset()

    @classmethod
    def empty(cls) -> "StatusSnapshot":
        return cls()

    @classmethod
    def from_pull_requests(cls, prs: Iterable[PullRequest]) -> "StatusSnapshot":
        """Build a snapshot from the authored pull requests of a cycle."""
        states = {pr.id: pr.ci_status for pr in prs}
        return cls(previous_ci_states=states, previous_pr_ids=frozenset(states))

    def __len__(self) -> int:
        return len(self.previous_pr_ids)
