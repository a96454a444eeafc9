"""Pull request entity and readiness engine.

A ``PullRequest`` is an immutable value built once per fetch cycle. Its CI
facts are stored exactly as fetched; every derived view (effective status after
ignoring checks, readiness, SLA breach) is computed by pure methods that take
the user's configuration as explicit arguments and never mutate the entity.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import NamedTuple

from .enums import (
    CheckResultStatus,
    CIStatus,
    MergeableState,
    PRState,
    ReviewDecision,
    StatusColor,
)


@dataclass(frozen=True)
class CheckInfo:
    """Name and link of a failed check."""

    name: str
    details_url: str | None = None


@dataclass(frozen=True)
class CheckResult:
    """Normalized result of one check run or status context."""

    name: str
    status: CheckResultStatus
    details_url: str | None = None

    def to_check_info(self) -> CheckInfo:
        """Return the name/link pair for this check."""
        return CheckInfo(name=self.name, details_url=self.details_url)


class CheckCounts(NamedTuple):
    """Check tallies for display."""

    total: int
    passed: int
    failed: int


def resolve_overall_status(
    total: int,
    passed: int,
    failed: int,
    pending: int,
    rollup_state: str | None = None,
) -> CIStatus:
    """Roll per-check tallies up into one CI status.

    Args:
        total: Number of checks reported for the commit
        passed: Checks that passed
        failed: Checks that failed
        pending: Checks still running or queued
        rollup_state: Raw aggregate state, used when no check was tallied

    Returns:
        Overall CI status
    """
    if total == 0:
        return CIStatus.UNKNOWN
    if failed > 0:
        return CIStatus.FAILURE
    if pending > 0:
        return CIStatus.PENDING

    # Some integrations only report the aggregate rollup
    if passed == 0:
        match (rollup_state or "").upper():
            case "SUCCESS":
                return CIStatus.SUCCESS
            case "FAILURE" | "ERROR":
                return CIStatus.FAILURE
            case "PENDING":
                return CIStatus.PENDING
            case _:
                return CIStatus.UNKNOWN

    return CIStatus.SUCCESS


def _status_color(pr: "PullRequest", ci_status: CIStatus) -> StatusColor:
    if pr.state == PRState.MERGED:
        return StatusColor.PURPLE
    if pr.state in (PRState.CLOSED, PRState.DRAFT):
        return StatusColor.GRAY
    if pr.is_in_merge_queue:
        return StatusColor.PURPLE
    return {
        CIStatus.SUCCESS: StatusColor.GREEN,
        CIStatus.FAILURE: StatusColor.RED,
        CIStatus.PENDING: StatusColor.ORANGE,
        CIStatus.UNKNOWN: StatusColor.GRAY,
    }[ci_status]


@dataclass(frozen=True)
class PullRequest:
    """One pull request as seen by the watcher.

    Identity is the ``owner``/``repo``/``number`` triple. A newer fetch
    supersedes an entity with the same ``id``; entities are never updated
    in place.
    """

    # Identity
    owner: str
    repo: str
    number: int

    # Descriptive
    title: str
    author: str
    url: str
    head_sha: str = ""
    head_branch: str = ""

    # Lifecycle
    state: PRState = PRState.OPEN
    is_in_merge_queue: bool = False
    queue_position: int | None = None

    # Review
    review_decision: ReviewDecision = ReviewDecision.NONE
    approval_count: int = 0
    viewer_has_approved: bool = False
    mergeable: MergeableState = MergeableState.UNKNOWN

    # CI, as fetched
    ci_status: CIStatus = CIStatus.UNKNOWN
    checks_total: int = 0
    checks_passed: int = 0
    checks_failed: int = 0
    failed_checks: tuple[CheckInfo, ...] = ()
    check_results: tuple[CheckResult, ...] = ()

    # Timing
    published_at: datetime | None = None
    last_fetched: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __str__(self) -> str:
        """Return human-readable string representation."""
        return f"{self.id}: {self.title[:50]} ({self.state.value}, ci={self.ci_status.value})"

    @property
    def id(self) -> str:
        """Stable key used in maps and sets, e.g. ``octo/repo#12``."""
        return f"{self.owner}/{self.repo}#{self.number}"

    @property
    def repo_full_name(self) -> str:
        """Repository in owner/repo format."""
        return f"{self.owner}/{self.repo}"

    @property
    def display_number(self) -> str:
        return f"#{self.number}"

    @property
    def sort_priority(self) -> int:
        """Open first, then drafts, merge queue, closed/merged last."""
        if self.is_in_merge_queue:
            return 2
        return {
            PRState.OPEN: 0,
            PRState.DRAFT: 1,
            PRState.MERGED: 3,
            PRState.CLOSED: 3,
        }[self.state]

    @property
    def review_sort_priority(self) -> int:
        """Needs review first, then changes requested, then approved."""
        return {
            ReviewDecision.REVIEW_REQUIRED: 0,
            ReviewDecision.NONE: 0,
            ReviewDecision.CHANGES_REQUESTED: 1,
            ReviewDecision.APPROVED: 2,
        }[self.review_decision]

    @property
    def status_color(self) -> StatusColor:
        """Status color from the raw CI status."""
        return _status_color(self, self.ci_status)

    # Effective values: raw CI facts with ignored checks removed

    def effective_check_results(self, ignored_checks: Iterable[str]) -> tuple[CheckResult, ...]:
        """Check results excluding ignored check names."""
        ignored = set(ignored_checks)
        if not ignored:
            return self.check_results
        return tuple(c for c in self.check_results if c.name not in ignored)

    def effective_failed_checks(self, ignored_checks: Iterable[str]) -> tuple[CheckInfo, ...]:
        """Failed checks excluding ignored check names."""
        ignored = set(ignored_checks)
        if not ignored:
            return self.failed_checks
        return tuple(c for c in self.failed_checks if c.name not in ignored)

    def effective_ci_status(self, ignored_checks: Iterable[str]) -> CIStatus:
        """CI status recomputed without the ignored checks.

        With nothing ignored the fetched status stands. Otherwise the status
        is recomputed from the remaining check results, and with none left
        the result is ``UNKNOWN``.
        """
        ignored = set(ignored_checks)
        if not ignored:
            return self.ci_status

        effective = self.effective_check_results(ignored)
        if not effective:
            return CIStatus.UNKNOWN

        statuses = [c.status for c in effective]
        return resolve_overall_status(
            total=len(statuses),
            passed=statuses.count(CheckResultStatus.PASSED),
            failed=statuses.count(CheckResultStatus.FAILED),
            pending=statuses.count(CheckResultStatus.PENDING),
        )

    def effective_check_counts(self, ignored_checks: Iterable[str]) -> CheckCounts:
        """Check counts recomputed without the ignored checks."""
        effective = self.effective_check_results(ignored_checks)
        return CheckCounts(
            total=len(effective),
            passed=sum(1 for c in effective if c.status == CheckResultStatus.PASSED),
            failed=sum(1 for c in effective if c.status == CheckResultStatus.FAILED),
        )

    def effective_status_color(self, ignored_checks: Iterable[str]) -> StatusColor:
        """Status color from the effective CI status."""
        return _status_color(self, self.effective_ci_status(ignored_checks))

    # Readiness

    def is_ready(
        self,
        required_checks: Iterable[str],
        ignored_checks: Iterable[str] = (),
    ) -> bool:
        """Whether the pull request is actionable for review.

        Drafts and conflicting pull requests are never ready. Without
        required checks, readiness follows the effective CI status. With
        required checks, only those that exist on this pull request are
        evaluated: required-check lists are shared across repositories
        whose pipelines differ, so a missing check is skipped.

        Args:
            required_checks: Check names that must pass
            ignored_checks: Check names to disregard entirely

        Returns:
            True if the pull request is ready
        """
        if self.state == PRState.DRAFT:
            return False
        if self.mergeable == MergeableState.CONFLICTING:
            return False

        required = list(required_checks)
        ignored = set(ignored_checks)
        if not required:
            status = self.effective_ci_status(ignored)
            return status not in (CIStatus.FAILURE, CIStatus.PENDING)

        for name in required:
            if name in ignored:
                continue
            check = next((c for c in self.check_results if c.name == name), None)
            if check is None:
                continue
            if check.status != CheckResultStatus.PASSED:
                return False
        return True

    def is_sla_exceeded(self, minutes: int, now: datetime | None = None) -> bool:
        """Whether the review SLA deadline has passed.

        Unpublished pull requests never exceed the SLA. The deadline instant
        itself is not exceeded.
        """
        if self.published_at is None:
            return False
        if now is None:
            now = datetime.now(UTC)
        return now > self.published_at + timedelta(minutes=minutes)

    def validate(self) -> bool:
        """Validate entity integrity.

        Returns:
            bool: True if all data is valid

        Raises:
            ValueError: If any data is invalid
        """
        if self.number <= 0:
            raise ValueError("Pull request number must be positive")

        if not self.owner or not self.repo:
            raise ValueError("Repository owner and name are required")

        failed = [c for c in self.check_results if c.status == CheckResultStatus.FAILED]
        if self.checks_failed != len(failed):
            raise ValueError("checks_failed does not match failed check results")

        if tuple(c.to_check_info() for c in failed) != self.failed_checks:
            raise ValueError("failed_checks must be the failed subset of check_results")

        if self.check_results and self.checks_total != len(self.check_results):
            raise ValueError("checks_total does not match check results")

        if not self.check_results and (self.checks_total or self.checks_passed):
            raise ValueError("Check counts must be zero without check results")

        return True
