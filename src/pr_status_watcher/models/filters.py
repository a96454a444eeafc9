"""User filter settings and collection-level filtering.

``FilterSettings`` is owned by the user and persisted by a settings store.
The module-level functions take every setting as an explicit argument so they
can be tested without a settings object; the model's methods simply forward
its own fields.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import PRState
from .pull_request import PullRequest

DEFAULT_REVIEW_SLA_MINUTES = 480


class FilterSettings(BaseModel):
    """Review filtering preferences.

    Every field has a default so settings saved by an older version, which
    lack newer fields, still load. Unknown keys are ignored for the same
    reason in the other direction.
    """

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    hide_drafts: bool = Field(default=False, description="Hide draft pull requests")
    hide_approved_by_me: bool = Field(
        default=False, description="Hide pull requests the viewer has approved"
    )
    hide_not_ready: bool = Field(
        default=False, description="Hide pull requests that are not ready for review"
    )

    required_check_names: list[str] = Field(
        default_factory=list, description="Checks that must pass for readiness"
    )
    ignored_check_names: list[str] = Field(
        default_factory=list, description="Checks excluded from every CI judgement"
    )
    ignored_repositories: list[str] = Field(
        default_factory=list, description="Repositories (owner/repo) to hide"
    )

    review_sla_enabled: bool = Field(default=False, description="Flag overdue reviews")
    review_sla_minutes: int = Field(
        default=DEFAULT_REVIEW_SLA_MINUTES,
        ge=1,
        description="Minutes after publication before a review is overdue",
    )

    @field_validator(
        "required_check_names", "ignored_check_names", "ignored_repositories"
    )
    @classmethod
    def deduplicate_names(cls, names: list[str]) -> list[str]:
        """Keep the first occurrence of each name, preserving order."""
        return list(dict.fromkeys(names))

    def apply(self, prs: Iterable[PullRequest]) -> list[PullRequest]:
        """Apply every visibility filter to a collection."""
        return filter_pull_requests(
            prs,
            ignored_repositories=self.ignored_repositories,
            hide_drafts=self.hide_drafts,
            hide_approved_by_me=self.hide_approved_by_me,
            hide_not_ready=self.hide_not_ready,
            required_checks=self.required_check_names,
            ignored_checks=self.ignored_check_names,
        )

    def without_ignored_repositories(
        self, prs: Iterable[PullRequest]
    ) -> list[PullRequest]:
        """Drop only pull requests from ignored repositories."""
        return filter_pull_requests(prs, ignored_repositories=self.ignored_repositories)

    def partition(
        self, prs: Sequence[PullRequest], now: datetime | None = None
    ) -> "ReadinessPartition":
        """Split an already-filtered collection into display buckets."""
        return partition_by_readiness(
            prs,
            required_checks=self.required_check_names,
            ignored_checks=self.ignored_check_names,
            sla_enabled=self.review_sla_enabled,
            sla_minutes=self.review_sla_minutes,
            now=now,
        )


@dataclass(frozen=True)
class ReadinessPartition:
    """Mutually exclusive display buckets for review requests."""

    sla_exceeded: list[PullRequest] = field(default_factory=list)
    ready: list[PullRequest] = field(default_factory=list)
    not_ready: list[PullRequest] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.sla_exceeded) + len(self.ready) + len(self.not_ready)


def filter_pull_requests(
    prs: Iterable[PullRequest],
    *,
    ignored_repositories: Iterable[str] = (),
    hide_drafts: bool = False,
    hide_approved_by_me: bool = False,
    hide_not_ready: bool = False,
    required_checks: Sequence[str] = (),
    ignored_checks: Sequence[str] = (),
) -> list[PullRequest]:
    """Filter pull requests by user settings.

    Repository, draft and approved-by-me filters run first; the not-ready
    filter runs last, on what the others kept.

    Args:
        prs: Pull requests to filter
        ignored_repositories: Repositories (owner/repo) to drop
        hide_drafts: Drop drafts
        hide_approved_by_me: Drop pull requests the viewer approved
        hide_not_ready: Drop pull requests that are not ready
        required_checks: Required check names used for readiness
        ignored_checks: Ignored check names used for readiness

    Returns:
        Filtered pull requests in input order
    """
    ignored_repos = set(ignored_repositories)
    kept = []
    for pr in prs:
        if pr.repo_full_name in ignored_repos:
            continue
        if hide_drafts and pr.state == PRState.DRAFT:
            continue
        if hide_approved_by_me and pr.viewer_has_approved:
            continue
        kept.append(pr)

    if hide_not_ready:
        kept = [pr for pr in kept if pr.is_ready(required_checks, ignored_checks)]

    return kept


def partition_by_readiness(
    prs: Iterable[PullRequest],
    *,
    required_checks: Sequence[str] = (),
    ignored_checks: Sequence[str] = (),
    sla_enabled: bool = False,
    sla_minutes: int = DEFAULT_REVIEW_SLA_MINUTES,
    now: datetime | None = None,
) -> ReadinessPartition:
    """Partition pull requests into SLA-exceeded, ready and not-ready.

    An SLA-exceeded pull request (only when the SLA is enabled) is never
    also reported as ready or not ready.
    """
    partition = ReadinessPartition()
    for pr in prs:
        if sla_enabled and pr.is_sla_exceeded(sla_minutes, now=now):
            partition.sla_exceeded.append(pr)
        elif pr.is_ready(required_checks, ignored_checks):
            partition.ready.append(pr)
        else:
            partition.not_ready.append(pr)
    return partition
