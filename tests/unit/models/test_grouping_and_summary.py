"""
Unit tests for repository grouping and status summaries.

Why: The grouped list and the compact summary are what a presentation layer
     renders from the worker's state.

What: Tests group ordering, overall status precedence and summary strings.

How: Calls the pure helpers on hand-built pull requests.
"""

import pytest

from pr_status_watcher.models import (
    CIStatus,
    OverallStatus,
    PRState,
    ReviewDecision,
    group_by_repository,
)
from pr_status_watcher.models.summary import (
    has_failure,
    overall_status,
    refresh_interval_label,
    status_bar_summary,
)
from tests.fixtures.fakes import make_pr


class TestGroupByRepository:
    """Test grouping by repository."""

    def test_repositories_sorted_by_name(self) -> None:
        prs = [make_pr(number=1, repo="zeta"), make_pr(number=2, repo="alpha")]

        groups = group_by_repository(prs)

        assert [repo for repo, _ in groups] == ["octo/alpha", "octo/zeta"]

    def test_authored_order_by_lifecycle_then_number(self) -> None:
        prs = [
            make_pr(number=5, state=PRState.DRAFT),
            make_pr(number=9),
            make_pr(number=3, is_in_merge_queue=True),
            make_pr(number=7),
        ]

        [(_, grouped)] = group_by_repository(prs)

        assert [pr.number for pr in grouped] == [7, 9, 5, 3]

    def test_review_order_by_review_priority_and_approvals(self) -> None:
        prs = [
            make_pr(number=1, review_decision=ReviewDecision.APPROVED, approval_count=2),
            make_pr(number=2, review_decision=ReviewDecision.REVIEW_REQUIRED, approval_count=1),
            make_pr(number=3, review_decision=ReviewDecision.REVIEW_REQUIRED, approval_count=0),
            make_pr(number=4, review_decision=ReviewDecision.CHANGES_REQUESTED),
        ]

        [(_, grouped)] = group_by_repository(prs, is_reviews=True)

        assert [pr.number for pr in grouped] == [3, 2, 4, 1]


class TestSummary:
    """Test overall status and summary strings."""

    def test_overall_status_precedence(self) -> None:
        assert overall_status([]) == OverallStatus.IDLE
        assert (
            overall_status(
                [make_pr(number=1, ci_status=CIStatus.PENDING), make_pr(number=2, ci_status=CIStatus.FAILURE)]
            )
            == OverallStatus.FAILURE
        )
        assert overall_status([make_pr(ci_status=CIStatus.PENDING)]) == OverallStatus.PENDING
        assert (
            overall_status([make_pr(state=PRState.MERGED, ci_status=CIStatus.SUCCESS)])
            == OverallStatus.SETTLED
        )
        assert overall_status([make_pr(ci_status=CIStatus.SUCCESS)]) == OverallStatus.SUCCESS

    def test_has_failure(self) -> None:
        assert has_failure([make_pr(ci_status=CIStatus.FAILURE)]) is True
        assert has_failure([make_pr(ci_status=CIStatus.SUCCESS)]) is False

    def test_status_bar_summary_omits_zero_counts(self) -> None:
        prs = [
            make_pr(number=1, state=PRState.DRAFT),
            make_pr(number=2),
            make_pr(number=3),
            make_pr(number=4, is_in_merge_queue=True),
        ]

        assert status_bar_summary(prs) == "1·2·1"
        assert status_bar_summary([make_pr(number=1), make_pr(number=2)]) == "2"
        assert status_bar_summary([]) == ""

    @pytest.mark.parametrize(
        "seconds,label",
        [(30, "30s"), (60, "1 min"), (300, "5 min"), (90, "90s")],
    )
    def test_refresh_interval_label(self, seconds: int, label: str) -> None:
        assert refresh_interval_label(seconds) == label
