"""
Unit tests for the PullRequest entity and readiness engine.

Why: Readiness, effective CI status and SLA checks decide what the user sees
     as actionable, so their edge cases must hold exactly.

What: Tests effective values under ignored checks, readiness rules, SLA
      boundaries, status rollup and entity validation.

How: Builds entities directly and calls the pure methods with explicit
     configuration values.
"""

from datetime import timedelta

import pytest

from pr_status_watcher.models import (
    CheckCounts,
    CheckInfo,
    CheckResult,
    CheckResultStatus,
    CIStatus,
    MergeableState,
    PRState,
    PullRequest,
    ReviewDecision,
    StatusColor,
    resolve_overall_status,
)
from tests.fixtures.fakes import FIXED_NOW, make_check, make_pr

PASSED = CheckResultStatus.PASSED
PENDING = CheckResultStatus.PENDING
FAILED = CheckResultStatus.FAILED


class TestResolveOverallStatus:
    """Test the CI status rollup."""

    def test_no_checks_is_unknown(self) -> None:
        assert resolve_overall_status(0, 0, 0, 0, "SUCCESS") == CIStatus.UNKNOWN

    def test_failure_wins_over_pending(self) -> None:
        assert resolve_overall_status(3, 1, 1, 1) == CIStatus.FAILURE

    def test_pending_without_failures(self) -> None:
        assert resolve_overall_status(2, 1, 0, 1) == CIStatus.PENDING

    def test_all_passed_is_success(self) -> None:
        assert resolve_overall_status(2, 2, 0, 0) == CIStatus.SUCCESS

    @pytest.mark.parametrize(
        "rollup_state,expected",
        [
            ("SUCCESS", CIStatus.SUCCESS),
            ("FAILURE", CIStatus.FAILURE),
            ("ERROR", CIStatus.FAILURE),
            ("PENDING", CIStatus.PENDING),
            ("EXPECTED", CIStatus.UNKNOWN),
            (None, CIStatus.UNKNOWN),
        ],
    )
    def test_rollup_fallback_without_tallied_checks(
        self, rollup_state: str | None, expected: CIStatus
    ) -> None:
        """Test that the aggregate state is used when no check was tallied."""
        assert resolve_overall_status(4, 0, 0, 0, rollup_state) == expected


class TestPullRequestIdentity:
    """Test identity and display properties."""

    def test_id_and_names(self) -> None:
        pr = make_pr(number=12, owner="o", repo="r")

        assert pr.id == "o/r#12"
        assert pr.repo_full_name == "o/r"
        assert pr.display_number == "#12"

    def test_entities_are_immutable(self) -> None:
        pr = make_pr()

        with pytest.raises(AttributeError):
            pr.title = "changed"  # type: ignore[misc]

    def test_sort_priority(self) -> None:
        assert make_pr(state=PRState.OPEN).sort_priority == 0
        assert make_pr(state=PRState.DRAFT).sort_priority == 1
        assert make_pr(is_in_merge_queue=True, queue_position=1).sort_priority == 2
        assert make_pr(state=PRState.MERGED).sort_priority == 3
        assert make_pr(state=PRState.CLOSED).sort_priority == 3

    def test_review_sort_priority(self) -> None:
        assert make_pr(review_decision=ReviewDecision.REVIEW_REQUIRED).review_sort_priority == 0
        assert make_pr(review_decision=ReviewDecision.CHANGES_REQUESTED).review_sort_priority == 1
        assert make_pr(review_decision=ReviewDecision.APPROVED).review_sort_priority == 2

    def test_status_color(self) -> None:
        assert make_pr(ci_status=CIStatus.SUCCESS).status_color == StatusColor.GREEN
        assert make_pr(ci_status=CIStatus.FAILURE).status_color == StatusColor.RED
        assert make_pr(ci_status=CIStatus.PENDING).status_color == StatusColor.ORANGE
        assert make_pr(ci_status=CIStatus.UNKNOWN).status_color == StatusColor.GRAY
        assert make_pr(state=PRState.MERGED).status_color == StatusColor.PURPLE
        assert make_pr(state=PRState.DRAFT, ci_status=CIStatus.SUCCESS).status_color == StatusColor.GRAY
        assert make_pr(is_in_merge_queue=True).status_color == StatusColor.PURPLE


class TestEffectiveValues:
    """Test values recomputed without ignored checks."""

    def test_ignoring_failing_check_yields_success(self) -> None:
        """Test the build/flaky scenario with flaky ignored."""
        pr = make_pr(checks=[make_check("build", PASSED), make_check("flaky", FAILED)])

        assert pr.ci_status == CIStatus.FAILURE
        assert pr.effective_ci_status(["flaky"]) == CIStatus.SUCCESS
        assert pr.effective_check_counts(["flaky"]) == CheckCounts(total=1, passed=1, failed=0)
        assert pr.effective_failed_checks(["flaky"]) == ()
        assert pr.effective_status_color(["flaky"]) == StatusColor.GREEN

    @pytest.mark.parametrize(
        "pr",
        [
            make_pr(checks=[make_check("build", PASSED), make_check("lint", FAILED)]),
            make_pr(checks=[make_check("build", PENDING)]),
            make_pr(checks=[make_check("build", PASSED)]),
            make_pr(ci_status=CIStatus.SUCCESS),
            make_pr(ci_status=CIStatus.PENDING),
            make_pr(),
        ],
    )
    def test_empty_ignore_list_is_a_no_op(self, pr: PullRequest) -> None:
        """Test that effective values equal raw values with nothing ignored."""
        assert pr.effective_ci_status([]) == pr.ci_status
        assert pr.effective_check_results([]) is pr.check_results
        assert pr.effective_failed_checks([]) == pr.failed_checks
        assert pr.effective_status_color([]) == pr.status_color

    def test_all_checks_ignored_is_unknown(self) -> None:
        pr = make_pr(checks=[make_check("flaky", FAILED)])

        assert pr.effective_ci_status(["flaky"]) == CIStatus.UNKNOWN
        assert pr.effective_check_counts(["flaky"]) == CheckCounts(0, 0, 0)

    def test_rollup_only_status_with_ignore_list_is_unknown(self) -> None:
        """Test that a status without check results is not judged once checks are ignored."""
        pr = make_pr(ci_status=CIStatus.PENDING)

        assert pr.effective_ci_status(["unrelated"]) == CIStatus.UNKNOWN
        assert pr.effective_status_color(["unrelated"]) == StatusColor.GRAY
        assert pr.is_ready([], ["unrelated"]) is True
        assert pr.is_ready([]) is False

    def test_unmatched_ignore_recomputes_from_checks(self) -> None:
        pr = make_pr(checks=[make_check("build", PASSED), make_check("lint", PENDING)])

        assert pr.effective_ci_status(["unrelated"]) == CIStatus.PENDING

    def test_ignoring_never_mutates_entity(self) -> None:
        pr = make_pr(checks=[make_check("flaky", FAILED)])

        pr.effective_ci_status(["flaky"])

        assert pr.ci_status == CIStatus.FAILURE
        assert pr.checks_failed == 1
        assert pr.failed_checks == (CheckInfo("flaky", "https://ci.example/flaky"),)


class TestIsReady:
    """Test readiness rules."""

    def test_draft_is_never_ready(self) -> None:
        pr = make_pr(state=PRState.DRAFT, checks=[make_check("build", PASSED)])

        assert pr.is_ready([]) is False

    def test_conflicting_is_never_ready(self) -> None:
        pr = make_pr(
            mergeable=MergeableState.CONFLICTING, checks=[make_check("build", PASSED)]
        )

        assert pr.is_ready([]) is False

    @pytest.mark.parametrize(
        "status,expected",
        [
            (CIStatus.SUCCESS, True),
            (CIStatus.UNKNOWN, True),
            (CIStatus.FAILURE, False),
            (CIStatus.PENDING, False),
        ],
    )
    def test_without_required_checks_follows_ci_status(
        self, status: CIStatus, expected: bool
    ) -> None:
        assert make_pr(ci_status=status).is_ready([]) is expected

    def test_missing_required_check_is_skipped(self) -> None:
        """Test that a required check absent from the pipeline does not block."""
        pr = make_pr(checks=[make_check("build", PASSED)])

        assert pr.is_ready(["Bazel-Pipeline-PR"]) is True

    def test_failing_required_check_blocks(self) -> None:
        pr = make_pr(checks=[make_check("build", FAILED), make_check("lint", PASSED)])

        assert pr.is_ready(["build"]) is False

    def test_pending_required_check_blocks(self) -> None:
        pr = make_pr(checks=[make_check("build", PENDING)])

        assert pr.is_ready(["build"]) is False

    def test_only_required_checks_matter(self) -> None:
        """Test that non-required failures do not block once required checks pass."""
        pr = make_pr(checks=[make_check("build", PASSED), make_check("docs", FAILED)])

        assert pr.is_ready(["build"]) is True

    def test_ignored_required_check_is_skipped(self) -> None:
        pr = make_pr(checks=[make_check("build", FAILED)])

        assert pr.is_ready(["build"], ["build"]) is True

    @pytest.mark.parametrize("required", [[], ["build"], ["build", "flaky"]])
    def test_ignoring_failing_check_never_makes_ready_false(
        self, required: list[str]
    ) -> None:
        """Test readiness monotonicity when a failing check gets ignored."""
        pr = make_pr(checks=[make_check("build", PASSED), make_check("flaky", FAILED)])

        before = pr.is_ready(required, [])
        after = pr.is_ready(required, ["flaky"])

        assert after is True
        assert not (before and not after)


class TestSLA:
    """Test review SLA deadline evaluation."""

    def test_exactly_at_deadline_is_not_exceeded(self) -> None:
        pr = make_pr(published_at=FIXED_NOW - timedelta(minutes=480))

        assert pr.is_sla_exceeded(480, now=FIXED_NOW) is False
        assert pr.is_sla_exceeded(480, now=FIXED_NOW + timedelta(seconds=1)) is True

    def test_unpublished_never_exceeds(self) -> None:
        pr = make_pr(published_at=None)

        assert pr.is_sla_exceeded(1, now=FIXED_NOW + timedelta(days=365)) is False


class TestValidate:
    """Test entity invariant validation."""

    def test_consistent_entity_is_valid(self) -> None:
        pr = make_pr(checks=[make_check("build", PASSED), make_check("lint", FAILED)])

        assert pr.validate() is True

    def test_failed_count_mismatch(self) -> None:
        pr = PullRequest(
            owner="o",
            repo="r",
            number=1,
            title="t",
            author="a",
            url="https://github.com/o/r/pull/1",
            checks_total=1,
            checks_failed=0,
            check_results=(CheckResult("build", FAILED),),
        )

        with pytest.raises(ValueError, match="checks_failed"):
            pr.validate()

    def test_non_positive_number(self) -> None:
        pr = make_pr(number=0)

        with pytest.raises(ValueError, match="positive"):
            pr.validate()
