"""Conversion of GraphQL pull request nodes into ``PullRequest`` entities."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import urlparse

from ..models import (
    CheckInfo,
    CheckResult,
    CheckResultStatus,
    CIStatus,
    MergeableState,
    PRState,
    PullRequest,
    ReviewDecision,
    resolve_overall_status,
)
from .graphql import CheckContextNode, LatestReviewConnection, PullRequestNode

logger = logging.getLogger(__name__)

PASSING_CONCLUSIONS = frozenset({"SUCCESS", "SKIPPED", "NEUTRAL"})
FAILING_CONTEXT_STATES = frozenset({"FAILURE", "ERROR"})

SHORT_SHA_LENGTH = 7
UNKNOWN_AUTHOR = "unknown"


@dataclass(frozen=True)
class CheckRollup:
    """Per-check results plus the overall status derived from them."""

    status: CIStatus
    results: tuple[CheckResult, ...] = ()


def parse_review_decision(value: str | None) -> ReviewDecision:
    match value:
        case "APPROVED":
            return ReviewDecision.APPROVED
        case "CHANGES_REQUESTED":
            return ReviewDecision.CHANGES_REQUESTED
        case "REVIEW_REQUIRED":
            return ReviewDecision.REVIEW_REQUIRED
        case _:
            return ReviewDecision.NONE


def parse_mergeable_state(value: str | None) -> MergeableState:
    match value:
        case "MERGEABLE":
            return MergeableState.MERGEABLE
        case "CONFLICTING":
            return MergeableState.CONFLICTING
        case _:
            return MergeableState.UNKNOWN


def parse_pr_state(value: str | None, is_draft: bool) -> PRState:
    """Lifecycle state, where merged and closed win over the draft flag."""
    match value:
        case "MERGED":
            return PRState.MERGED
        case "CLOSED":
            return PRState.CLOSED
        case _:
            return PRState.DRAFT if is_draft else PRState.OPEN


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp; unparseable values count as absent."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Ignoring unparseable timestamp {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def split_repository(name_with_owner: str | None) -> tuple[str, str] | None:
    """Split ``owner/repo`` into exactly two non-empty parts."""
    if not name_with_owner:
        return None
    parts = name_with_owner.split("/")
    if len(parts) != 2 or not all(parts):
        return None
    return parts[0], parts[1]


def is_valid_url(value: str | None) -> bool:
    if not value:
        return False
    parsed = urlparse(value)
    return bool(parsed.scheme and parsed.netloc)


def classify_check_run(status: str | None, conclusion: str | None) -> CheckResultStatus:
    """Classify a check run.

    Anything not completed is pending; a completed run passes only with a
    success, skipped or neutral conclusion.
    """
    if (status or "").upper() != "COMPLETED":
        return CheckResultStatus.PENDING
    if (conclusion or "").upper() in PASSING_CONCLUSIONS:
        return CheckResultStatus.PASSED
    return CheckResultStatus.FAILED


def classify_status_context(state: str | None) -> CheckResultStatus:
    """Classify a commit status context."""
    normalized = (state or "").upper()
    if normalized == "SUCCESS":
        return CheckResultStatus.PASSED
    if normalized in FAILING_CONTEXT_STATES:
        return CheckResultStatus.FAILED
    return CheckResultStatus.PENDING


def convert_check_node(node: CheckContextNode) -> CheckResult | None:
    """Normalize one rollup context node.

    Returns:
        The check result, or None for nodes that carry nothing to report
    """
    if node.is_status_context:
        if not node.context:
            return None
        return CheckResult(
            name=node.context,
            status=classify_status_context(node.state),
            details_url=node.target_url,
        )

    if node.status is None and node.conclusion is None:
        return None
    if not node.name:
        logger.debug("Skipping check run without a name")
        return None
    return CheckResult(
        name=node.name,
        status=classify_check_run(node.status, node.conclusion),
        details_url=node.details_url,
    )


def extract_check_rollup(node: PullRequestNode, pr_id: str = "") -> CheckRollup:
    """Assemble per-check results and the overall CI status of the head commit."""
    rollup = node.status_check_rollup
    if rollup is None:
        return CheckRollup(status=CIStatus.UNKNOWN)

    contexts = rollup.contexts
    total = contexts.total_count if contexts else 0
    raw_nodes = [n for n in contexts.nodes if n is not None] if contexts else []
    if total > len(raw_nodes):
        logger.warning(
            f"Check contexts for {pr_id or 'pull request'} truncated: "
            f"{len(raw_nodes)} of {total} fetched"
        )

    results = tuple(r for r in (convert_check_node(n) for n in raw_nodes) if r is not None)
    statuses = [r.status for r in results]
    status = resolve_overall_status(
        total=total,
        passed=statuses.count(CheckResultStatus.PASSED),
        failed=statuses.count(CheckResultStatus.FAILED),
        pending=statuses.count(CheckResultStatus.PENDING),
        rollup_state=rollup.state,
    )
    return CheckRollup(status=status, results=results)


def viewer_has_approved(
    latest_reviews: LatestReviewConnection | None, viewer_username: str
) -> bool:
    """Whether the viewer's most recent review is an approval."""
    if latest_reviews is None or not viewer_username:
        return False
    viewer = viewer_username.lower()
    for review in latest_reviews.nodes:
        if review is None or review.author is None or not review.author.login:
            continue
        if review.author.login.lower() == viewer and review.state == "APPROVED":
            return True
    return False


def _failed_subset(results: Iterable[CheckResult]) -> tuple[CheckInfo, ...]:
    return tuple(
        r.to_check_info() for r in results if r.status == CheckResultStatus.FAILED
    )


def convert_node(
    node: PullRequestNode,
    viewer_username: str,
    fetched_at: datetime | None = None,
) -> PullRequest | None:
    """Convert a decoded search node into a pull request.

    Args:
        node: Decoded pull request node
        viewer_username: Login of the viewer, for approval detection
        fetched_at: Fetch time recorded on the entity (now by default)

    Returns:
        The pull request, or None if a required field is missing
    """
    if node.number is None or not node.title or not is_valid_url(node.url):
        return None

    repository = split_repository(node.repository.name_with_owner if node.repository else None)
    if repository is None:
        return None
    owner, repo = repository

    author = node.author.login if node.author and node.author.login else UNKNOWN_AUTHOR
    rollup = extract_check_rollup(node, pr_id=f"{owner}/{repo}#{node.number}")
    statuses = [r.status for r in rollup.results]

    queue_entry = node.merge_queue_entry
    return PullRequest(
        owner=owner,
        repo=repo,
        number=node.number,
        title=node.title,
        author=author,
        url=node.url or "",
        head_sha=(node.head_ref_oid or "")[:SHORT_SHA_LENGTH],
        head_branch=node.head_ref_name or "",
        state=parse_pr_state(node.state, bool(node.is_draft)),
        is_in_merge_queue=queue_entry is not None,
        queue_position=queue_entry.position if queue_entry else None,
        review_decision=parse_review_decision(node.review_decision),
        approval_count=node.reviews.total_count if node.reviews else 0,
        viewer_has_approved=viewer_has_approved(node.latest_reviews, viewer_username),
        mergeable=parse_mergeable_state(node.mergeable),
        ci_status=rollup.status,
        checks_total=len(rollup.results),
        checks_passed=statuses.count(CheckResultStatus.PASSED),
        checks_failed=statuses.count(CheckResultStatus.FAILED),
        failed_checks=_failed_subset(rollup.results),
        check_results=rollup.results,
        published_at=parse_timestamp(node.published_at),
        last_fetched=fetched_at or datetime.now(UTC),
    )
