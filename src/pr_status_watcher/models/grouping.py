"""Grouping and ordering of pull requests for display."""

from collections import defaultdict
from collections.abc import Iterable

from .pull_request import PullRequest


def group_by_repository(
    prs: Iterable[PullRequest],
    is_reviews: bool = False,
) -> list[tuple[str, list[PullRequest]]]:
    """Group pull requests by repository.

    Repositories are sorted by name. Within a repository, review requests are
    ordered by review priority and then by fewest approvals; every list is then
    ordered by lifecycle priority and number.

    Args:
        prs: Pull requests to group (already filtered)
        is_reviews: Apply review-request ordering first

    Returns:
        List of (repository full name, sorted pull requests) pairs
    """
    groups: dict[str, list[PullRequest]] = defaultdict(list)
    for pr in prs:
        groups[pr.repo_full_name].append(pr)

    def sort_key(pr: PullRequest) -> tuple[int, ...]:
        if is_reviews:
            return (pr.review_sort_priority, pr.approval_count, pr.sort_priority, pr.number)
        return (pr.sort_priority, pr.number)

    return [(repo, sorted(groups[repo], key=sort_key)) for repo in sorted(groups)]
