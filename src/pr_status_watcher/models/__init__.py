"""Pull request entity model and readiness engine."""

from .enums import (
    CheckResultStatus,
    CIStatus,
    MergeableState,
    PRState,
    ReviewDecision,
    StatusColor,
)
from .filters import (
    DEFAULT_REVIEW_SLA_MINUTES,
    FilterSettings,
    ReadinessPartition,
    filter_pull_requests,
    partition_by_readiness,
)
from .grouping import group_by_repository
from .pull_request import (
    CheckCounts,
    CheckInfo,
    CheckResult,
    PullRequest,
    resolve_overall_status,
)
from .summary import OverallStatus

__all__ = [
    "DEFAULT_REVIEW_SLA_MINUTES",
    "CIStatus",
    "CheckCounts",
    "CheckInfo",
    "CheckResult",
    "CheckResultStatus",
    "FilterSettings",
    "MergeableState",
    "OverallStatus",
    "PRState",
    "PullRequest",
    "ReadinessPartition",
    "ReviewDecision",
    "StatusColor",
    "filter_pull_requests",
    "group_by_repository",
    "partition_by_readiness",
    "resolve_overall_status",
]
