"""Enums for the pull request entity model."""

import enum


class PRState(str, enum.Enum):
    """Pull request lifecycle state."""

    OPEN = "open"
    DRAFT = "draft"
    CLOSED = "closed"
    MERGED = "merged"


class CIStatus(str, enum.Enum):
    """Aggregate CI status of a pull request's head commit."""

    UNKNOWN = "unknown"
    SUCCESS = "success"
    PENDING = "pending"
    FAILURE = "failure"


class CheckResultStatus(str, enum.Enum):
    """Normalized status of a single check."""

    PASSED = "passed"
    PENDING = "pending"
    FAILED = "failed"


class ReviewDecision(str, enum.Enum):
    """Review decision reported for a pull request."""

    NONE = "none"
    REVIEW_REQUIRED = "review_required"
    CHANGES_REQUESTED = "changes_requested"
    APPROVED = "approved"


class MergeableState(str, enum.Enum):
    """Whether the pull request can be merged cleanly."""

    UNKNOWN = "unknown"
    MERGEABLE = "mergeable"
    CONFLICTING = "conflicting"


class StatusColor(str, enum.Enum):
    """Canonical status color shown next to a pull request."""

    GREEN = "green"
    RED = "red"
    ORANGE = "orange"
    PURPLE = "purple"
    GRAY = "gray"
