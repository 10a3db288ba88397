"""Classification enums and reason codes.

Work item types, team roles, review statuses, and timeline buckets,
plus the closed set of reason codes every guard and service reports.
"""

from __future__ import annotations

from enum import StrEnum


class WorkItemType(StrEnum):
    """Primary work item types."""

    FEATURE = "feature"
    ENHANCEMENT = "enhancement"
    BUG = "bug"
    CONCEPT = "concept"


class TeamRole(StrEnum):
    """Team membership roles."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


ADMIN_ROLES: frozenset[str] = frozenset({TeamRole.OWNER, TeamRole.ADMIN})


class ReviewStatus(StrEnum):
    """Detached review workflow status."""

    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TimelineBucket(StrEnum):
    """Presentation bucket derived from planned dates."""

    MVP = "MVP"
    SHORT = "SHORT"
    LONG = "LONG"


class ReasonCode(StrEnum):
    """Reason codes surfaced by guards and services.

    Callers map these to user-facing messages; none of them are crashes.
    ``UNKNOWN_TYPE`` is the only configuration-level code.
    """

    NOT_A_MEMBER = "NOT_A_MEMBER"
    INVALID_PHASE_FOR_TYPE = "INVALID_PHASE_FOR_TYPE"
    FORBIDDEN = "FORBIDDEN"
    ALREADY_TERMINAL = "ALREADY_TERMINAL"
    REVIEW_REQUIRED = "REVIEW_REQUIRED"
    OUT_OF_ORDER = "OUT_OF_ORDER"
    MISSING_REJECTION_REASON = "MISSING_REJECTION_REASON"
    UNKNOWN_TYPE = "UNKNOWN_TYPE"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    FIELD_LOCKED = "FIELD_LOCKED"
    REVIEW_DISABLED = "REVIEW_DISABLED"
    REVIEW_ALREADY_ACTIVE = "REVIEW_ALREADY_ACTIVE"
    REVIEW_NOT_PENDING = "REVIEW_NOT_PENDING"
    ALREADY_ENHANCED = "ALREADY_ENHANCED"
    NOT_ENHANCEABLE = "NOT_ENHANCEABLE"
    INVALID_ROLE = "INVALID_ROLE"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    ALREADY_EXISTS = "ALREADY_EXISTS"
