"""Review gate state machine.

    none --request--> pending --approve--> approved
                        |  \\--reject---> rejected --request--> pending
                        \\--cancel--> none

Each operation returns a :class:`ReviewDecision` carrying the column
updates to apply. Services persist those updates with a compare-and-set
on the review status the decision was computed from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from phasectl.domain.catalog import is_terminal
from phasectl.domain.models import WorkItem
from phasectl.domain.permissions import PermissionSet
from phasectl.domain.types import ReasonCode, ReviewStatus

_REQUESTABLE = frozenset({ReviewStatus.NONE, ReviewStatus.REJECTED})


@dataclass(frozen=True)
class ReviewDecision:
    allowed: bool
    reason: ReasonCode | None = None
    message: str = ""
    changes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def block(cls, reason: ReasonCode, message: str) -> ReviewDecision:
        return cls(allowed=False, reason=reason, message=message)

    def apply(self, item: WorkItem) -> WorkItem:
        """Return *item* with this decision's changes applied."""
        return item.model_copy(update=self.changes) if self.allowed else item


def request_review(
    item: WorkItem,
    permissions: PermissionSet,
    *,
    now: datetime,
    require_edit: bool = False,
) -> ReviewDecision:
    """Move the review to pending.

    Any member who can view the current phase may request, unless
    *require_edit* restricts requests to members who can edit it.
    Re-requesting after a rejection is always allowed.
    """
    if not item.review_enabled:
        return ReviewDecision.block(ReasonCode.REVIEW_DISABLED, f"Review is disabled for {item.id}")
    if is_terminal(item.type, item.phase):
        return ReviewDecision.block(
            ReasonCode.ALREADY_TERMINAL, f"{item.id} is in terminal phase {item.phase!r}"
        )
    phase_perms = permissions.for_phase(item.phase)
    if not phase_perms.can_view or (require_edit and not phase_perms.can_edit):
        return ReviewDecision.block(
            ReasonCode.FORBIDDEN, f"Not allowed to request review in {item.phase!r}"
        )
    if item.review_status not in _REQUESTABLE:
        return ReviewDecision.block(
            ReasonCode.REVIEW_ALREADY_ACTIVE,
            f"Review for {item.id} is already {item.review_status}",
        )
    return ReviewDecision(
        allowed=True,
        message="Review requested",
        changes={
            "review_status": ReviewStatus.PENDING,
            "review_requested_at": now,
            "review_completed_at": None,
            "review_reason": None,
        },
    )


def _check_reviewer(item: WorkItem, permissions: PermissionSet) -> ReviewDecision | None:
    if not permissions.for_phase(item.phase).is_lead:
        return ReviewDecision.block(
            ReasonCode.FORBIDDEN,
            f"Only a lead of {item.phase!r} or a team admin can decide reviews",
        )
    if item.review_status != ReviewStatus.PENDING:
        return ReviewDecision.block(
            ReasonCode.REVIEW_NOT_PENDING,
            f"Review for {item.id} is {item.review_status}, not pending",
        )
    return None


def approve_review(item: WorkItem, permissions: PermissionSet, *, now: datetime) -> ReviewDecision:
    blocked = _check_reviewer(item, permissions)
    if blocked is not None:
        return blocked
    return ReviewDecision(
        allowed=True,
        message="Review approved",
        changes={"review_status": ReviewStatus.APPROVED, "review_completed_at": now},
    )


def reject_review(
    item: WorkItem,
    reason: str | None,
    permissions: PermissionSet,
    *,
    now: datetime,
) -> ReviewDecision:
    """Reject a pending review. A non-blank *reason* is mandatory."""
    if reason is None or not reason.strip():
        return ReviewDecision.block(
            ReasonCode.MISSING_REJECTION_REASON, "A rejection reason is required"
        )
    blocked = _check_reviewer(item, permissions)
    if blocked is not None:
        return blocked
    return ReviewDecision(
        allowed=True,
        message="Review rejected",
        changes={
            "review_status": ReviewStatus.REJECTED,
            "review_reason": reason.strip(),
            "review_completed_at": now,
        },
    )


def cancel_review(item: WorkItem, permissions: PermissionSet) -> ReviewDecision:
    if not permissions.for_phase(item.phase).can_edit:
        return ReviewDecision.block(
            ReasonCode.FORBIDDEN, f"No edit permission on phase {item.phase!r}"
        )
    if item.review_status != ReviewStatus.PENDING:
        return ReviewDecision.block(
            ReasonCode.REVIEW_NOT_PENDING,
            f"Review for {item.id} is {item.review_status}, not pending",
        )
    return ReviewDecision(
        allowed=True,
        message="Review cancelled",
        changes={
            "review_status": ReviewStatus.NONE,
            "review_requested_at": None,
            "review_completed_at": None,
            "review_reason": None,
        },
    )


def set_review_enabled(
    item: WorkItem, enabled: bool, permissions: PermissionSet
) -> ReviewDecision:
    """Toggle the review gate. Team owners and admins only."""
    if not permissions.is_admin:
        return ReviewDecision.block(
            ReasonCode.FORBIDDEN, "Only team owners and admins can toggle review"
        )
    state = "enabled" if enabled else "disabled"
    return ReviewDecision(
        allowed=True,
        message=f"Review {state}",
        changes={"review_enabled": enabled},
    )
