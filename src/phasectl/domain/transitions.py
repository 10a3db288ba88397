"""Phase transition guard.

Checks a requested phase change in a fixed order and reports the first
rule that blocks it:

1. target phase exists for the item's type
2. actor can edit the *current* phase
3. current phase is not terminal
4. a review-gated target has an approved review (when review is on)
5. target is an immediate successor (branches count as successors)

The guard never writes. Services perform the compare-and-set.
"""

from __future__ import annotations

from dataclasses import dataclass

from phasectl.domain.catalog import get_entry
from phasectl.domain.models import WorkItem
from phasectl.domain.permissions import PermissionSet
from phasectl.domain.types import ReasonCode, ReviewStatus


@dataclass(frozen=True)
class TransitionDecision:
    allowed: bool
    reason: ReasonCode | None = None
    message: str = ""

    @classmethod
    def allow(cls, message: str = "") -> TransitionDecision:
        return cls(allowed=True, message=message)

    @classmethod
    def block(cls, reason: ReasonCode, message: str) -> TransitionDecision:
        return cls(allowed=False, reason=reason, message=message)


def review_satisfied(item: WorkItem) -> bool:
    """True when the item may enter a review-gated phase."""
    return not item.review_enabled or item.review_status == ReviewStatus.APPROVED


def can_transition(
    item: WorkItem,
    target_phase: str,
    permissions: PermissionSet,
) -> TransitionDecision:
    """Decide whether *permissions* allow moving *item* to *target_phase*."""
    entry = get_entry(item.type)
    current = item.phase

    if target_phase not in entry.phases:
        return TransitionDecision.block(
            ReasonCode.INVALID_PHASE_FOR_TYPE,
            f"{target_phase!r} is not a phase of {item.type} "
            f"(expected one of {', '.join(entry.phases)})",
        )

    if not permissions.for_phase(current).can_edit:
        return TransitionDecision.block(
            ReasonCode.FORBIDDEN,
            f"No edit permission on phase {current!r}",
        )

    if current in entry.terminal:
        return TransitionDecision.block(
            ReasonCode.ALREADY_TERMINAL,
            f"{item.id} is in terminal phase {current!r}",
        )

    if target_phase in entry.review_gated and not review_satisfied(item):
        return TransitionDecision.block(
            ReasonCode.REVIEW_REQUIRED,
            f"Entering {target_phase!r} requires an approved review "
            f"(current status: {item.review_status})",
        )

    successors = entry.successors(current)
    if target_phase not in successors:
        return TransitionDecision.block(
            ReasonCode.OUT_OF_ORDER,
            f"Cannot move from {current!r} to {target_phase!r}; "
            f"next: {', '.join(successors)}",
        )

    return TransitionDecision.allow(f"{current} -> {target_phase}")
