"""ReviewService: request, decide, cancel, and toggle work item reviews.

All writes are compare-and-set on the review status (and phase) that
the domain decision was computed from.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from phasectl.domain.models import WorkItem
from phasectl.domain.permissions import PermissionSet
from phasectl.domain.review import (
    ReviewDecision,
    approve_review,
    cancel_review,
    reject_review,
    request_review,
    set_review_enabled,
)
from phasectl.domain.types import ReasonCode
from phasectl.infrastructure.repositories import compare_and_set_review, load_work_item
from phasectl.services._helpers import failure, now_iso, utc_now
from phasectl.services.base import BaseService
from phasectl.services.result import ServiceResult
from phasectl.services.telemetry import traced

Decide = Callable[[WorkItem, PermissionSet], ReviewDecision]


class ReviewService(BaseService):
    """Review gate operations on a single work item."""

    def _apply(
        self,
        op: str,
        action: str,
        team_id: str,
        work_item_id: str,
        decide: Decide,
        *,
        actor: str,
    ) -> ServiceResult:
        with self._store.transaction() as txn:
            membership = self._load_membership(txn.conn, team_id, actor)
            if membership is None:
                return self._not_a_member(op, team_id, actor)
            row = load_work_item(txn.conn, work_item_id, team_id=team_id)
            if row is None:
                return failure(
                    op,
                    ReasonCode.NOT_FOUND,
                    f"No work item {work_item_id} in {team_id}",
                    work_item_id=work_item_id,
                )
            item = WorkItem.model_validate(row)
            permissions = self._load_permissions(txn.conn, membership, item.workspace_id)

            decision = decide(item, permissions)
            if not decision.allowed:
                return failure(
                    op,
                    decision.reason,
                    decision.message,
                    work_item_id=work_item_id,
                    review_status=str(item.review_status),
                )
            if not compare_and_set_review(
                txn.conn,
                work_item_id,
                team_id=team_id,
                expected_phase=item.phase,
                expected_review_status=item.review_status,
                changes=decision.changes,
                modified=now_iso(),
            ):
                return failure(
                    op,
                    ReasonCode.CONFLICT,
                    f"Review state of {work_item_id} changed concurrently; reload and retry",
                    work_item_id=work_item_id,
                )

        updated = decision.apply(item)
        warnings: list[str] = []
        self._dispatch_event(
            "post_review",
            {
                "work_item_id": work_item_id,
                "team_id": team_id,
                "action": action,
                "review_status": str(updated.review_status),
            },
            warnings,
            actor=actor,
        )
        data: dict[str, Any] = {
            "id": work_item_id,
            "phase": updated.phase,
            "review_enabled": updated.review_enabled,
            "review_status": str(updated.review_status),
            "review_reason": updated.review_reason,
            "review_requested_at": _iso(updated.review_requested_at),
            "review_completed_at": _iso(updated.review_completed_at),
            "message": decision.message,
        }
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def request(self, team_id: str, work_item_id: str, *, actor: str) -> ServiceResult:
        require_edit = not self.settings.review.allow_member_request
        return self._apply(
            "request_review",
            "requested",
            team_id,
            work_item_id,
            lambda item, perms: request_review(item, perms, now=utc_now(), require_edit=require_edit),
            actor=actor,
        )

    @traced
    def approve(self, team_id: str, work_item_id: str, *, actor: str) -> ServiceResult:
        return self._apply(
            "approve_review",
            "approved",
            team_id,
            work_item_id,
            lambda item, perms: approve_review(item, perms, now=utc_now()),
            actor=actor,
        )

    @traced
    def reject(
        self, team_id: str, work_item_id: str, reason: str | None, *, actor: str
    ) -> ServiceResult:
        return self._apply(
            "reject_review",
            "rejected",
            team_id,
            work_item_id,
            lambda item, perms: reject_review(item, reason, perms, now=utc_now()),
            actor=actor,
        )

    @traced
    def cancel(self, team_id: str, work_item_id: str, *, actor: str) -> ServiceResult:
        return self._apply(
            "cancel_review", "cancelled", team_id, work_item_id, cancel_review, actor=actor
        )

    @traced
    def set_enabled(
        self, team_id: str, work_item_id: str, enabled: bool, *, actor: str
    ) -> ServiceResult:
        return self._apply(
            "set_review_enabled",
            "enabled" if enabled else "disabled",
            team_id,
            work_item_id,
            lambda item, perms: set_review_enabled(item, enabled, perms),
            actor=actor,
        )


def _iso(value: Any) -> str | None:
    return value.isoformat() if value is not None else None
