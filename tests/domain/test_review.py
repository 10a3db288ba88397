"""Tests for the review gate state machine."""

from __future__ import annotations

from datetime import UTC, datetime

from phasectl.domain.models import PhaseAssignment, TeamMembership, WorkItem
from phasectl.domain.permissions import PermissionSet, resolve_permissions
from phasectl.domain.review import (
    approve_review,
    cancel_review,
    reject_review,
    request_review,
    set_review_enabled,
)
from phasectl.domain.types import ReasonCode, ReviewStatus

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


def _item(phase: str = "refine", **overrides: object) -> WorkItem:
    values: dict[str, object] = {
        "id": "WI-0001",
        "team_id": "TEAM-0001",
        "workspace_id": "WS-0001",
        "type": "feature",
        "phase": phase,
        "title": "x",
        "review_enabled": True,
    }
    values.update(overrides)
    return WorkItem.model_validate(values)


def _perms(role: str = "member", **flags: bool) -> PermissionSet:
    membership = TeamMembership(team_id="TEAM-0001", user_id="u1", role=role)
    rows = []
    if flags:
        rows.append(
            PhaseAssignment(
                user_id="u1", workspace_id="WS-0001", team_id="TEAM-0001", phase="refine", **flags
            )
        )
    return resolve_permissions(membership, rows, workspace_id="WS-0001")


VIEWER = _perms()
EDITOR = _perms(can_edit=True)
LEAD = _perms(is_lead=True)
ADMIN = _perms("admin")


class TestRequestReview:
    def test_request_from_none(self) -> None:
        decision = request_review(_item(), VIEWER, now=NOW)
        assert decision.allowed
        updated = decision.apply(_item())
        assert updated.review_status == ReviewStatus.PENDING
        assert updated.review_requested_at == NOW
        assert updated.review_completed_at is None

    def test_disabled(self) -> None:
        decision = request_review(_item(review_enabled=False), EDITOR, now=NOW)
        assert decision.reason == ReasonCode.REVIEW_DISABLED

    def test_terminal(self) -> None:
        decision = request_review(_item("launch"), EDITOR, now=NOW)
        assert decision.reason == ReasonCode.ALREADY_TERMINAL

    def test_require_edit(self) -> None:
        assert request_review(_item(), VIEWER, now=NOW, require_edit=True).reason == ReasonCode.FORBIDDEN
        assert request_review(_item(), EDITOR, now=NOW, require_edit=True).allowed

    def test_already_pending(self) -> None:
        decision = request_review(_item(review_status="pending"), EDITOR, now=NOW)
        assert decision.reason == ReasonCode.REVIEW_ALREADY_ACTIVE

    def test_already_approved(self) -> None:
        decision = request_review(_item(review_status="approved"), EDITOR, now=NOW)
        assert decision.reason == ReasonCode.REVIEW_ALREADY_ACTIVE

    def test_rerequest_after_rejection_clears_reason(self) -> None:
        item = _item(review_status="rejected", review_reason="needs docs")
        decision = request_review(item, EDITOR, now=NOW)
        assert decision.allowed
        updated = decision.apply(item)
        assert updated.review_status == ReviewStatus.PENDING
        assert updated.review_reason is None


class TestDecideReview:
    def test_lead_approves(self) -> None:
        item = _item(review_status="pending")
        decision = approve_review(item, LEAD, now=NOW)
        assert decision.allowed
        updated = decision.apply(item)
        assert updated.review_status == ReviewStatus.APPROVED
        assert updated.review_completed_at == NOW

    def test_admin_approves(self) -> None:
        assert approve_review(_item(review_status="pending"), ADMIN, now=NOW).allowed

    def test_editor_cannot_approve(self) -> None:
        decision = approve_review(_item(review_status="pending"), EDITOR, now=NOW)
        assert decision.reason == ReasonCode.FORBIDDEN

    def test_approve_requires_pending(self) -> None:
        decision = approve_review(_item(), LEAD, now=NOW)
        assert decision.reason == ReasonCode.REVIEW_NOT_PENDING

    def test_reject_records_reason(self) -> None:
        item = _item(review_status="pending")
        decision = reject_review(item, "  missing tests  ", LEAD, now=NOW)
        updated = decision.apply(item)
        assert updated.review_status == ReviewStatus.REJECTED
        assert updated.review_reason == "missing tests"

    def test_reject_requires_reason(self) -> None:
        item = _item(review_status="pending")
        assert reject_review(item, None, LEAD, now=NOW).reason == ReasonCode.MISSING_REJECTION_REASON
        assert reject_review(item, "   ", LEAD, now=NOW).reason == ReasonCode.MISSING_REJECTION_REASON

    def test_blocked_decision_leaves_item_unchanged(self) -> None:
        item = _item()
        decision = approve_review(item, VIEWER, now=NOW)
        assert decision.apply(item) is item


class TestCancelAndToggle:
    def test_cancel_pending(self) -> None:
        item = _item(review_status="pending", review_requested_at=NOW)
        updated = cancel_review(item, EDITOR).apply(item)
        assert updated.review_status == ReviewStatus.NONE
        assert updated.review_requested_at is None

    def test_cancel_needs_edit(self) -> None:
        assert cancel_review(_item(review_status="pending"), VIEWER).reason == ReasonCode.FORBIDDEN

    def test_cancel_needs_pending(self) -> None:
        assert cancel_review(_item(), EDITOR).reason == ReasonCode.REVIEW_NOT_PENDING

    def test_toggle_admin_only(self) -> None:
        assert set_review_enabled(_item(), False, LEAD).reason == ReasonCode.FORBIDDEN
        decision = set_review_enabled(_item(review_enabled=False), True, ADMIN)
        assert decision.allowed
        assert decision.changes == {"review_enabled": True}
