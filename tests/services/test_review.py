"""Tests for ReviewService."""

from __future__ import annotations

from pathlib import Path

from tests.conftest import (
    ADMIN,
    EDITOR,
    LEAD,
    OWNER,
    VIEWER,
    SeededTeam,
    advance,
    create_item,
    seed_team,
)

from phasectl.config.settings import PhaseSettings
from phasectl.infrastructure.store import Store
from phasectl.services.review import ReviewService
from phasectl.services.work_items import WorkItemService


def _reviewed(store: Store, team: SeededTeam) -> str:
    item = create_item(store, team, review_enabled=True)
    advance(store, team, item["id"], "build", "refine")
    return item["id"]


class TestRequest:
    def test_member_requests(self, store: Store, team: SeededTeam) -> None:
        item_id = _reviewed(store, team)
        result = ReviewService(store).request(team.team_id, item_id, actor=VIEWER)
        assert result.ok
        assert result.data["review_status"] == "pending"
        assert result.data["review_requested_at"] is not None
        assert result.data["review_completed_at"] is None

    def test_disabled(self, store: Store, team: SeededTeam) -> None:
        item = create_item(store, team)
        result = ReviewService(store).request(team.team_id, item["id"], actor=EDITOR)
        assert result.code == "REVIEW_DISABLED"

    def test_double_request(self, store: Store, team: SeededTeam) -> None:
        item_id = _reviewed(store, team)
        svc = ReviewService(store)
        assert svc.request(team.team_id, item_id, actor=EDITOR).ok
        assert svc.request(team.team_id, item_id, actor=EDITOR).code == "REVIEW_ALREADY_ACTIVE"

    def test_not_found(self, store: Store, team: SeededTeam) -> None:
        assert ReviewService(store).request(team.team_id, "WI-9999", actor=EDITOR).code == "NOT_FOUND"

    def test_editors_only_when_configured(self, tmp_path: Path) -> None:
        settings = PhaseSettings.from_cli(root=tmp_path, review={"allow_member_request": False})
        with Store(settings) as store:
            team = seed_team(store)
            item_id = _reviewed(store, team)
            svc = ReviewService(store)
            assert svc.request(team.team_id, item_id, actor=VIEWER).code == "FORBIDDEN"
            assert svc.request(team.team_id, item_id, actor=EDITOR).ok


class TestDecide:
    def test_lead_approves(self, store: Store, team: SeededTeam) -> None:
        item_id = _reviewed(store, team)
        svc = ReviewService(store)
        svc.request(team.team_id, item_id, actor=EDITOR)
        result = svc.approve(team.team_id, item_id, actor=LEAD)
        assert result.ok
        assert result.data["review_status"] == "approved"
        assert result.data["review_completed_at"] is not None

    def test_editor_cannot_approve(self, store: Store, team: SeededTeam) -> None:
        item_id = _reviewed(store, team)
        svc = ReviewService(store)
        svc.request(team.team_id, item_id, actor=EDITOR)
        assert svc.approve(team.team_id, item_id, actor=EDITOR).code == "FORBIDDEN"

    def test_reject_then_rerequest(self, store: Store, team: SeededTeam) -> None:
        item_id = _reviewed(store, team)
        svc = ReviewService(store)
        svc.request(team.team_id, item_id, actor=EDITOR)
        rejected = svc.reject(team.team_id, item_id, "Missing tests", actor=ADMIN)
        assert rejected.data["review_status"] == "rejected"
        assert rejected.data["review_reason"] == "Missing tests"

        blocked = WorkItemService(store).transition(team.team_id, item_id, "launch", actor=EDITOR)
        assert blocked.code == "REVIEW_REQUIRED"

        again = svc.request(team.team_id, item_id, actor=EDITOR)
        assert again.data["review_status"] == "pending"
        assert again.data["review_reason"] is None

    def test_reject_needs_reason(self, store: Store, team: SeededTeam) -> None:
        item_id = _reviewed(store, team)
        svc = ReviewService(store)
        svc.request(team.team_id, item_id, actor=EDITOR)
        assert svc.reject(team.team_id, item_id, " ", actor=LEAD).code == "MISSING_REJECTION_REASON"

    def test_approve_without_request(self, store: Store, team: SeededTeam) -> None:
        item_id = _reviewed(store, team)
        assert ReviewService(store).approve(team.team_id, item_id, actor=LEAD).code == "REVIEW_NOT_PENDING"


class TestCancelAndToggle:
    def test_cancel(self, store: Store, team: SeededTeam) -> None:
        item_id = _reviewed(store, team)
        svc = ReviewService(store)
        svc.request(team.team_id, item_id, actor=VIEWER)
        assert svc.cancel(team.team_id, item_id, actor=VIEWER).code == "FORBIDDEN"
        result = svc.cancel(team.team_id, item_id, actor=EDITOR)
        assert result.data["review_status"] == "none"
        assert result.data["review_requested_at"] is None

    def test_toggle_is_admin_only(self, store: Store, team: SeededTeam) -> None:
        item = create_item(store, team)
        svc = ReviewService(store)
        assert svc.set_enabled(team.team_id, item["id"], True, actor=LEAD).code == "FORBIDDEN"
        result = svc.set_enabled(team.team_id, item["id"], True, actor=OWNER)
        assert result.ok
        assert result.data["review_enabled"] is True

    def test_disabling_opens_the_gate(self, store: Store, team: SeededTeam) -> None:
        item_id = _reviewed(store, team)
        assert ReviewService(store).set_enabled(team.team_id, item_id, False, actor=ADMIN).ok
        assert WorkItemService(store).transition(team.team_id, item_id, "launch", actor=EDITOR).ok
