"""Tests for PermissionService: resolution and phase assignments."""

from __future__ import annotations

from tests.conftest import (
    ADMIN,
    EDITOR,
    LEAD,
    OUTSIDER,
    OWNER,
    VIEWER,
    SeededTeam,
)

from phasectl.domain.catalog import all_phases
from phasectl.infrastructure.store import Store
from phasectl.services.permissions import PermissionService
from phasectl.services.teams import TeamService


class TestResolve:
    def test_member_without_assignments(self, store: Store, team: SeededTeam) -> None:
        result = PermissionService(store).resolve(team.team_id, team.workspace_id, actor=VIEWER)
        assert result.ok
        assert result.data["role"] == "member"
        assert result.data["has_any_edit_permission"] is False
        assert set(result.data["phases"]) == set(all_phases())

    def test_owner_is_admin(self, store: Store, team: SeededTeam) -> None:
        result = PermissionService(store).resolve(team.team_id, team.workspace_id, actor=OWNER)
        assert result.data["is_admin"] is True
        assert result.data["editable_phase_count"] == len(all_phases())

    def test_inspect_another_member(self, store: Store, team: SeededTeam) -> None:
        result = PermissionService(store).resolve(
            team.team_id, team.workspace_id, actor=VIEWER, user_id=LEAD
        )
        assert result.data["user_id"] == LEAD
        assert result.data["lead_phase_count"] == len(all_phases())

    def test_outsider(self, store: Store, team: SeededTeam) -> None:
        svc = PermissionService(store)
        assert svc.resolve(team.team_id, team.workspace_id, actor=OUTSIDER).code == "NOT_A_MEMBER"
        assert (
            svc.resolve(team.team_id, team.workspace_id, actor=VIEWER, user_id=OUTSIDER).code
            == "NOT_A_MEMBER"
        )

    def test_unknown_workspace(self, store: Store, team: SeededTeam) -> None:
        result = PermissionService(store).resolve(team.team_id, "WS-9999", actor=VIEWER)
        assert result.code == "NOT_FOUND"

    def test_assignments_are_per_workspace(self, store: Store, team: SeededTeam) -> None:
        ws = TeamService(store).create_workspace(team.team_id, "Ops", actor=OWNER)
        result = PermissionService(store).resolve(team.team_id, ws.data["id"], actor=EDITOR)
        assert result.data["has_any_edit_permission"] is False


class TestAssign:
    def test_create_then_update(self, store: Store, team: SeededTeam) -> None:
        svc = PermissionService(store)
        first = svc.assign(team.team_id, team.workspace_id, VIEWER, "build", actor=OWNER)
        assert first.ok
        assert first.data["created"] is True
        assert first.data["can_edit"] is True

        second = svc.assign(
            team.team_id, team.workspace_id, VIEWER, "build", actor=OWNER, notes="backup"
        )
        assert second.data["created"] is False
        assert second.data["notes"] == "backup"

        perms = svc.resolve(team.team_id, team.workspace_id, actor=VIEWER)
        assert perms.data["editable_phases"] == ["build"]

    def test_unknown_phase(self, store: Store, team: SeededTeam) -> None:
        result = PermissionService(store).assign(
            team.team_id, team.workspace_id, VIEWER, "shipping", actor=OWNER
        )
        assert result.code == "VALIDATION_FAILED"

    def test_lead_grants_edit_on_led_phase(self, store: Store, team: SeededTeam) -> None:
        result = PermissionService(store).assign(
            team.team_id, team.workspace_id, VIEWER, "refine", actor=LEAD
        )
        assert result.ok

    def test_lead_cannot_grant_lead(self, store: Store, team: SeededTeam) -> None:
        result = PermissionService(store).assign(
            team.team_id, team.workspace_id, VIEWER, "refine", actor=LEAD, is_lead=True
        )
        assert result.code == "FORBIDDEN"

    def test_editor_cannot_assign(self, store: Store, team: SeededTeam) -> None:
        result = PermissionService(store).assign(
            team.team_id, team.workspace_id, VIEWER, "build", actor=EDITOR
        )
        assert result.code == "FORBIDDEN"

    def test_target_must_be_member(self, store: Store, team: SeededTeam) -> None:
        result = PermissionService(store).assign(
            team.team_id, team.workspace_id, OUTSIDER, "build", actor=ADMIN
        )
        assert result.code == "NOT_A_MEMBER"


class TestUnassign:
    def test_lead_revokes_edit(self, store: Store, team: SeededTeam) -> None:
        svc = PermissionService(store)
        svc.assign(team.team_id, team.workspace_id, VIEWER, "build", actor=OWNER)
        result = svc.unassign(team.team_id, team.workspace_id, VIEWER, "build", actor=LEAD)
        assert result.ok
        assert svc.resolve(team.team_id, team.workspace_id, actor=VIEWER).data[
            "has_any_edit_permission"
        ] is False

    def test_missing_row(self, store: Store, team: SeededTeam) -> None:
        result = PermissionService(store).unassign(
            team.team_id, team.workspace_id, VIEWER, "build", actor=OWNER
        )
        assert result.code == "NOT_FOUND"

    def test_only_admin_removes_lead(self, store: Store, team: SeededTeam) -> None:
        svc = PermissionService(store)
        assert (
            svc.unassign(team.team_id, team.workspace_id, LEAD, "design", actor=LEAD).code
            == "FORBIDDEN"
        )
        assert svc.unassign(team.team_id, team.workspace_id, LEAD, "design", actor=ADMIN).ok

    def test_lead_cannot_demote_another_lead(self, store: Store, team: SeededTeam) -> None:
        assert TeamService(store).add_member(team.team_id, "lena", actor=OWNER).ok
        svc = PermissionService(store)
        assert svc.assign(
            team.team_id, team.workspace_id, "lena", "design", actor=ADMIN, is_lead=True
        ).ok

        demoted = svc.assign(
            team.team_id, team.workspace_id, "lena", "design", actor=LEAD, is_lead=False
        )
        assert demoted.code == "FORBIDDEN"
        resolved = svc.resolve(team.team_id, team.workspace_id, actor=OWNER, user_id="lena")
        assert resolved.data["phases"]["design"]["is_lead"] is True

    def test_admin_may_demote_lead(self, store: Store, team: SeededTeam) -> None:
        svc = PermissionService(store)
        assert svc.assign(
            team.team_id, team.workspace_id, LEAD, "design", actor=ADMIN, is_lead=False
        ).ok
        resolved = svc.resolve(team.team_id, team.workspace_id, actor=OWNER, user_id=LEAD)
        assert resolved.data["phases"]["design"]["is_lead"] is False


class TestListAssignments:
    def test_filter_by_user(self, store: Store, team: SeededTeam) -> None:
        result = PermissionService(store).list_assignments(
            team.team_id, team.workspace_id, actor=VIEWER, user_id=EDITOR
        )
        assert result.data["count"] == len(all_phases())
        assert all(row["user_id"] == EDITOR for row in result.data["items"])

    def test_all(self, store: Store, team: SeededTeam) -> None:
        result = PermissionService(store).list_assignments(
            team.team_id, team.workspace_id, actor=VIEWER
        )
        assert result.data["count"] == 2 * len(all_phases())
