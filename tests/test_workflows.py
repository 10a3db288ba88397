"""Integration workflow tests: multi-step scenarios spanning several services.

These exercise interactions unit tests cannot catch: the review gate
feeding the transition guard, version chains built from launched items,
tenant isolation between teams, and membership changes cascading into
phase access.
"""

from __future__ import annotations

import json

from tests.conftest import (
    ADMIN,
    EDITOR,
    LEAD,
    OWNER,
    VIEWER,
    SeededTeam,
    advance,
    approve,
    create_item,
    seed_team,
)

from phasectl.infrastructure.store import Store
from phasectl.services.permissions import PermissionService
from phasectl.services.review import ReviewService
from phasectl.services.teams import TeamService
from phasectl.services.work_items import WorkItemService


class TestGatedFeatureLifecycle:
    """Create a gated feature -> rejected review -> approval -> launch -> enhance."""

    def test_launch_through_review(self, store: Store, team: SeededTeam) -> None:
        items = WorkItemService(store)
        reviews = ReviewService(store)
        item = create_item(store, team, review_enabled=True)
        advance(store, team, item["id"], "build", "refine")

        blocked = items.transition(team.team_id, item["id"], "launch", actor=EDITOR)
        assert blocked.code == "REVIEW_REQUIRED"

        assert reviews.request(team.team_id, item["id"], actor=EDITOR).ok
        rejected = reviews.reject(team.team_id, item["id"], "No rollout plan", actor=LEAD)
        assert rejected.ok
        assert items.transition(team.team_id, item["id"], "launch", actor=EDITOR).code == (
            "REVIEW_REQUIRED"
        )

        approve(store, team, item["id"])
        launched = items.transition(team.team_id, item["id"], "launch", actor=EDITOR)
        assert launched.ok
        assert launched.data["terminal"] is True
        assert launched.data["progress"] == 100

        history = items.history(team.team_id, item["id"], actor=VIEWER)
        phases = [e["phase"] for e in history.data["items"]]
        assert phases == ["design", "build", "refine", "launch"]

    def test_enhancement_chain(self, store: Store, team: SeededTeam) -> None:
        items = WorkItemService(store)
        item = create_item(store, team, review_enabled=True)
        advance(store, team, item["id"], "build", "refine")
        approve(store, team, item["id"])
        advance(store, team, item["id"], "launch")

        v2 = items.enhance(team.team_id, item["id"], actor=EDITOR, version_notes="Add SAML")
        assert v2.ok
        assert v2.data["review_enabled"] is True
        assert v2.data["review_status"] == "none"

        advance(store, team, v2.data["id"], "build", "refine")
        assert (
            items.transition(team.team_id, v2.data["id"], "launch", actor=EDITOR).code
            == "REVIEW_REQUIRED"
        )
        approve(store, team, v2.data["id"])
        advance(store, team, v2.data["id"], "launch")

        v3 = items.enhance(team.team_id, v2.data["id"], actor=EDITOR, version_notes="Add SCIM")
        assert v3.ok
        assert v3.data["version"] == 3

        chain = items.versions(team.team_id, item["id"], actor=VIEWER)
        assert [v["version"] for v in chain.data["items"]] == [1, 2, 3]
        assert chain.data["latest"] == v3.data["id"]

        again = items.enhance(team.team_id, item["id"], actor=EDITOR, version_notes="Fork")
        assert again.code == "ALREADY_ENHANCED"


class TestConceptOutcomes:
    def test_validated_and_rejected_concepts(self, store: Store, team: SeededTeam) -> None:
        items = WorkItemService(store)
        keep = create_item(store, team, "concept", "Offline mode")
        drop = create_item(store, team, "concept", "Blockchain sync")
        advance(store, team, keep["id"], "research", "validated")
        advance(store, team, drop["id"], "research", "rejected")

        assert items.get(team.team_id, keep["id"], actor=VIEWER).data["progress"] == 100
        assert items.get(team.team_id, drop["id"], actor=VIEWER).data["progress"] == 0

        late = items.transition(team.team_id, drop["id"], "validated", actor=EDITOR)
        assert late.code == "ALREADY_TERMINAL"

        dist = items.distribution(team.team_id, team.workspace_id, actor=VIEWER)
        concept = dist.data["distribution"]["concept"]
        assert concept["validated"] == {"count": 1, "percentage": 50.0}
        assert concept["rejected"] == {"count": 1, "percentage": 50.0}
        assert concept["ideation"]["count"] == 0


class TestTenantIsolation:
    def test_items_do_not_leak_between_teams(self, store: Store, team: SeededTeam) -> None:
        other = seed_team(store, name="Payments")
        items = WorkItemService(store)
        item = create_item(store, team)

        assert items.get(other.team_id, item["id"], actor=EDITOR).code == "NOT_FOUND"
        assert (
            items.transition(other.team_id, item["id"], "build", actor=EDITOR).code == "NOT_FOUND"
        )
        listed = items.list_items(other.team_id, other.workspace_id, actor=EDITOR)
        assert listed.data["items"] == []

    def test_workspace_from_other_team_is_rejected(self, store: Store, team: SeededTeam) -> None:
        other = seed_team(store, name="Payments")
        result = WorkItemService(store).create(
            team.team_id, other.workspace_id, "bug", "Crash", actor=EDITOR
        )
        assert result.code == "NOT_FOUND"

    def test_membership_is_per_team(self, store: Store, team: SeededTeam) -> None:
        teams = TeamService(store)
        created = teams.create_team("Payments", actor="zoe")
        assert created.ok
        item = create_item(store, team)
        result = WorkItemService(store).get(team.team_id, item["id"], actor="zoe")
        assert result.code == "NOT_A_MEMBER"


class TestMembershipChanges:
    def test_removed_member_loses_access(self, store: Store, team: SeededTeam) -> None:
        items = WorkItemService(store)
        item = create_item(store, team)
        assert TeamService(store).remove_member(team.team_id, EDITOR, actor=ADMIN).ok

        assert items.transition(team.team_id, item["id"], "build", actor=EDITOR).code == (
            "NOT_A_MEMBER"
        )
        listed = PermissionService(store).list_assignments(
            team.team_id, team.workspace_id, actor=VIEWER, user_id=EDITOR
        )
        assert listed.data["count"] == 0

    def test_promotion_grants_full_access(self, store: Store, team: SeededTeam) -> None:
        items = WorkItemService(store)
        item = create_item(store, team)
        assert items.transition(team.team_id, item["id"], "build", actor=VIEWER).code == "FORBIDDEN"

        assert TeamService(store).set_role(team.team_id, VIEWER, "admin", actor=OWNER).ok
        assert items.transition(team.team_id, item["id"], "build", actor=VIEWER).ok

    def test_unassigned_phase_becomes_read_only(self, store: Store, team: SeededTeam) -> None:
        items = WorkItemService(store)
        item = create_item(store, team, "bug", "Crash")
        perms = PermissionService(store)
        assert perms.unassign(team.team_id, team.workspace_id, EDITOR, "triage", actor=OWNER).ok

        edit = items.update_fields(team.team_id, item["id"], {"priority": "high"}, actor=EDITOR)
        assert edit.code == "FORBIDDEN"
        assert items.get(team.team_id, item["id"], actor=EDITOR).ok


class TestEventTrail:
    def test_activity_log_follows_lifecycle(self, store: Store, team: SeededTeam) -> None:
        store.init_event_bus()
        item = create_item(store, team, "bug", "Crash", review_enabled=True)
        advance(store, team, item["id"], "investigating", "fixing")
        approve(store, team, item["id"])
        advance(store, team, item["id"], "verified")

        path = store.settings.data_dir / "activity.jsonl"
        lines = path.read_text(encoding="utf-8").splitlines()
        events = [json.loads(line)["event"] for line in lines]
        assert events == [
            "create",
            "transition",
            "transition",
            "review.requested",
            "review.approved",
            "transition",
        ]
