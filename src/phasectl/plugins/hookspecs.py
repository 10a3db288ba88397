"""Pluggy hook specifications for work item lifecycle events.

All hooks fire after the owning transaction has committed, and are
dispatched synchronously through the WAL-backed event bus.
"""

from __future__ import annotations

import pluggy

PROJECT_NAME = "phasectl"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class PhasectlHookSpec:
    """Hook specifications for the phasectl plugin system."""

    @hookspec
    def post_create(
        self,
        work_item_id: str,
        team_id: str,
        workspace_id: str,
        item_type: str,
        phase: str,
        actor: str,
    ) -> None:
        """Called after a work item is created (including enhancements)."""

    @hookspec
    def post_transition(
        self,
        work_item_id: str,
        team_id: str,
        workspace_id: str,
        from_phase: str,
        to_phase: str,
        actor: str,
    ) -> None:
        """Called after a work item enters a new phase."""

    @hookspec
    def post_update(
        self,
        work_item_id: str,
        team_id: str,
        fields_changed: list[str],
        actor: str,
    ) -> None:
        """Called after field edits."""

    @hookspec
    def post_archive(self, work_item_id: str, team_id: str, actor: str) -> None:
        """Called after a work item is archived."""

    @hookspec
    def post_review(
        self,
        work_item_id: str,
        team_id: str,
        action: str,
        review_status: str,
        actor: str,
    ) -> None:
        """Called after any review write (request, approve, reject, cancel, toggle)."""

    @hookspec
    def post_assignment(
        self,
        team_id: str,
        workspace_id: str,
        user_id: str,
        phase: str,
        action: str,
        actor: str,
    ) -> None:
        """Called after a phase assignment is granted, changed, or removed."""

    @hookspec
    def post_membership(
        self, team_id: str, user_id: str, action: str, role: str | None, actor: str
    ) -> None:
        """Called after a member is added, re-roled, or removed."""
