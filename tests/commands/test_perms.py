"""Tests for the perms CLI group."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from phasectl.cli import cli
from tests.conftest import ADMIN, EDITOR, LEAD, OWNER, VIEWER, SeededTeam, invoke_json


@pytest.mark.usefixtures("_isolated_store")
class TestPermsCommands:
    def test_show_self(self, cli_runner: CliRunner, team: SeededTeam) -> None:
        code, payload = invoke_json(
            cli_runner, ["perms", "show", team.team_id, team.workspace_id], actor=VIEWER
        )
        assert code == 0
        assert payload["data"]["user_id"] == VIEWER
        assert payload["data"]["editable_phases"] == []
        assert payload["data"]["phases"]["design"]["can_view"] is True

    def test_show_other_user(self, cli_runner: CliRunner, team: SeededTeam) -> None:
        code, payload = invoke_json(
            cli_runner,
            ["perms", "show", team.team_id, team.workspace_id, "--user", ADMIN],
            actor=VIEWER,
        )
        assert code == 0
        assert payload["data"]["is_admin"] is True

    def test_assign_view_only(self, cli_runner: CliRunner, team: SeededTeam) -> None:
        code, payload = invoke_json(
            cli_runner,
            ["perms", "assign", team.team_id, team.workspace_id, VIEWER, "design", "--view-only",
             "--notes", "read along"],
            actor=OWNER,
        )
        assert code == 0
        assert payload["data"]["can_edit"] is False
        assert payload["data"]["notes"] == "read along"
        assert payload["data"]["created"] is True

    def test_lead_manages_edit_rows(self, cli_runner: CliRunner, team: SeededTeam) -> None:
        code, _ = invoke_json(
            cli_runner,
            ["perms", "assign", team.team_id, team.workspace_id, VIEWER, "build"],
            actor=LEAD,
        )
        assert code == 0
        code, payload = invoke_json(
            cli_runner,
            ["perms", "assign", team.team_id, team.workspace_id, VIEWER, "build", "--lead"],
            actor=LEAD,
        )
        assert code == 1
        assert payload["error"]["code"] == "FORBIDDEN"

    def test_editor_cannot_assign(self, cli_runner: CliRunner, team: SeededTeam) -> None:
        code, payload = invoke_json(
            cli_runner,
            ["perms", "assign", team.team_id, team.workspace_id, VIEWER, "design"],
            actor=EDITOR,
        )
        assert code == 1
        assert payload["error"]["code"] == "FORBIDDEN"

    def test_unknown_phase(self, cli_runner: CliRunner, team: SeededTeam) -> None:
        code, payload = invoke_json(
            cli_runner,
            ["perms", "assign", team.team_id, team.workspace_id, VIEWER, "shipping"],
            actor=OWNER,
        )
        assert code == 1
        assert payload["error"]["code"] == "VALIDATION_FAILED"

    def test_unassign_and_list(self, cli_runner: CliRunner, team: SeededTeam) -> None:
        code, _ = invoke_json(
            cli_runner,
            ["perms", "unassign", team.team_id, team.workspace_id, EDITOR, "design"],
            actor=OWNER,
        )
        assert code == 0
        code, payload = invoke_json(
            cli_runner,
            ["perms", "list", team.team_id, team.workspace_id, "--user", EDITOR],
            actor=VIEWER,
        )
        assert code == 0
        phases = {a["phase"] for a in payload["data"]["items"]}
        assert "design" not in phases
        assert payload["data"]["count"] == 11

    def test_rich_show(self, cli_runner: CliRunner, team: SeededTeam) -> None:
        result = cli_runner.invoke(
            cli, ["--as", EDITOR, "perms", "show", team.team_id, team.workspace_id]
        )
        assert result.exit_code == 0
        assert "resolve_permissions" in result.stdout
        assert "lead_phases: -" in result.stdout
