"""Shared pytest fixtures and test helpers for phasectl tests."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from phasectl.config.settings import PhaseSettings
from phasectl.domain.catalog import all_phases
from phasectl.infrastructure.database.engine import init_database
from phasectl.infrastructure.store import Store

# Seeded team cast. Roles and grants are set up by ``seed_team``.
OWNER = "olivia"  # team owner
ADMIN = "adam"  # team admin
EDITOR = "erin"  # member with can_edit on every phase
LEAD = "leo"  # member who leads every phase
VIEWER = "vic"  # member with no assignments
OUTSIDER = "oscar"  # not a member


@pytest.fixture(autouse=True)
def _clean_phasectl_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's PHASECTL_* environment out of every test."""
    import os

    for key in list(os.environ):
        if key.startswith("PHASECTL_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_cli_state() -> Iterator[None]:
    """Undo the logging and telemetry setup a CLI invocation leaves behind."""
    import logging

    from phasectl.config.logging import clear_request_context
    from phasectl.services.telemetry import disable_telemetry

    yield
    disable_telemetry()
    clear_request_context()
    logging.getLogger().handlers.clear()
    logging.getLogger("phasectl").setLevel(logging.NOTSET)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / ".phasectl" / "phasectl.db")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    """Temporary project directory.

    This is the single source of truth for the store directory layout.
    All store-related fixtures (store, _isolated_store) build on this.
    """
    return tmp_path


@pytest.fixture
def store(store_root: Path) -> Iterator[Store]:
    """Open store on a temp directory, without plugins."""
    settings = PhaseSettings.from_cli(root=store_root)
    s = Store(settings)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_store(store_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp project root so the CLI opens an isolated store.

    Use via ``@pytest.mark.usefixtures("_isolated_store")`` on command test
    classes. Tests that need the path can also request ``tmp_path`` directly
    (pytest deduplicates; it's the same directory).
    """
    monkeypatch.chdir(store_root)


# ---------------------------------------------------------------------------
# Seeded teams
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SeededTeam:
    team_id: str
    workspace_id: str


def seed_team(store: Store, *, name: str = "Platform") -> SeededTeam:
    """Create a team with the standard cast and one workspace.

    EDITOR can edit every phase, LEAD leads every phase, VIEWER has no
    assignments, and OUTSIDER is not a member.
    """
    from phasectl.services.permissions import PermissionService
    from phasectl.services.teams import TeamService

    teams = TeamService(store)
    created = teams.create_team(name, actor=OWNER)
    assert created.ok, created.error
    team_id = created.data["id"]
    for user, role in ((ADMIN, "admin"), (EDITOR, "member"), (LEAD, "member"), (VIEWER, "member")):
        added = teams.add_member(team_id, user, role, actor=OWNER)
        assert added.ok, added.error

    ws = teams.create_workspace(team_id, "Roadmap", actor=OWNER)
    assert ws.ok, ws.error
    workspace_id = ws.data["id"]

    perms = PermissionService(store)
    for phase in all_phases():
        assert perms.assign(team_id, workspace_id, EDITOR, phase, actor=OWNER).ok
        assert perms.assign(team_id, workspace_id, LEAD, phase, actor=OWNER, is_lead=True).ok
    return SeededTeam(team_id=team_id, workspace_id=workspace_id)


@pytest.fixture
def team(store: Store) -> SeededTeam:
    """The standard seeded team on the ``store`` fixture."""
    return seed_team(store)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def create_item(
    store: Store,
    team: SeededTeam,
    item_type: str = "feature",
    title: str = "Single sign-on",
    *,
    actor: str = EDITOR,
    **kwargs: Any,
) -> dict[str, Any]:
    """Create a work item via WorkItemService, asserting success."""
    from phasectl.services.work_items import WorkItemService

    result = WorkItemService(store).create(
        team.team_id, team.workspace_id, item_type, title, actor=actor, **kwargs
    )
    assert result.ok, result.error
    return result.data


def advance(
    store: Store, team: SeededTeam, work_item_id: str, *phases: str, actor: str = EDITOR
) -> None:
    """Move an item through *phases* in order, asserting each step succeeds."""
    from phasectl.services.work_items import WorkItemService

    svc = WorkItemService(store)
    for phase in phases:
        result = svc.transition(team.team_id, work_item_id, phase, actor=actor)
        assert result.ok, result.error


def approve(store: Store, team: SeededTeam, work_item_id: str) -> None:
    """Request and approve a review, asserting success."""
    from phasectl.services.review import ReviewService

    svc = ReviewService(store)
    assert svc.request(team.team_id, work_item_id, actor=EDITOR).ok
    assert svc.approve(team.team_id, work_item_id, actor=LEAD).ok


def launch(store: Store, team: SeededTeam, title: str = "Single sign-on") -> dict[str, Any]:
    """Create a feature and move it all the way to ``launch``."""
    item = create_item(store, team, "feature", title)
    advance(store, team, item["id"], "build", "refine", "launch")
    return item


def invoke_json(
    runner: CliRunner, args: list[str], *, actor: str | None = EDITOR
) -> tuple[int, dict[str, Any]]:
    """Invoke the CLI in ``--json`` mode and parse the emitted ServiceResult.

    Successful results are read from stdout, failures from stderr.
    """
    import json

    from phasectl.cli import cli

    prefix = ["--json"] + (["--as", actor] if actor else [])
    result = runner.invoke(cli, [*prefix, *args])
    stream = result.stdout if result.exit_code == 0 else result.stderr
    return result.exit_code, json.loads(stream)
