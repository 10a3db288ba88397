"""Command group: workspaces within a team."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from phasectl.commands._base import PhaseGroup
from phasectl.services.teams import TeamService

if TYPE_CHECKING:
    from phasectl.commands._context import AppContext

_WORKSPACE_EXAMPLES = """\
  phasectl --as alice workspace create TEAM-0001 "Q3 roadmap"
  phasectl --as bob workspace list TEAM-0001"""


@click.group(cls=PhaseGroup, examples=_WORKSPACE_EXAMPLES)
@click.pass_obj
def workspace(app: AppContext) -> None:
    """Create and list workspaces."""


@workspace.command(examples='  phasectl --as alice workspace create TEAM-0001 "Q3 roadmap"')
@click.argument("team_id")
@click.argument("name")
@click.pass_obj
def create(app: AppContext, team_id: str, name: str) -> None:
    """Create a workspace (owners and admins only)."""
    app.emit(TeamService(app.store).create_workspace(team_id, name, actor=app.actor))


@workspace.command(name="list", examples="  phasectl --as bob workspace list TEAM-0001")
@click.argument("team_id")
@click.pass_obj
def list_cmd(app: AppContext, team_id: str) -> None:
    """List the team's workspaces."""
    app.emit(TeamService(app.store).list_workspaces(team_id, actor=app.actor))
