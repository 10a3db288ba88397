"""Command group: teams and memberships."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from phasectl.commands._base import PhaseGroup
from phasectl.domain.types import TeamRole
from phasectl.services.teams import TeamService

if TYPE_CHECKING:
    from phasectl.commands._context import AppContext

_ROLES = click.Choice([r.value for r in TeamRole])

_TEAM_EXAMPLES = """\
  phasectl --as alice team create "Platform"
  phasectl --as alice team add-member TEAM-0001 bob --role member
  phasectl --as alice team set-role TEAM-0001 bob admin
  phasectl --as alice team remove-member TEAM-0001 bob
  phasectl --as bob team members TEAM-0001"""


@click.group(cls=PhaseGroup, examples=_TEAM_EXAMPLES)
@click.pass_obj
def team(app: AppContext) -> None:
    """Create teams and manage their members."""


@team.command(examples='  phasectl --as alice team create "Platform"')
@click.argument("name")
@click.pass_obj
def create(app: AppContext, name: str) -> None:
    """Create a team. The acting user becomes its owner."""
    app.emit(TeamService(app.store).create_team(name, actor=app.actor))


@team.command("add-member", examples="  phasectl --as alice team add-member TEAM-0001 bob")
@click.argument("team_id")
@click.argument("user_id")
@click.option("--role", type=_ROLES, default=TeamRole.MEMBER.value, help="Team role.")
@click.pass_obj
def add_member(app: AppContext, team_id: str, user_id: str, role: str) -> None:
    """Add a user to the team."""
    app.emit(TeamService(app.store).add_member(team_id, user_id, role, actor=app.actor))


@team.command("set-role", examples="  phasectl --as alice team set-role TEAM-0001 bob admin")
@click.argument("team_id")
@click.argument("user_id")
@click.argument("role", type=_ROLES)
@click.pass_obj
def set_role(app: AppContext, team_id: str, user_id: str, role: str) -> None:
    """Change a member's role."""
    app.emit(TeamService(app.store).set_role(team_id, user_id, role, actor=app.actor))


@team.command("remove-member", examples="  phasectl --as alice team remove-member TEAM-0001 bob")
@click.argument("team_id")
@click.argument("user_id")
@click.pass_obj
def remove_member(app: AppContext, team_id: str, user_id: str) -> None:
    """Remove a member and all of their phase assignments."""
    app.emit(TeamService(app.store).remove_member(team_id, user_id, actor=app.actor))


@team.command(examples="  phasectl --as bob -q team members TEAM-0001")
@click.argument("team_id")
@click.pass_obj
def members(app: AppContext, team_id: str) -> None:
    """List team members and their roles."""
    app.emit(TeamService(app.store).list_members(team_id, actor=app.actor))
