"""Command group: phase permissions and assignments."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from phasectl.commands._base import PhaseGroup
from phasectl.services.permissions import PermissionService

if TYPE_CHECKING:
    from phasectl.commands._context import AppContext

_PERMS_EXAMPLES = """\
  phasectl --as bob perms show TEAM-0001 WS-0001
  phasectl --as alice perms show TEAM-0001 WS-0001 --user bob
  phasectl --as alice perms assign TEAM-0001 WS-0001 bob design
  phasectl --as alice perms assign TEAM-0001 WS-0001 carol build --lead
  phasectl --as alice perms unassign TEAM-0001 WS-0001 bob design
  phasectl --as bob perms list TEAM-0001 WS-0001"""


@click.group(cls=PhaseGroup, examples=_PERMS_EXAMPLES)
@click.pass_obj
def perms(app: AppContext) -> None:
    """Inspect resolved permissions and manage phase assignments."""


@perms.command(examples="  phasectl --as alice perms show TEAM-0001 WS-0001 --user bob")
@click.argument("team_id")
@click.argument("workspace_id")
@click.option("--user", "user_id", default=None, help="Member to inspect (default: yourself).")
@click.pass_obj
def show(app: AppContext, team_id: str, workspace_id: str, user_id: str | None) -> None:
    """Show the per-phase permission set of a member."""
    app.emit(
        PermissionService(app.store).resolve(team_id, workspace_id, actor=app.actor, user_id=user_id)
    )


@perms.command(
    examples="""\
  phasectl --as alice perms assign TEAM-0001 WS-0001 bob design
  phasectl --as alice perms assign TEAM-0001 WS-0001 carol build --lead --notes "owns build\""""
)
@click.argument("team_id")
@click.argument("workspace_id")
@click.argument("user_id")
@click.argument("phase")
@click.option("--edit/--view-only", "can_edit", default=True, help="Grant edit access.")
@click.option("--lead", "is_lead", is_flag=True, default=False, help="Make the user phase lead.")
@click.option("--notes", default=None, help="Free-form note on the assignment.")
@click.pass_obj
def assign(
    app: AppContext,
    team_id: str,
    workspace_id: str,
    user_id: str,
    phase: str,
    can_edit: bool,
    is_lead: bool,
    notes: str | None,
) -> None:
    """Grant a member access to a phase."""
    app.emit(
        PermissionService(app.store).assign(
            team_id,
            workspace_id,
            user_id,
            phase,
            actor=app.actor,
            can_edit=can_edit,
            is_lead=is_lead,
            notes=notes,
        )
    )


@perms.command(examples="  phasectl --as alice perms unassign TEAM-0001 WS-0001 bob design")
@click.argument("team_id")
@click.argument("workspace_id")
@click.argument("user_id")
@click.argument("phase")
@click.pass_obj
def unassign(app: AppContext, team_id: str, workspace_id: str, user_id: str, phase: str) -> None:
    """Remove a member's assignment on a phase."""
    app.emit(
        PermissionService(app.store).unassign(team_id, workspace_id, user_id, phase, actor=app.actor)
    )


@perms.command(name="list", examples="  phasectl --as bob perms list TEAM-0001 WS-0001")
@click.argument("team_id")
@click.argument("workspace_id")
@click.option("--user", "user_id", default=None, help="Only this member's assignments.")
@click.pass_obj
def list_cmd(app: AppContext, team_id: str, workspace_id: str, user_id: str | None) -> None:
    """List phase assignments in a workspace."""
    app.emit(
        PermissionService(app.store).list_assignments(
            team_id, workspace_id, actor=app.actor, user_id=user_id
        )
    )
