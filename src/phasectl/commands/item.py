"""Command group: work item lifecycle."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import click

from phasectl.commands._base import PhaseGroup
from phasectl.domain.types import TimelineBucket, WorkItemType
from phasectl.services.work_items import UNSCHEDULED, WorkItemService

if TYPE_CHECKING:
    from phasectl.commands._context import AppContext

_TYPES = click.Choice(sorted(t.value for t in WorkItemType))
_BUCKETS = click.Choice([b.value for b in TimelineBucket] + [UNSCHEDULED])

_ITEM_EXAMPLES = """\
  phasectl --as bob item create TEAM-0001 WS-0001 --type feature --title "SSO login"
  phasectl --as bob item list TEAM-0001 WS-0001 --type bug --phase triage
  phasectl --as bob item edit TEAM-0001 WI-0001 --field stakeholders='["ops"]'
  phasectl --as bob item move TEAM-0001 WI-0001 build
  phasectl --as alice item enhance TEAM-0001 WI-0001 --notes "v2: SAML"
  phasectl --as bob item bucket TEAM-0001 WS-0001"""


def _parse_fields(pairs: tuple[str, ...]) -> dict[str, Any]:
    """Parse ``key=value`` pairs. Values that parse as JSON keep their JSON type."""
    fields: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--field")
        try:
            fields[key.strip()] = json.loads(raw)
        except json.JSONDecodeError:
            fields[key.strip()] = raw
    return fields


@click.group(cls=PhaseGroup, examples=_ITEM_EXAMPLES)
@click.pass_obj
def item(app: AppContext) -> None:
    """Create, move, edit, and inspect work items."""


@item.command(
    examples="""\
  phasectl --as bob item create TEAM-0001 WS-0001 --type bug --title "Crash on save"
  phasectl --as bob item create TEAM-0001 WS-0001 --type feature --title "SSO" \\
      --field priority=high --end 2026-12-01 --review"""
)
@click.argument("team_id")
@click.argument("workspace_id")
@click.option("--type", "item_type", type=_TYPES, required=True, help="Work item type.")
@click.option("--title", required=True, help="Title.")
@click.option("--field", "field_pairs", multiple=True, help="KEY=VALUE (repeatable).")
@click.option("--start", "planned_start", default=None, help="Planned start (YYYY-MM-DD).")
@click.option("--end", "planned_end", default=None, help="Planned end (YYYY-MM-DD).")
@click.option("--review/--no-review", default=False, help="Enable the review gate.")
@click.pass_obj
def create(
    app: AppContext,
    team_id: str,
    workspace_id: str,
    item_type: str,
    title: str,
    field_pairs: tuple[str, ...],
    planned_start: str | None,
    planned_end: str | None,
    review: bool,
) -> None:
    """Create a work item in its type's first phase."""
    app.emit(
        WorkItemService(app.store).create(
            team_id,
            workspace_id,
            item_type,
            title,
            actor=app.actor,
            fields=_parse_fields(field_pairs),
            planned_start=planned_start,
            planned_end=planned_end,
            review_enabled=review,
        )
    )


@item.command(examples="  phasectl --as bob -v item show TEAM-0001 WI-0001")
@click.argument("team_id")
@click.argument("work_item_id")
@click.option("--include-archived", is_flag=True, default=False, help="Show archived items too.")
@click.pass_obj
def show(app: AppContext, team_id: str, work_item_id: str, include_archived: bool) -> None:
    """Show one work item with its visible fields."""
    app.emit(
        WorkItemService(app.store).get(
            team_id, work_item_id, actor=app.actor, include_archived=include_archived
        )
    )


@item.command(
    name="list",
    examples="""\
  phasectl --as bob item list TEAM-0001 WS-0001
  phasectl --as bob item list TEAM-0001 WS-0001 --type concept --phase research
  phasectl --as bob -q item list TEAM-0001 WS-0001 --bucket MVP""",
)
@click.argument("team_id")
@click.argument("workspace_id")
@click.option("--type", "item_type", type=_TYPES, default=None, help="Filter by type.")
@click.option("--phase", default=None, help="Filter by phase.")
@click.option("--bucket", type=_BUCKETS, default=None, help="Filter by timeline bucket.")
@click.option("--include-archived", is_flag=True, default=False, help="Include archived items.")
@click.pass_obj
def list_cmd(
    app: AppContext,
    team_id: str,
    workspace_id: str,
    item_type: str | None,
    phase: str | None,
    bucket: str | None,
    include_archived: bool,
) -> None:
    """List work items in a workspace."""
    app.emit(
        WorkItemService(app.store).list_items(
            team_id,
            workspace_id,
            actor=app.actor,
            item_type=item_type,
            phase=phase,
            bucket=bucket,
            include_archived=include_archived,
        )
    )


@item.command(
    examples="""\
  phasectl --as bob item edit TEAM-0001 WI-0002 --field root_cause="race in cache"
  phasectl --as bob item edit TEAM-0001 WI-0002 --title "Crash on save (macOS)" --clear tags
  phasectl --as bob item edit TEAM-0001 WI-0002 --end 2026-11-30"""
)
@click.argument("team_id")
@click.argument("work_item_id")
@click.option("--title", default=None, help="New title.")
@click.option("--field", "field_pairs", multiple=True, help="KEY=VALUE (repeatable).")
@click.option("--clear", "clear_keys", multiple=True, help="Field to clear (repeatable).")
@click.option("--start", "planned_start", default=None, help="Planned start (YYYY-MM-DD).")
@click.option("--end", "planned_end", default=None, help="Planned end (YYYY-MM-DD).")
@click.pass_obj
def edit(
    app: AppContext,
    team_id: str,
    work_item_id: str,
    title: str | None,
    field_pairs: tuple[str, ...],
    clear_keys: tuple[str, ...],
    planned_start: str | None,
    planned_end: str | None,
) -> None:
    """Edit fields that are editable in the item's current phase."""
    changes = _parse_fields(field_pairs)
    changes.update(dict.fromkeys(clear_keys))
    if title is not None:
        changes["title"] = title
    if planned_start is not None:
        changes["planned_start"] = planned_start
    if planned_end is not None:
        changes["planned_end"] = planned_end
    app.emit(WorkItemService(app.store).update_fields(team_id, work_item_id, changes, actor=app.actor))


@item.command(
    examples="""\
  phasectl --as bob item move TEAM-0001 WI-0001 build
  phasectl --as carol item move TEAM-0001 WI-0003 validated"""
)
@click.argument("team_id")
@click.argument("work_item_id")
@click.argument("phase")
@click.pass_obj
def move(app: AppContext, team_id: str, work_item_id: str, phase: str) -> None:
    """Move a work item to its next phase."""
    app.emit(WorkItemService(app.store).transition(team_id, work_item_id, phase, actor=app.actor))


@item.command(examples="  phasectl --as alice item archive TEAM-0001 WI-0004")
@click.argument("team_id")
@click.argument("work_item_id")
@click.pass_obj
def archive(app: AppContext, team_id: str, work_item_id: str) -> None:
    """Archive (soft-delete) a work item."""
    app.emit(WorkItemService(app.store).archive(team_id, work_item_id, actor=app.actor))


@item.command(examples='  phasectl --as alice item enhance TEAM-0001 WI-0001 --notes "Add SAML"')
@click.argument("team_id")
@click.argument("work_item_id")
@click.option("--notes", "version_notes", required=True, help="What the new version changes.")
@click.option("--title", default=None, help="Title of the new version (default: same).")
@click.pass_obj
def enhance(
    app: AppContext, team_id: str, work_item_id: str, version_notes: str, title: str | None
) -> None:
    """Start the next version of a launched feature or enhancement."""
    app.emit(
        WorkItemService(app.store).enhance(
            team_id, work_item_id, actor=app.actor, version_notes=version_notes, title=title
        )
    )


@item.command(examples="  phasectl --as bob item versions TEAM-0001 WI-0005")
@click.argument("team_id")
@click.argument("work_item_id")
@click.pass_obj
def versions(app: AppContext, team_id: str, work_item_id: str) -> None:
    """Show the version chain containing a work item."""
    app.emit(WorkItemService(app.store).versions(team_id, work_item_id, actor=app.actor))


@item.command(examples="  phasectl --as bob item history TEAM-0001 WI-0001")
@click.argument("team_id")
@click.argument("work_item_id")
@click.pass_obj
def history(app: AppContext, team_id: str, work_item_id: str) -> None:
    """Show a work item's phase history."""
    app.emit(WorkItemService(app.store).history(team_id, work_item_id, actor=app.actor))


@item.command(examples="  phasectl --as bob item bucket TEAM-0001 WS-0001")
@click.argument("team_id")
@click.argument("workspace_id")
@click.pass_obj
def bucket(app: AppContext, team_id: str, workspace_id: str) -> None:
    """Group a workspace's items into MVP/SHORT/LONG timeline buckets."""
    app.emit(WorkItemService(app.store).buckets(team_id, workspace_id, actor=app.actor))


@item.command(examples="  phasectl --as bob item distribution TEAM-0001 WS-0001")
@click.argument("team_id")
@click.argument("workspace_id")
@click.pass_obj
def distribution(app: AppContext, team_id: str, workspace_id: str) -> None:
    """Count items per type and phase."""
    app.emit(WorkItemService(app.store).distribution(team_id, workspace_id, actor=app.actor))
