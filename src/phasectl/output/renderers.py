"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from phasectl.output.console import (
    create_console,
    get_output,
    style_for_bucket,
    style_for_review,
    style_for_type,
)

if TYPE_CHECKING:
    from rich.console import Console

    from phasectl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    # For list results, return IDs only
    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(_extract_id(item) for item in items if _extract_id(item))
    if "id" in result.data:
        return str(result.data["id"])

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_id(item: Any) -> str:
    """Extract an ID from a dict item (work items, members, assignments)."""
    if isinstance(item, dict):
        for key in ("id", "user_id"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK/ERROR status line."""
    label = Text("OK", style="phase.ok")
    op = Text(f"  {result.op}", style="phase.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}:", style="phase.key")
    if isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    elif key == "id" or key.endswith("_id"):
        v = Text(str(value), style="phase.id")
    elif key.endswith("_path") or key == "root":
        v = Text(str(value), style="phase.path")
    elif key == "title":
        v = Text(str(value), style="phase.title")
    elif key in ("phase", "from_phase"):
        v = Text(str(value), style="phase.name")
    elif key == "review_status":
        v = Text(str(value), style=style_for_review(str(value)))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(Text(f"    {k}: {v}"))


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations")
    if annotations:
        line += "  (" + ", ".join(f"{ak}={av}" for ak, av in annotations.items()) + ")"

    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _work_item_table(items: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    """Build a Rich Table for a list of work item summaries."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="phase.id", no_wrap=True)
    table.add_column("Title", style="phase.title")
    table.add_column("Type")
    table.add_column("Phase", style="phase.name")
    table.add_column("Progress", justify="right")
    table.add_column("Bucket")
    table.add_column("Review")
    if verbose:
        table.add_column("Version", justify="right")

    for item in items:
        item_type = str(item.get("type", ""))
        bucket = item.get("bucket")
        review = str(item.get("review_status", ""))
        row: list[Any] = [
            str(item.get("id", "")),
            str(item.get("title", "")),
            Text(item_type, style=style_for_type(item_type)),
            str(item.get("phase", "")),
            f"{item.get('progress', 0)}%",
            Text(str(bucket or "-"), style=style_for_bucket(bucket)),
            Text(review, style=style_for_review(review)),
        ]
        if verbose:
            row.append(f"v{item.get('version', 1)}")
        table.add_row(*row)

    return table


def _simple_table(items: list[dict[str, Any]], columns: tuple[str, ...]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    for col in columns:
        style = "phase.id" if col == "id" or col.endswith("_id") else None
        table.add_column(col.replace("_", " ").title(), style=style)
    for item in items:
        table.add_row(*(_cell(item.get(col)) for col in columns))
    return table


def _cell(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "-"
    return "" if value is None else str(value)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="phase.error")
    op = Text(f"  {result.op}", style="phase.op")
    code = Text(f"  [{err.code}] " if err else "  ", style="phase.warning")
    console.print(label, op, code, Text(msg))

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


# ── Mutation renderers ────────────────────────────────────────────────


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create/edit/archive/admin results."""
    _status_line(console, result)
    mutation_keys = (
        "id",
        "team_id",
        "workspace_id",
        "user_id",
        "title",
        "type",
        "name",
        "role",
        "previous_role",
        "phase",
        "version",
        "enhances_work_item_id",
        "can_edit",
        "is_lead",
        "archived",
        "removed_assignments",
    )
    for key in mutation_keys:
        if key in result.data:
            _field(console, key, result.data[key])
    if "fields_changed" in result.data:
        _field(console, "fields_changed", ", ".join(result.data["fields_changed"]))
    if verbose:
        _render_meta(console, result)


def _render_transition(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "id", d["id"])
    arrow = Text()
    arrow.append("  phase: ", style="phase.key")
    arrow.append(str(d["from_phase"]), style="phase.name")
    arrow.append(" -> ")
    arrow.append(str(d["phase"]), style="phase.terminal" if d.get("terminal") else "phase.name")
    console.print(arrow)
    _field(console, "progress", f"{d.get('progress', 0)}%")
    if d.get("next_phases"):
        _field(console, "next", ", ".join(d["next_phases"]))
    if verbose:
        _render_meta(console, result)


def _render_review(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("id", "phase", "review_enabled", "review_status", "review_reason"):
        value = result.data.get(key)
        if value is not None:
            _field(console, key, value)
    if verbose:
        for key in ("review_requested_at", "review_completed_at"):
            if result.data.get(key):
                _field(console, key, result.data[key])
        _render_meta(console, result)


# ── Query renderers ───────────────────────────────────────────────────


def _render_work_item(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render get_work_item as a panel with phase, review, and visible fields."""
    d = result.data
    lines: list[str] = []
    for key in ("type", "phase", "progress", "bucket", "version", "review_status"):
        val = d.get(key)
        if val is not None:
            lines.append(f"{key}: {val}%" if key == "progress" else f"{key}: {val}")
    if d.get("next_phases"):
        lines.append(f"next: {', '.join(d['next_phases'])}")
    if d.get("planned_start") or d.get("planned_end"):
        lines.append(f"planned: {d.get('planned_start') or '?'} .. {d.get('planned_end') or '?'}")
    if d.get("enhances_work_item_id"):
        lines.append(f"enhances: {d['enhances_work_item_id']}")
    if d.get("review_reason"):
        lines.append(f"review reason: {d['review_reason']}")

    fields = d.get("fields") or {}
    if fields:
        lines.append("")
        for key in sorted(fields):
            lines.append(f"{key}: {fields[key]}")

    if verbose:
        perms = d.get("permissions") or {}
        granted = [k for k, v in perms.items() if v]
        lines.append("")
        lines.append(f"editable: {', '.join(d.get('editable_fields', [])) or '-'}")
        lines.append(f"you can: {', '.join(granted) or '-'}")

    title = f"{d.get('id', '?')}: {d.get('title', 'Untitled')}"
    style = style_for_type(str(d.get("type", "")))
    console.print(Panel("\n".join(lines), title=title, border_style=style or "dim", expand=False))


def _render_work_item_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    console.print(_work_item_table(items, verbose=verbose))
    console.print(f"\n{result.data.get('count', len(items))} items")


def _render_versions(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Version", justify="right")
    table.add_column("ID", style="phase.id", no_wrap=True)
    table.add_column("Title", style="phase.title")
    table.add_column("Phase", style="phase.name")
    table.add_column("Enhances", style="dim")
    for item in items:
        marker = " *" if item.get("id") == result.data.get("work_item_id") else ""
        table.add_row(
            f"v{item.get('version', 1)}{marker}",
            str(item.get("id", "")),
            str(item.get("title", "")),
            str(item.get("phase", "")),
            str(item.get("enhances") or "-"),
        )
    console.print(table)
    console.print(f"\nlatest: {result.data.get('latest')}")


def _render_history(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Entered", style="dim", no_wrap=True)
    table.add_column("From")
    table.add_column("Phase", style="phase.name")
    table.add_column("By")
    for entry in items:
        table.add_row(
            str(entry.get("entered_at", "")),
            str(entry.get("from_phase") or "-"),
            str(entry.get("phase", "")),
            str(entry.get("entered_by", "")),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} entries")


def _render_buckets(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    console.print(
        Text(
            f"Timeline as of {d.get('as_of')} "
            f"(MVP <= {d.get('mvp_horizon_days')}d, SHORT <= {d.get('short_horizon_days')}d)",
            style="phase.op",
        )
    )
    for name, items in d.get("buckets", {}).items():
        console.print()
        console.print(Text(f"{name} ({len(items)})", style=style_for_bucket(name)))
        if items:
            console.print(_work_item_table(items, verbose=verbose))


def _render_distribution(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Type")
    table.add_column("Phase", style="phase.name")
    table.add_column("Count", justify="right")
    table.add_column("Share", justify="right")
    for item_type, phases in result.data.get("distribution", {}).items():
        for phase, stats in phases.items():
            table.add_row(
                Text(item_type, style=style_for_type(item_type)),
                phase,
                str(stats["count"]),
                f"{stats['percentage']:.1f}%",
            )
    console.print(table)
    console.print(f"\n{result.data.get('total', 0)} items")


def _render_members(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    console.print(_simple_table(items, ("user_id", "role", "joined")))
    console.print(f"\n{result.data.get('count', len(items))} members")


def _render_workspaces(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    console.print(_simple_table(items, ("id", "name", "created")))
    console.print(f"\n{result.data.get('count', len(items))} workspaces")


def _render_assignments(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    columns = ("user_id", "phase", "can_edit", "is_lead", "assigned_by")
    if verbose:
        columns = (*columns, "assigned_at", "notes")
    console.print(_simple_table(items, columns))
    console.print(f"\n{result.data.get('count', len(items))} assignments")


def _render_permissions(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    for key in ("user_id", "team_id", "workspace_id", "role", "is_admin"):
        _field(console, key, d.get(key))
    _field(console, "editable_phases", ", ".join(d.get("editable_phases", [])) or "-")
    _field(console, "lead_phases", ", ".join(d.get("lead_phases", [])) or "-")

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Phase", style="phase.name")
    for flag in ("can_view", "can_edit", "can_delete", "is_lead", "can_manage_assignments"):
        table.add_column(flag.replace("_", " "))
    for phase, flags in d.get("phases", {}).items():
        table.add_row(
            phase,
            *(_cell(flags.get(flag)) for flag in (
                "can_view", "can_edit", "can_delete", "is_lead", "can_manage_assignments"
            )),
        )
    console.print(table)


def _render_catalog(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    for entry in result.data.get("types", []):
        item_type = entry["type"]
        table = Table(
            title=Text(item_type, style=style_for_type(item_type)),
            show_header=True,
            show_lines=False,
            pad_edge=False,
            expand=False,
        )
        table.add_column("Phase", style="phase.name")
        table.add_column("Next")
        table.add_column("Terminal")
        table.add_column("Review gate")
        table.add_column("Progress", justify="right")
        if verbose:
            table.add_column("Editable fields")
        for phase in entry["phases"]:
            row = [
                phase["name"],
                ", ".join(phase["next"]) or "-",
                _cell(phase["terminal"]),
                _cell(phase["review_gated"]),
                f"{phase['progress']}%",
            ]
            if verbose:
                row.append(", ".join(phase["editable_fields"]) or "-")
            table.add_row(*row)
        console.print(table)


# ── Init renderer ─────────────────────────────────────────────────────


def _render_init(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render init results with store location and schema revision."""
    _status_line(console, result)
    d = result.data
    for key in ("root", "name", "config_path", "db_path", "revision", "created"):
        if key in d:
            _field(console, key, d[key])
    if verbose:
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Teams
    "create_team": _render_mutation,
    "add_member": _render_mutation,
    "set_role": _render_mutation,
    "remove_member": _render_mutation,
    "list_members": _render_members,
    "create_workspace": _render_mutation,
    "list_workspaces": _render_workspaces,
    # Permissions
    "resolve_permissions": _render_permissions,
    "assign_phase": _render_mutation,
    "unassign_phase": _render_mutation,
    "list_assignments": _render_assignments,
    # Work items
    "create_work_item": _render_mutation,
    "enhance": _render_mutation,
    "update_fields": _render_mutation,
    "archive": _render_mutation,
    "transition": _render_transition,
    "get_work_item": _render_work_item,
    "list_work_items": _render_work_item_table,
    "versions": _render_versions,
    "work_item_history": _render_history,
    "timeline_buckets": _render_buckets,
    "phase_distribution": _render_distribution,
    # Review
    "request_review": _render_review,
    "approve_review": _render_review,
    "reject_review": _render_review,
    "cancel_review": _render_review,
    "set_review_enabled": _render_review,
    # Catalog / init
    "catalog": _render_catalog,
    "init": _render_init,
}
