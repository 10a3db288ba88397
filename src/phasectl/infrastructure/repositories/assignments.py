"""Per-user, per-workspace, per-phase assignment rows."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from phasectl.infrastructure.database.schema import phase_assignments

if TYPE_CHECKING:
    from sqlalchemy import Connection


def _row_to_dict(row: Any) -> dict[str, Any]:
    data = dict(row)
    data["can_edit"] = bool(data["can_edit"])
    data["is_lead"] = bool(data["is_lead"])
    data.pop("id", None)
    return data


def load_phase_assignments(
    conn: Connection,
    *,
    team_id: str,
    workspace_id: str,
    user_id: str | None = None,
) -> list[dict[str, Any]]:
    """Assignment rows for a workspace, optionally for a single user."""
    stmt = select(phase_assignments).where(
        phase_assignments.c.team_id == team_id,
        phase_assignments.c.workspace_id == workspace_id,
    )
    if user_id is not None:
        stmt = stmt.where(phase_assignments.c.user_id == user_id)
    rows = conn.execute(stmt.order_by(phase_assignments.c.id)).mappings()
    return [_row_to_dict(row) for row in rows]


def upsert_phase_assignment(
    conn: Connection,
    *,
    team_id: str,
    workspace_id: str,
    user_id: str,
    phase: str,
    can_edit: bool,
    is_lead: bool,
    assigned_by: str,
    assigned_at: str,
    notes: str | None = None,
) -> bool:
    """Create or replace the single row for (user, workspace, phase).

    Returns True when a new row was created.
    """
    values = {
        "can_edit": int(can_edit),
        "is_lead": int(is_lead),
        "assigned_by": assigned_by,
        "assigned_at": assigned_at,
        "notes": notes,
    }
    result = conn.execute(
        update(phase_assignments)
        .where(
            phase_assignments.c.team_id == team_id,
            phase_assignments.c.workspace_id == workspace_id,
            phase_assignments.c.user_id == user_id,
            phase_assignments.c.phase == phase,
        )
        .values(**values)
    )
    if result.rowcount:
        return False
    conn.execute(
        insert(phase_assignments).values(
            team_id=team_id,
            workspace_id=workspace_id,
            user_id=user_id,
            phase=phase,
            **values,
        )
    )
    return True


def delete_phase_assignment(
    conn: Connection, *, team_id: str, workspace_id: str, user_id: str, phase: str
) -> bool:
    result = conn.execute(
        delete(phase_assignments).where(
            phase_assignments.c.team_id == team_id,
            phase_assignments.c.workspace_id == workspace_id,
            phase_assignments.c.user_id == user_id,
            phase_assignments.c.phase == phase,
        )
    )
    return result.rowcount == 1


def delete_member_assignments(conn: Connection, *, team_id: str, user_id: str) -> int:
    """Remove every assignment *user_id* holds in the team. Returns the count."""
    result = conn.execute(
        delete(phase_assignments).where(
            phase_assignments.c.team_id == team_id,
            phase_assignments.c.user_id == user_id,
        )
    )
    return int(result.rowcount)
