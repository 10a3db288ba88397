"""Append-only phase history log."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select

from phasectl.infrastructure.database.schema import phase_history

if TYPE_CHECKING:
    from sqlalchemy import Connection


def append_phase_history(
    conn: Connection,
    work_item_id: str,
    *,
    team_id: str,
    workspace_id: str,
    from_phase: str | None,
    phase: str,
    entered_at: str,
    entered_by: str,
) -> None:
    """Append one entry. Rows are never updated or deleted."""
    conn.execute(
        insert(phase_history).values(
            team_id=team_id,
            workspace_id=workspace_id,
            work_item_id=work_item_id,
            from_phase=from_phase,
            phase=phase,
            entered_at=entered_at,
            entered_by=entered_by,
        )
    )


def load_phase_history(conn: Connection, work_item_id: str, *, team_id: str) -> list[dict[str, Any]]:
    """Entries for *work_item_id* in insertion order."""
    rows = conn.execute(
        select(phase_history)
        .where(
            phase_history.c.team_id == team_id,
            phase_history.c.work_item_id == work_item_id,
        )
        .order_by(phase_history.c.id)
    ).mappings()
    return [dict(row) for row in rows]
