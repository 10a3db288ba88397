"""Work item rows: load, insert, compare-and-set updates, and listing.

State-changing updates are conditional: the ``WHERE`` clause repeats
the phase (and review status) the caller's decision was computed from,
so a concurrent writer that got there first makes the update match no
row. Callers treat a ``False`` return as a conflict.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update

from phasectl.infrastructure.database.schema import work_items

if TYPE_CHECKING:
    from sqlalchemy import Connection

_BOOL_COLUMNS = ("archived", "review_enabled")


def _row_to_dict(row: Mapping[str, Any]) -> dict[str, Any]:
    data = dict(row)
    data["fields"] = json.loads(data.get("fields") or "{}")
    for col in _BOOL_COLUMNS:
        data[col] = bool(data[col])
    return data


def _encode(values: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(values)
    if "fields" in out:
        out["fields"] = json.dumps(out["fields"], sort_keys=True, default=str)
    for key, value in out.items():
        if isinstance(value, date):
            out[key] = value.isoformat()
    for col in _BOOL_COLUMNS:
        if col in out:
            out[col] = int(bool(out[col]))
    return out


def load_work_item(
    conn: Connection,
    work_item_id: str,
    *,
    team_id: str,
    include_archived: bool = False,
) -> dict[str, Any] | None:
    stmt = select(work_items).where(
        work_items.c.id == work_item_id,
        work_items.c.team_id == team_id,
    )
    if not include_archived:
        stmt = stmt.where(work_items.c.archived == 0)
    row = conn.execute(stmt).mappings().first()
    return _row_to_dict(row) if row is not None else None


def insert_work_item(
    conn: Connection,
    values: Mapping[str, Any],
    *,
    team_id: str,
    workspace_id: str,
) -> None:
    """Insert a new row. Tenant columns come from the keyword arguments only."""
    row = _encode(values)
    row["team_id"] = team_id
    row["workspace_id"] = workspace_id
    conn.execute(insert(work_items).values(**row))


def compare_and_set_phase(
    conn: Connection,
    work_item_id: str,
    *,
    team_id: str,
    expected_phase: str,
    expected_review_status: str,
    new_phase: str,
    modified: str,
) -> bool:
    result = conn.execute(
        update(work_items)
        .where(
            work_items.c.id == work_item_id,
            work_items.c.team_id == team_id,
            work_items.c.archived == 0,
            work_items.c.phase == expected_phase,
            work_items.c.review_status == expected_review_status,
        )
        .values(phase=new_phase, modified=modified)
    )
    return result.rowcount == 1


def compare_and_set_review(
    conn: Connection,
    work_item_id: str,
    *,
    team_id: str,
    expected_phase: str,
    expected_review_status: str,
    changes: Mapping[str, Any],
    modified: str,
) -> bool:
    """Apply review column *changes* if phase and status are unchanged."""
    result = conn.execute(
        update(work_items)
        .where(
            work_items.c.id == work_item_id,
            work_items.c.team_id == team_id,
            work_items.c.archived == 0,
            work_items.c.phase == expected_phase,
            work_items.c.review_status == expected_review_status,
        )
        .values(**_encode(changes), modified=modified)
    )
    return result.rowcount == 1


def update_work_item_fields(
    conn: Connection,
    work_item_id: str,
    *,
    team_id: str,
    expected_phase: str,
    changes: Mapping[str, Any],
    modified: str,
) -> bool:
    """Write content columns (title, fields, planned dates) if still in *expected_phase*."""
    result = conn.execute(
        update(work_items)
        .where(
            work_items.c.id == work_item_id,
            work_items.c.team_id == team_id,
            work_items.c.archived == 0,
            work_items.c.phase == expected_phase,
        )
        .values(**_encode(changes), modified=modified)
    )
    return result.rowcount == 1


def archive_work_item(
    conn: Connection,
    work_item_id: str,
    *,
    team_id: str,
    expected_phase: str,
    modified: str,
) -> bool:
    result = conn.execute(
        update(work_items)
        .where(
            work_items.c.id == work_item_id,
            work_items.c.team_id == team_id,
            work_items.c.archived == 0,
            work_items.c.phase == expected_phase,
        )
        .values(archived=1, modified=modified)
    )
    return result.rowcount == 1


def find_enhancement(conn: Connection, work_item_id: str, *, team_id: str) -> dict[str, Any] | None:
    """The item that enhances *work_item_id*, archived or not."""
    row = (
        conn.execute(
            select(work_items).where(
                work_items.c.team_id == team_id,
                work_items.c.enhances_work_item_id == work_item_id,
            )
        )
        .mappings()
        .first()
    )
    return _row_to_dict(row) if row is not None else None


def list_work_items(
    conn: Connection,
    *,
    team_id: str,
    workspace_id: str,
    item_type: str | None = None,
    phase: str | None = None,
    include_archived: bool = False,
) -> list[dict[str, Any]]:
    stmt = select(work_items).where(
        work_items.c.team_id == team_id,
        work_items.c.workspace_id == workspace_id,
    )
    if item_type is not None:
        stmt = stmt.where(work_items.c.type == item_type)
    if phase is not None:
        stmt = stmt.where(work_items.c.phase == phase)
    if not include_archived:
        stmt = stmt.where(work_items.c.archived == 0)
    rows = conn.execute(stmt.order_by(work_items.c.id)).mappings()
    return [_row_to_dict(row) for row in rows]
