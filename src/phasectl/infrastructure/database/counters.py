"""Atomic sequential ID generation for teams, workspaces, and work items.

Uses the ``id_counters`` table inside the caller's transaction so no
two writers can claim the same number. Minimum 4 digits, grows
naturally past 9999.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update

from phasectl.infrastructure.database.schema import id_counters

if TYPE_CHECKING:
    from sqlalchemy import Connection

TEAM_PREFIX = "TEAM-"
WORKSPACE_PREFIX = "WS-"
WORK_ITEM_PREFIX = "WI-"

SEQUENTIAL_PREFIXES: tuple[str, ...] = (TEAM_PREFIX, WORKSPACE_PREFIX, WORK_ITEM_PREFIX)


def next_sequential_id(conn: Connection, type_prefix: str) -> str:
    """Claim the next sequential ID for *type_prefix*.

    The counter increment becomes part of the caller's transaction;
    commit or rollback is the caller's responsibility.

    Returns:
        The new ID string (e.g. ``"WI-0001"``).

    Raises:
        ValueError: If *type_prefix* is not a recognized sequential type.
    """
    if type_prefix not in SEQUENTIAL_PREFIXES:
        msg = (
            f"Unknown sequential type prefix: {type_prefix!r}. "
            f"Expected one of {sorted(SEQUENTIAL_PREFIXES)}"
        )
        raise ValueError(msg)

    # Increment first so SQLite takes the write lock before the read.
    conn.execute(
        update(id_counters)
        .where(id_counters.c.type_prefix == type_prefix)
        .values(next_value=id_counters.c.next_value + 1)
    )
    claimed: int = conn.execute(
        select(id_counters.c.next_value).where(id_counters.c.type_prefix == type_prefix)
    ).scalar_one() - 1

    return f"{type_prefix}{claimed:04d}"
