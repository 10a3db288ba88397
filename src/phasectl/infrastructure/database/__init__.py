"""SQLite database engine, schema, and ID counters via SQLAlchemy Core."""

from phasectl.infrastructure.database.counters import next_sequential_id
from phasectl.infrastructure.database.engine import create_db_engine, init_database
from phasectl.infrastructure.database.schema import (
    event_wal,
    id_counters,
    metadata,
    phase_assignments,
    phase_history,
    team_members,
    teams,
    work_items,
    workspaces,
)

__all__ = [
    "create_db_engine",
    "event_wal",
    "id_counters",
    "init_database",
    "metadata",
    "next_sequential_id",
    "phase_assignments",
    "phase_history",
    "team_members",
    "teams",
    "work_items",
    "workspaces",
]
