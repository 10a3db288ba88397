"""SQLAlchemy Core table definitions for the phasectl store.

Every tenant-owned table carries ``team_id``. Work-item level tables
also carry ``workspace_id`` so queries can be scoped without joins.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

teams = Table(
    "teams",
    metadata,
    Column("id", Text, primary_key=True),
    Column("name", Text, nullable=False),
    Column("owner_id", Text, nullable=False),
    Column("created", Text, nullable=False),
)

team_members = Table(
    "team_members",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("team_id", Text, ForeignKey("teams.id"), nullable=False),
    Column("user_id", Text, nullable=False),
    Column("role", Text, nullable=False),
    Column("joined", Text, nullable=False),
    UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
)

workspaces = Table(
    "workspaces",
    metadata,
    Column("id", Text, primary_key=True),
    Column("team_id", Text, ForeignKey("teams.id"), nullable=False),
    Column("name", Text, nullable=False),
    Column("created", Text, nullable=False),
)

work_items = Table(
    "work_items",
    metadata,
    Column("id", Text, primary_key=True),
    Column("team_id", Text, ForeignKey("teams.id"), nullable=False),
    Column("workspace_id", Text, ForeignKey("workspaces.id"), nullable=False),
    Column("type", Text, nullable=False),
    Column("phase", Text, nullable=False),
    Column("title", Text, nullable=False),
    Column("fields", Text, nullable=False, default="{}", server_default="{}"),  # JSON object
    Column("created_by", Text),
    Column("created", Text, nullable=False),
    Column("modified", Text, nullable=False),
    Column("archived", Integer, default=0, server_default="0"),
    Column("planned_start", Text),  # ISO date
    Column("planned_end", Text),  # ISO date
    Column("version", Integer, nullable=False, default=1, server_default="1"),
    Column("enhances_work_item_id", Text, ForeignKey("work_items.id"), unique=True),
    Column("version_notes", Text),
    Column("review_enabled", Integer, default=0, server_default="0"),
    Column("review_status", Text, nullable=False, default="none", server_default="none"),
    Column("review_reason", Text),
    Column("review_requested_at", Text),
    Column("review_completed_at", Text),
)

phase_assignments = Table(
    "phase_assignments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("team_id", Text, ForeignKey("teams.id"), nullable=False),
    Column("workspace_id", Text, ForeignKey("workspaces.id"), nullable=False),
    Column("user_id", Text, nullable=False),
    Column("phase", Text, nullable=False),
    Column("can_edit", Integer, default=0, server_default="0"),
    Column("is_lead", Integer, default=0, server_default="0"),
    Column("assigned_by", Text),
    Column("assigned_at", Text, nullable=False),
    Column("notes", Text),
    UniqueConstraint("user_id", "workspace_id", "phase", name="uq_phase_assignments_user_ws_phase"),
)

phase_history = Table(
    "phase_history",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("team_id", Text, ForeignKey("teams.id"), nullable=False),
    Column("workspace_id", Text, ForeignKey("workspaces.id"), nullable=False),
    Column("work_item_id", Text, ForeignKey("work_items.id"), nullable=False),
    Column("from_phase", Text),
    Column("phase", Text, nullable=False),
    Column("entered_at", Text, nullable=False),
    Column("entered_by", Text, nullable=False),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_workspaces_team", workspaces.c.team_id)
Index("ix_work_items_scope", work_items.c.team_id, work_items.c.workspace_id)
Index("ix_work_items_type_phase", work_items.c.type, work_items.c.phase)
Index("ix_phase_assignments_scope", phase_assignments.c.team_id, phase_assignments.c.workspace_id)
Index("ix_phase_history_item", phase_history.c.work_item_id)

id_counters = Table(
    "id_counters",
    metadata,
    Column("type_prefix", Text, primary_key=True),
    Column("next_value", Integer, nullable=False, default=1, server_default="1"),
)

event_wal = Table(
    "event_wal",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("hook_name", Text, nullable=False),
    Column("payload", Text, nullable=False),  # JSON
    Column("status", Text, nullable=False),
    Column("error", Text),
    Column("retries", Integer, default=0, server_default="0"),
    Column("actor", Text),
    Column("created", Text, nullable=False),
    Column("completed", Text),
)

# Tables whose every statement must be filtered by team_id.
TENANT_SCOPED_TABLES: frozenset[str] = frozenset(
    {"team_members", "workspaces", "work_items", "phase_assignments", "phase_history"}
)
