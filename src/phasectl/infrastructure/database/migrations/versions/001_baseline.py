"""Baseline schema: teams, membership, work items, assignments, history.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-10-19

Databases created by ``phasectl init`` are stamped at this revision
without running it.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    op.create_table(
        "teams",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("owner_id", sa.Text, nullable=False),
        sa.Column("created", sa.Text, nullable=False),
    )

    op.create_table(
        "team_members",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("team_id", sa.Text, sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column("role", sa.Text, nullable=False),
        sa.Column("joined", sa.Text, nullable=False),
        sa.UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
    )

    op.create_table(
        "workspaces",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("team_id", sa.Text, sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("created", sa.Text, nullable=False),
    )
    op.create_index("ix_workspaces_team", "workspaces", ["team_id"])

    op.create_table(
        "work_items",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("team_id", sa.Text, sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("workspace_id", sa.Text, sa.ForeignKey("workspaces.id"), nullable=False),
        sa.Column("type", sa.Text, nullable=False),
        sa.Column("phase", sa.Text, nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("fields", sa.Text, nullable=False, server_default="{}"),
        sa.Column("created_by", sa.Text),
        sa.Column("created", sa.Text, nullable=False),
        sa.Column("modified", sa.Text, nullable=False),
        sa.Column("archived", sa.Integer, server_default="0"),
        sa.Column("planned_start", sa.Text),
        sa.Column("planned_end", sa.Text),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column(
            "enhances_work_item_id", sa.Text, sa.ForeignKey("work_items.id"), unique=True
        ),
        sa.Column("version_notes", sa.Text),
        sa.Column("review_enabled", sa.Integer, server_default="0"),
        sa.Column("review_status", sa.Text, nullable=False, server_default="none"),
        sa.Column("review_reason", sa.Text),
        sa.Column("review_requested_at", sa.Text),
        sa.Column("review_completed_at", sa.Text),
    )
    op.create_index("ix_work_items_scope", "work_items", ["team_id", "workspace_id"])
    op.create_index("ix_work_items_type_phase", "work_items", ["type", "phase"])

    op.create_table(
        "phase_assignments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("team_id", sa.Text, sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("workspace_id", sa.Text, sa.ForeignKey("workspaces.id"), nullable=False),
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column("phase", sa.Text, nullable=False),
        sa.Column("can_edit", sa.Integer, server_default="0"),
        sa.Column("is_lead", sa.Integer, server_default="0"),
        sa.Column("assigned_by", sa.Text),
        sa.Column("assigned_at", sa.Text, nullable=False),
        sa.Column("notes", sa.Text),
        sa.UniqueConstraint(
            "user_id", "workspace_id", "phase", name="uq_phase_assignments_user_ws_phase"
        ),
    )
    op.create_index(
        "ix_phase_assignments_scope", "phase_assignments", ["team_id", "workspace_id"]
    )

    op.create_table(
        "phase_history",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("team_id", sa.Text, sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("workspace_id", sa.Text, sa.ForeignKey("workspaces.id"), nullable=False),
        sa.Column("work_item_id", sa.Text, sa.ForeignKey("work_items.id"), nullable=False),
        sa.Column("from_phase", sa.Text),
        sa.Column("phase", sa.Text, nullable=False),
        sa.Column("entered_at", sa.Text, nullable=False),
        sa.Column("entered_by", sa.Text, nullable=False),
    )
    op.create_index("ix_phase_history_item", "phase_history", ["work_item_id"])

    op.create_table(
        "id_counters",
        sa.Column("type_prefix", sa.Text, primary_key=True),
        sa.Column("next_value", sa.Integer, nullable=False, server_default="1"),
    )

    op.create_table(
        "event_wal",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("hook_name", sa.Text, nullable=False),
        sa.Column("payload", sa.Text, nullable=False),
        sa.Column("status", sa.Text, nullable=False),
        sa.Column("error", sa.Text),
        sa.Column("retries", sa.Integer, server_default="0"),
        sa.Column("actor", sa.Text),
        sa.Column("created", sa.Text, nullable=False),
        sa.Column("completed", sa.Text),
    )


def downgrade() -> None:
    for table in (
        "event_wal",
        "id_counters",
        "phase_history",
        "phase_assignments",
        "work_items",
        "workspaces",
        "team_members",
        "teams",
    ):
        op.drop_table(table)
