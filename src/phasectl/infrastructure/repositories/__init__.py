"""Tenant-scoped persistence functions.

Every function takes the caller's ``Connection`` (so writes join the
caller's transaction) and a keyword-only ``team_id``. Work-item level
functions also require ``workspace_id`` where a workspace is implied.
There is no unscoped path to any tenant-owned row.
"""

from phasectl.infrastructure.repositories.assignments import (
    delete_member_assignments,
    delete_phase_assignment,
    load_phase_assignments,
    upsert_phase_assignment,
)
from phasectl.infrastructure.repositories.history import (
    append_phase_history,
    load_phase_history,
)
from phasectl.infrastructure.repositories.teams import (
    delete_member,
    insert_member,
    insert_team,
    insert_workspace,
    list_members,
    list_workspaces,
    load_membership_role,
    load_team,
    load_workspace,
    update_member_role,
)
from phasectl.infrastructure.repositories.work_items import (
    archive_work_item,
    compare_and_set_phase,
    compare_and_set_review,
    find_enhancement,
    insert_work_item,
    list_work_items,
    load_work_item,
    update_work_item_fields,
)

__all__ = [
    "append_phase_history",
    "archive_work_item",
    "compare_and_set_phase",
    "compare_and_set_review",
    "delete_member",
    "delete_member_assignments",
    "delete_phase_assignment",
    "find_enhancement",
    "insert_member",
    "insert_team",
    "insert_work_item",
    "insert_workspace",
    "list_members",
    "list_work_items",
    "list_workspaces",
    "load_membership_role",
    "load_phase_assignments",
    "load_phase_history",
    "load_team",
    "load_work_item",
    "load_workspace",
    "update_member_role",
    "update_work_item_fields",
    "upsert_phase_assignment",
]
