"""TeamService: teams, memberships, and workspaces.

The creator of a team becomes its owner. Only owners and admins manage
membership; only owners grant or revoke the owner role, and the last
owner can never be demoted or removed. Removing a member deletes their
phase assignments in the same transaction.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError

from phasectl.domain.models import Team, Workspace, to_public_dict
from phasectl.domain.types import ADMIN_ROLES, ReasonCode, TeamRole
from phasectl.infrastructure.database.counters import (
    TEAM_PREFIX,
    WORKSPACE_PREFIX,
    next_sequential_id,
)
from phasectl.infrastructure.repositories import (
    delete_member,
    delete_member_assignments,
    insert_member,
    insert_team,
    insert_workspace,
    list_members,
    list_workspaces,
    load_membership_role,
    update_member_role,
)
from phasectl.services._helpers import failure, now_iso
from phasectl.services.base import BaseService
from phasectl.services.result import ServiceResult
from phasectl.services.telemetry import traced

if TYPE_CHECKING:
    from sqlalchemy import Connection

logger = logging.getLogger(__name__)

_VALID_ROLES = frozenset(r.value for r in TeamRole)


def _invalid_role(op: str, role: str) -> ServiceResult:
    return failure(
        op,
        ReasonCode.INVALID_ROLE,
        f"Unknown role {role!r}; expected one of {sorted(_VALID_ROLES)}",
        role=role,
    )


class TeamService(BaseService):
    """Team and workspace administration."""

    @traced
    def create_team(self, name: str, *, actor: str) -> ServiceResult:
        op = "create_team"
        if not name.strip():
            return failure(op, ReasonCode.VALIDATION_FAILED, "Team name is required")

        now = now_iso()
        with self._store.transaction() as txn:
            team_id = next_sequential_id(txn.conn, TEAM_PREFIX)
            insert_team(txn.conn, team_id=team_id, name=name.strip(), owner_id=actor, created=now)
            insert_member(txn.conn, team_id=team_id, user_id=actor, role=TeamRole.OWNER, joined=now)

        warnings: list[str] = []
        self._dispatch_event(
            "post_membership",
            {"team_id": team_id, "user_id": actor, "action": "added", "role": TeamRole.OWNER.value},
            warnings,
            actor=actor,
        )
        logger.info("Created team %s owned by %s", team_id, actor)
        team = Team(id=team_id, name=name.strip(), owner_id=actor, created=now)
        return ServiceResult(ok=True, op=op, data=to_public_dict(team), warnings=warnings)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    @traced
    def add_member(
        self, team_id: str, user_id: str, role: str = "member", *, actor: str
    ) -> ServiceResult:
        op = "add_member"
        if role not in _VALID_ROLES:
            return _invalid_role(op, role)

        with self._store.transaction() as txn:
            actor_role = load_membership_role(txn.conn, team_id=team_id, user_id=actor)
            if actor_role is None:
                return self._not_a_member(op, team_id, actor)
            if actor_role not in ADMIN_ROLES:
                return failure(op, ReasonCode.FORBIDDEN, "Only owners and admins can add members")
            if role == TeamRole.OWNER and actor_role != TeamRole.OWNER:
                return failure(op, ReasonCode.FORBIDDEN, "Only owners can add owners")
            if load_membership_role(txn.conn, team_id=team_id, user_id=user_id) is not None:
                return failure(
                    op, ReasonCode.ALREADY_EXISTS, f"{user_id} is already a member of {team_id}"
                )
            try:
                insert_member(txn.conn, team_id=team_id, user_id=user_id, role=role, joined=now_iso())
            except IntegrityError:
                # A concurrent add won the unique (team_id, user_id) slot.
                return failure(
                    op, ReasonCode.ALREADY_EXISTS, f"{user_id} is already a member of {team_id}"
                )

        warnings: list[str] = []
        self._dispatch_event(
            "post_membership",
            {"team_id": team_id, "user_id": user_id, "action": "added", "role": role},
            warnings,
            actor=actor,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"team_id": team_id, "user_id": user_id, "role": role},
            warnings=warnings,
        )

    @traced
    def set_role(self, team_id: str, user_id: str, role: str, *, actor: str) -> ServiceResult:
        op = "set_role"
        if role not in _VALID_ROLES:
            return _invalid_role(op, role)

        with self._store.transaction() as txn:
            actor_role = load_membership_role(txn.conn, team_id=team_id, user_id=actor)
            if actor_role is None:
                return self._not_a_member(op, team_id, actor)
            if actor_role not in ADMIN_ROLES:
                return failure(op, ReasonCode.FORBIDDEN, "Only owners and admins can change roles")

            current = load_membership_role(txn.conn, team_id=team_id, user_id=user_id)
            if current is None:
                return self._not_a_member(op, team_id, user_id)
            touches_owner = TeamRole.OWNER in (current, role)
            if touches_owner and actor_role != TeamRole.OWNER:
                return failure(op, ReasonCode.FORBIDDEN, "Only owners can grant or revoke ownership")
            if current == TeamRole.OWNER and role != TeamRole.OWNER and self._is_last_owner(txn.conn, team_id):
                return failure(op, ReasonCode.VALIDATION_FAILED, "A team must keep at least one owner")

            update_member_role(txn.conn, team_id=team_id, user_id=user_id, role=role)

        warnings: list[str] = []
        self._dispatch_event(
            "post_membership",
            {"team_id": team_id, "user_id": user_id, "action": "role_changed", "role": role},
            warnings,
            actor=actor,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"team_id": team_id, "user_id": user_id, "role": role, "previous_role": current},
            warnings=warnings,
        )

    @traced
    def remove_member(self, team_id: str, user_id: str, *, actor: str) -> ServiceResult:
        """Remove *user_id* and cascade their phase assignments.

        Admins may remove anyone but the last owner; any member may leave.
        """
        op = "remove_member"
        with self._store.transaction() as txn:
            actor_role = load_membership_role(txn.conn, team_id=team_id, user_id=actor)
            if actor_role is None:
                return self._not_a_member(op, team_id, actor)
            if actor != user_id and actor_role not in ADMIN_ROLES:
                return failure(op, ReasonCode.FORBIDDEN, "Only owners and admins can remove members")

            current = load_membership_role(txn.conn, team_id=team_id, user_id=user_id)
            if current is None:
                return self._not_a_member(op, team_id, user_id)
            if current == TeamRole.OWNER:
                if actor_role != TeamRole.OWNER:
                    return failure(op, ReasonCode.FORBIDDEN, "Only owners can remove an owner")
                if self._is_last_owner(txn.conn, team_id):
                    return failure(
                        op, ReasonCode.VALIDATION_FAILED, "A team must keep at least one owner"
                    )

            removed_assignments = delete_member_assignments(txn.conn, team_id=team_id, user_id=user_id)
            delete_member(txn.conn, team_id=team_id, user_id=user_id)

        warnings: list[str] = []
        self._dispatch_event(
            "post_membership",
            {"team_id": team_id, "user_id": user_id, "action": "removed", "role": None},
            warnings,
            actor=actor,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "team_id": team_id,
                "user_id": user_id,
                "removed_assignments": removed_assignments,
            },
            warnings=warnings,
        )

    @traced
    def list_members(self, team_id: str, *, actor: str) -> ServiceResult:
        op = "list_members"
        with self._store.connect() as conn:
            if load_membership_role(conn, team_id=team_id, user_id=actor) is None:
                return self._not_a_member(op, team_id, actor)
            members = list_members(conn, team_id=team_id)
        return ServiceResult(
            ok=True, op=op, data={"team_id": team_id, "count": len(members), "items": members}
        )

    @staticmethod
    def _is_last_owner(conn: Connection, team_id: str) -> bool:
        owners = [m for m in list_members(conn, team_id=team_id) if m["role"] == TeamRole.OWNER]
        return len(owners) <= 1

    # ------------------------------------------------------------------
    # Workspaces
    # ------------------------------------------------------------------

    @traced
    def create_workspace(self, team_id: str, name: str, *, actor: str) -> ServiceResult:
        op = "create_workspace"
        if not name.strip():
            return failure(op, ReasonCode.VALIDATION_FAILED, "Workspace name is required")

        now = now_iso()
        with self._store.transaction() as txn:
            actor_role = load_membership_role(txn.conn, team_id=team_id, user_id=actor)
            if actor_role is None:
                return self._not_a_member(op, team_id, actor)
            if actor_role not in ADMIN_ROLES:
                return failure(op, ReasonCode.FORBIDDEN, "Only owners and admins can create workspaces")
            workspace_id = next_sequential_id(txn.conn, WORKSPACE_PREFIX)
            insert_workspace(
                txn.conn, team_id=team_id, workspace_id=workspace_id, name=name.strip(), created=now
            )

        workspace = Workspace(id=workspace_id, team_id=team_id, name=name.strip(), created=now)
        return ServiceResult(ok=True, op=op, data=to_public_dict(workspace))

    @traced
    def list_workspaces(self, team_id: str, *, actor: str) -> ServiceResult:
        op = "list_workspaces"
        with self._store.connect() as conn:
            if load_membership_role(conn, team_id=team_id, user_id=actor) is None:
                return self._not_a_member(op, team_id, actor)
            rows = list_workspaces(conn, team_id=team_id)
        items = [to_public_dict(Workspace.model_validate(row)) for row in rows]
        return ServiceResult(
            ok=True, op=op, data={"team_id": team_id, "count": len(items), "items": items}
        )
