"""PermissionService: resolve and manage per-phase assignments.

Owners and admins may assign any phase. A phase lead may grant or
revoke plain edit access on the phases they lead; only owners and
admins can hand out or take away the lead flag.
"""

from __future__ import annotations

from phasectl.domain.catalog import all_phases
from phasectl.domain.models import PhaseAssignment, to_public_dict
from phasectl.domain.types import ReasonCode
from phasectl.infrastructure.repositories import (
    delete_phase_assignment,
    load_membership_role,
    load_phase_assignments,
    upsert_phase_assignment,
)
from phasectl.services._helpers import failure, now_iso
from phasectl.services.base import BaseService
from phasectl.services.result import ServiceResult
from phasectl.services.telemetry import traced


class PermissionService(BaseService):
    """Permission resolution and phase-assignment administration."""

    @traced
    def resolve(
        self, team_id: str, workspace_id: str, *, actor: str, user_id: str | None = None
    ) -> ServiceResult:
        """Resolve the permission set of *user_id* (default: the actor).

        Looking at someone else's permissions needs only team membership.
        """
        op = "resolve_permissions"
        subject = user_id or actor
        with self._store.connect() as conn:
            if self._load_membership(conn, team_id, actor) is None:
                return self._not_a_member(op, team_id, actor)
            if (missing := self._workspace_missing(conn, op, team_id, workspace_id)) is not None:
                return missing
            membership = self._load_membership(conn, team_id, subject)
            if membership is None:
                return self._not_a_member(op, team_id, subject)
            permissions = self._load_permissions(conn, membership, workspace_id)

        return ServiceResult(ok=True, op=op, data=permissions.access_summary())

    @traced
    def assign(
        self,
        team_id: str,
        workspace_id: str,
        user_id: str,
        phase: str,
        *,
        actor: str,
        can_edit: bool = True,
        is_lead: bool = False,
        notes: str | None = None,
    ) -> ServiceResult:
        op = "assign_phase"
        if phase not in all_phases():
            return failure(
                op,
                ReasonCode.VALIDATION_FAILED,
                f"Unknown phase {phase!r}; expected one of {list(all_phases())}",
                phase=phase,
            )

        with self._store.transaction() as txn:
            membership = self._load_membership(txn.conn, team_id, actor)
            if membership is None:
                return self._not_a_member(op, team_id, actor)
            if (missing := self._workspace_missing(txn.conn, op, team_id, workspace_id)) is not None:
                return missing
            permissions = self._load_permissions(txn.conn, membership, workspace_id)
            if not permissions.for_phase(phase).can_manage_assignments:
                return failure(
                    op, ReasonCode.FORBIDDEN, f"{actor} cannot manage assignments on {phase!r}"
                )
            if is_lead and not permissions.is_admin:
                return failure(op, ReasonCode.FORBIDDEN, "Only owners and admins can assign leads")
            if load_membership_role(txn.conn, team_id=team_id, user_id=user_id) is None:
                return self._not_a_member(op, team_id, user_id)
            if not permissions.is_admin:
                existing = load_phase_assignments(
                    txn.conn, team_id=team_id, workspace_id=workspace_id, user_id=user_id
                )
                if any(r["phase"] == phase and r["is_lead"] for r in existing):
                    return failure(
                        op, ReasonCode.FORBIDDEN, "Only owners and admins can change a lead"
                    )

            assigned_at = now_iso()
            created = upsert_phase_assignment(
                txn.conn,
                team_id=team_id,
                workspace_id=workspace_id,
                user_id=user_id,
                phase=phase,
                can_edit=can_edit,
                is_lead=is_lead,
                assigned_by=actor,
                assigned_at=assigned_at,
                notes=notes,
            )

        assignment = PhaseAssignment(
            user_id=user_id,
            workspace_id=workspace_id,
            team_id=team_id,
            phase=phase,
            can_edit=can_edit,
            is_lead=is_lead,
            assigned_by=actor,
            assigned_at=assigned_at,
            notes=notes,
        )
        warnings: list[str] = []
        self._dispatch_event(
            "post_assignment",
            {
                "team_id": team_id,
                "workspace_id": workspace_id,
                "user_id": user_id,
                "phase": phase,
                "action": "assigned" if created else "updated",
            },
            warnings,
            actor=actor,
        )
        data = to_public_dict(assignment)
        data["created"] = created
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def unassign(
        self, team_id: str, workspace_id: str, user_id: str, phase: str, *, actor: str
    ) -> ServiceResult:
        op = "unassign_phase"
        with self._store.transaction() as txn:
            membership = self._load_membership(txn.conn, team_id, actor)
            if membership is None:
                return self._not_a_member(op, team_id, actor)
            permissions = self._load_permissions(txn.conn, membership, workspace_id)
            if not permissions.for_phase(phase).can_manage_assignments:
                return failure(
                    op, ReasonCode.FORBIDDEN, f"{actor} cannot manage assignments on {phase!r}"
                )

            existing = load_phase_assignments(
                txn.conn, team_id=team_id, workspace_id=workspace_id, user_id=user_id
            )
            row = next((r for r in existing if r["phase"] == phase), None)
            if row is None:
                return failure(
                    op,
                    ReasonCode.NOT_FOUND,
                    f"{user_id} has no assignment on {phase!r} in {workspace_id}",
                )
            if row["is_lead"] and not permissions.is_admin:
                return failure(op, ReasonCode.FORBIDDEN, "Only owners and admins can remove a lead")

            delete_phase_assignment(
                txn.conn, team_id=team_id, workspace_id=workspace_id, user_id=user_id, phase=phase
            )

        warnings: list[str] = []
        self._dispatch_event(
            "post_assignment",
            {
                "team_id": team_id,
                "workspace_id": workspace_id,
                "user_id": user_id,
                "phase": phase,
                "action": "unassigned",
            },
            warnings,
            actor=actor,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"team_id": team_id, "workspace_id": workspace_id, "user_id": user_id, "phase": phase},
            warnings=warnings,
        )

    @traced
    def list_assignments(
        self, team_id: str, workspace_id: str, *, actor: str, user_id: str | None = None
    ) -> ServiceResult:
        op = "list_assignments"
        with self._store.connect() as conn:
            if self._load_membership(conn, team_id, actor) is None:
                return self._not_a_member(op, team_id, actor)
            if (missing := self._workspace_missing(conn, op, team_id, workspace_id)) is not None:
                return missing
            rows = load_phase_assignments(
                conn, team_id=team_id, workspace_id=workspace_id, user_id=user_id
            )
        items = [to_public_dict(PhaseAssignment.model_validate(row)) for row in rows]
        return ServiceResult(
            ok=True,
            op=op,
            data={"team_id": team_id, "workspace_id": workspace_id, "count": len(items), "items": items},
        )
