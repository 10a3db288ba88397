"""Phase permission resolver.

Turns an explicit membership and phase-assignment snapshot into a
per-phase permission set. The resolver performs no I/O: callers load
the snapshot through the repositories and pass it in, so the same
snapshot always produces the same result.

Owners and admins short-circuit to full permission on every phase;
assignment rows are not consulted for them. Any other member without
an assignment row for a phase can view it and nothing more.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

from phasectl.domain.catalog import all_phases
from phasectl.domain.models import PhaseAssignment, TeamMembership
from phasectl.domain.types import ADMIN_ROLES


class NotAMemberError(LookupError):
    """The actor has no membership row in the team."""


@dataclass(frozen=True)
class PhasePermissions:
    can_view: bool = True
    can_edit: bool = False
    can_delete: bool = False
    is_lead: bool = False
    can_manage_assignments: bool = False


VIEW_ONLY = PhasePermissions()
FULL_ACCESS = PhasePermissions(
    can_view=True,
    can_edit=True,
    can_delete=True,
    is_lead=True,
    can_manage_assignments=True,
)


@dataclass(frozen=True)
class PermissionSet:
    """Resolved permissions of one member for one workspace."""

    user_id: str
    team_id: str
    role: str
    workspace_id: str | None = None
    phases: Mapping[str, PhasePermissions] = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    def for_phase(self, phase: str) -> PhasePermissions:
        """Permissions for *phase*; phases outside the set are view-only."""
        return self.phases.get(phase, FULL_ACCESS if self.is_admin else VIEW_ONLY)

    # --- Derived projections ---

    @property
    def editable_phases(self) -> tuple[str, ...]:
        return tuple(p for p, perms in self.phases.items() if perms.can_edit)

    @property
    def lead_phases(self) -> tuple[str, ...]:
        return tuple(p for p, perms in self.phases.items() if perms.is_lead)

    @property
    def has_any_edit_permission(self) -> bool:
        return bool(self.editable_phases)

    @property
    def is_lead_in_any_phase(self) -> bool:
        return bool(self.lead_phases)

    @property
    def editable_phase_count(self) -> int:
        return len(self.editable_phases)

    @property
    def lead_phase_count(self) -> int:
        return len(self.lead_phases)

    def access_summary(self) -> dict[str, Any]:
        """JSON-safe summary for display."""
        return {
            "user_id": self.user_id,
            "team_id": self.team_id,
            "workspace_id": self.workspace_id,
            "role": self.role,
            "is_admin": self.is_admin,
            "has_any_edit_permission": self.has_any_edit_permission,
            "is_lead_in_any_phase": self.is_lead_in_any_phase,
            "editable_phase_count": self.editable_phase_count,
            "lead_phase_count": self.lead_phase_count,
            "editable_phases": list(self.editable_phases),
            "lead_phases": list(self.lead_phases),
            "phases": {p: asdict(perms) for p, perms in self.phases.items()},
        }


def _from_assignment(assignment: PhaseAssignment) -> PhasePermissions:
    can_edit = assignment.can_edit or assignment.is_lead
    return PhasePermissions(
        can_view=True,
        can_edit=can_edit,
        can_delete=can_edit,
        is_lead=assignment.is_lead,
        can_manage_assignments=assignment.is_lead,
    )


def resolve_permissions(
    membership: TeamMembership | None,
    assignments: Iterable[PhaseAssignment],
    *,
    workspace_id: str | None = None,
    phases: Iterable[str] | None = None,
) -> PermissionSet:
    """Resolve a member's per-phase permissions.

    Args:
        membership: The actor's team membership. ``None`` means the
            actor is not in the team.
        assignments: The actor's assignment rows. Rows for another user
            or (when *workspace_id* is given) another workspace are ignored.
        workspace_id: Workspace the permissions apply to.
        phases: Applicable phase set; defaults to every catalog phase.

    Raises:
        NotAMemberError: *membership* is ``None``.
    """
    if membership is None:
        raise NotAMemberError("Actor is not a member of this team")

    applicable = tuple(all_phases() if phases is None else phases)

    if membership.role in ADMIN_ROLES:
        resolved = dict.fromkeys(applicable, FULL_ACCESS)
    else:
        by_phase = {
            a.phase: a
            for a in assignments
            if a.user_id == membership.user_id
            and (workspace_id is None or a.workspace_id == workspace_id)
        }
        resolved = {
            phase: _from_assignment(by_phase[phase]) if phase in by_phase else VIEW_ONLY
            for phase in applicable
        }

    return PermissionSet(
        user_id=membership.user_id,
        team_id=membership.team_id,
        role=str(membership.role),
        workspace_id=workspace_id,
        phases=resolved,
    )
