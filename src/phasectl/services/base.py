"""BaseService: shared foundation for all phasectl services.

Every service receives a :class:`Store` at construction time and owns
its transaction boundaries via ``self._store.transaction()``. Access
checks follow one path: load membership, stop with ``NOT_A_MEMBER``
when it is missing, then resolve permissions from the assignment rows.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from phasectl.domain.models import PhaseAssignment, TeamMembership
from phasectl.domain.permissions import PermissionSet, resolve_permissions
from phasectl.domain.types import ReasonCode
from phasectl.infrastructure.repositories import (
    load_membership_role,
    load_phase_assignments,
    load_workspace,
)
from phasectl.services._helpers import failure

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from phasectl.config.settings import PhaseSettings
    from phasectl.infrastructure.store import Store
    from phasectl.services.result import ServiceResult

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class WorkItemService(BaseService):
            def transition(self, ...) -> ServiceResult:
                with self._store.transaction() as txn:
                    ...
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    @property
    def settings(self) -> PhaseSettings:
        return self._store.settings

    # ------------------------------------------------------------------
    # Access helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _load_membership(conn: Connection, team_id: str, user_id: str) -> TeamMembership | None:
        role = load_membership_role(conn, team_id=team_id, user_id=user_id)
        if role is None:
            return None
        return TeamMembership(team_id=team_id, user_id=user_id, role=role)

    @staticmethod
    def _load_permissions(
        conn: Connection, membership: TeamMembership, workspace_id: str
    ) -> PermissionSet:
        rows = load_phase_assignments(
            conn,
            team_id=membership.team_id,
            workspace_id=workspace_id,
            user_id=membership.user_id,
        )
        return resolve_permissions(
            membership,
            [PhaseAssignment.model_validate(row) for row in rows],
            workspace_id=workspace_id,
        )

    @staticmethod
    def _not_a_member(op: str, team_id: str, actor: str) -> ServiceResult:
        return failure(
            op,
            ReasonCode.NOT_A_MEMBER,
            f"{actor} is not a member of {team_id}",
            team_id=team_id,
            user_id=actor,
        )

    @staticmethod
    def _workspace_missing(conn: Connection, op: str, team_id: str, workspace_id: str) -> ServiceResult | None:
        if load_workspace(conn, team_id=team_id, workspace_id=workspace_id) is None:
            return failure(
                op,
                ReasonCode.NOT_FOUND,
                f"No workspace {workspace_id} in {team_id}",
                workspace_id=workspace_id,
            )
        return None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
        *,
        actor: str | None = None,
    ) -> None:
        """Dispatch a lifecycle event after commit. No-op without an event bus.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        bus = self._store.event_bus
        if bus is None:
            return
        try:
            status = bus.dispatch(hook_name, payload, actor=actor)
        except Exception:
            logger.warning("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")
            return
        if status != "completed":
            warnings.append(f"Plugin hook {hook_name} {status}")
