"""Domain records: work items, memberships, assignments, and phase history.

All models are frozen pydantic models. Repositories hand back plain row
dicts; services validate them into these models at the boundary so the
pure domain functions never see storage details.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Self

from pydantic import BaseModel, Field, model_validator

from phasectl.domain.catalog import get_phase_order
from phasectl.domain.types import ReviewStatus, TeamRole, WorkItemType


class WorkItem(BaseModel):
    """A tenant-owned unit of work moving through its type's phases."""

    model_config = {"frozen": True}

    id: str
    team_id: str
    workspace_id: str
    type: WorkItemType
    phase: str
    title: str
    fields: dict[str, Any] = Field(default_factory=dict)
    created_by: str | None = None
    created: datetime | None = None
    modified: datetime | None = None
    archived: bool = False

    planned_start: date | None = None
    planned_end: date | None = None

    version: int = Field(default=1, ge=1)
    enhances_work_item_id: str | None = None
    version_notes: str | None = None

    review_enabled: bool = False
    review_status: ReviewStatus = ReviewStatus.NONE
    review_reason: str | None = None
    review_requested_at: datetime | None = None
    review_completed_at: datetime | None = None

    @model_validator(mode="after")
    def _check_phase(self) -> Self:
        phases = get_phase_order(self.type)
        if self.phase not in phases:
            msg = f"Phase {self.phase!r} is not valid for {self.type} (expected one of {list(phases)})"
            raise ValueError(msg)
        if self.enhances_work_item_id == self.id:
            raise ValueError("A work item cannot enhance itself")
        return self


class TeamMembership(BaseModel):
    """Exactly one role per (team, user)."""

    model_config = {"frozen": True}

    team_id: str
    user_id: str
    role: TeamRole
    joined: datetime | None = None


class PhaseAssignment(BaseModel):
    """Per-user, per-workspace, per-phase grant of edit or lead capability."""

    model_config = {"frozen": True}

    user_id: str
    workspace_id: str
    team_id: str
    phase: str
    can_edit: bool = False
    is_lead: bool = False
    assigned_by: str | None = None
    assigned_at: datetime | None = None
    notes: str | None = None


class PhaseHistoryEntry(BaseModel):
    """One append-only row of a work item's phase log."""

    model_config = {"frozen": True}

    id: int | None = None
    team_id: str
    workspace_id: str
    work_item_id: str
    from_phase: str | None = None
    phase: str
    entered_at: datetime
    entered_by: str


class Team(BaseModel):
    model_config = {"frozen": True}

    id: str
    name: str
    owner_id: str
    created: datetime | None = None


class Workspace(BaseModel):
    model_config = {"frozen": True}

    id: str
    team_id: str
    name: str
    created: datetime | None = None


def to_public_dict(model: BaseModel) -> dict[str, Any]:
    """Serialize a domain model for ``ServiceResult.data`` (JSON-safe)."""
    return model.model_dump(mode="json")
