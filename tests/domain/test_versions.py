"""Tests for version chains."""

from __future__ import annotations

import pytest

from phasectl.domain.models import TeamMembership, WorkItem
from phasectl.domain.permissions import resolve_permissions
from phasectl.domain.types import ReasonCode
from phasectl.domain.versions import (
    VersionChainError,
    can_enhance,
    carried_fields,
    next_version,
    order_chain,
)

ADMIN = resolve_permissions(TeamMembership(team_id="TEAM-0001", user_id="a", role="admin"), [])
MEMBER = resolve_permissions(TeamMembership(team_id="TEAM-0001", user_id="m", role="member"), [])


def _item(
    item_id: str = "WI-0001",
    *,
    item_type: str = "feature",
    phase: str = "launch",
    version: int = 1,
    enhances: str | None = None,
    **overrides: object,
) -> WorkItem:
    values: dict[str, object] = {
        "id": item_id,
        "team_id": "TEAM-0001",
        "workspace_id": "WS-0001",
        "type": item_type,
        "phase": phase,
        "title": "x",
        "version": version,
        "enhances_work_item_id": enhances,
    }
    values.update(overrides)
    return WorkItem.model_validate(values)


class TestCanEnhance:
    def test_launched_feature(self) -> None:
        decision = can_enhance(_item(), ADMIN, already_enhanced=False, version_notes="v2")
        assert decision.allowed

    def test_launched_enhancement(self) -> None:
        item = _item(item_type="enhancement")
        assert can_enhance(item, ADMIN, already_enhanced=False, version_notes="v2").allowed

    @pytest.mark.parametrize(
        ("item_type", "phase"),
        [("feature", "refine"), ("bug", "verified"), ("concept", "validated")],
    )
    def test_not_enhanceable(self, item_type: str, phase: str) -> None:
        item = _item(item_type=item_type, phase=phase)
        decision = can_enhance(item, ADMIN, already_enhanced=False, version_notes="v2")
        assert decision.reason == ReasonCode.NOT_ENHANCEABLE

    def test_needs_edit_on_launch(self) -> None:
        decision = can_enhance(_item(), MEMBER, already_enhanced=False, version_notes="v2")
        assert decision.reason == ReasonCode.FORBIDDEN

    def test_already_enhanced(self) -> None:
        decision = can_enhance(_item(), ADMIN, already_enhanced=True, version_notes="v2")
        assert decision.reason == ReasonCode.ALREADY_ENHANCED

    @pytest.mark.parametrize("notes", [None, "", "  "])
    def test_notes_required(self, notes: str | None) -> None:
        decision = can_enhance(_item(), ADMIN, already_enhanced=False, version_notes=notes)
        assert decision.reason == ReasonCode.VALIDATION_FAILED


class TestChainHelpers:
    def test_next_version(self) -> None:
        assert next_version([]) == 1
        assert next_version([_item(version=1), _item("WI-0002", version=3)]) == 4

    def test_carried_fields_keep_basic_only(self) -> None:
        item = _item(fields={"description": "d", "tags": ["a"], "actual_hours": 12})
        assert carried_fields(item) == {"description": "d", "tags": ["a"]}


class TestOrderChain:
    def _chain(self) -> list[WorkItem]:
        return [
            _item("WI-0003", item_type="enhancement", version=3, enhances="WI-0002"),
            _item("WI-0001", version=1),
            _item("WI-0002", item_type="enhancement", version=2, enhances="WI-0001"),
        ]

    @pytest.mark.parametrize("start", ["WI-0001", "WI-0002", "WI-0003"])
    def test_oldest_first_from_any_member(self, start: str) -> None:
        chain = order_chain(self._chain(), start)
        assert [i.id for i in chain] == ["WI-0001", "WI-0002", "WI-0003"]

    def test_single_item(self) -> None:
        assert [i.id for i in order_chain([_item()], "WI-0001")] == ["WI-0001"]

    def test_missing_start(self) -> None:
        with pytest.raises(VersionChainError, match="not part"):
            order_chain(self._chain(), "WI-0009")

    def test_fork(self) -> None:
        items = [*self._chain(), _item("WI-0004", version=2, enhances="WI-0001")]
        with pytest.raises(VersionChainError, match="more than once"):
            order_chain(items, "WI-0001")

    def test_cycle(self) -> None:
        items = [
            _item("WI-0001", enhances="WI-0002"),
            _item("WI-0002", version=2, enhances="WI-0001"),
        ]
        with pytest.raises(VersionChainError, match="cycle"):
            order_chain(items, "WI-0001")
