"""Tests for the phase calculator: buckets, progress, and distribution."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from phasectl.domain.calculator import (
    effective_phase,
    phase_distribution,
    phase_progress,
    timeline_bucket,
)
from phasectl.domain.models import WorkItem
from phasectl.domain.types import TimelineBucket

TODAY = date(2026, 6, 1)


def _item(item_type: str = "feature", phase: str = "design", **overrides: object) -> WorkItem:
    values: dict[str, object] = {
        "id": "WI-0001",
        "team_id": "TEAM-0001",
        "workspace_id": "WS-0001",
        "type": item_type,
        "phase": phase,
        "title": "x",
    }
    values.update(overrides)
    return WorkItem.model_validate(values)


class TestEffectivePhase:
    def test_identity(self) -> None:
        assert effective_phase(_item(phase="refine")) == "refine"


class TestTimelineBucket:
    def test_no_dates(self) -> None:
        assert timeline_bucket(_item(), now=TODAY) is None

    @pytest.mark.parametrize(
        ("days", "expected"),
        [
            (-10, TimelineBucket.MVP),
            (0, TimelineBucket.MVP),
            (90, TimelineBucket.MVP),
            (91, TimelineBucket.SHORT),
            (365, TimelineBucket.SHORT),
            (366, TimelineBucket.LONG),
        ],
    )
    def test_horizons(self, days: int, expected: TimelineBucket) -> None:
        item = _item(planned_end=TODAY + timedelta(days=days))
        assert timeline_bucket(item, now=TODAY) == expected

    def test_falls_back_to_start(self) -> None:
        item = _item(planned_start=TODAY + timedelta(days=200))
        assert timeline_bucket(item, now=TODAY) == TimelineBucket.SHORT

    def test_end_wins_over_start(self) -> None:
        item = _item(planned_start=TODAY, planned_end=TODAY + timedelta(days=400))
        assert timeline_bucket(item, now=TODAY) == TimelineBucket.LONG

    def test_custom_horizons(self) -> None:
        item = _item(planned_end=TODAY + timedelta(days=20))
        assert (
            timeline_bucket(item, now=TODAY, mvp_horizon_days=10, short_horizon_days=30)
            == TimelineBucket.SHORT
        )

    def test_accepts_datetime(self) -> None:
        item = _item(planned_end=TODAY)
        assert timeline_bucket(item, now=datetime(2026, 6, 1, 12, 0)) == TimelineBucket.MVP


class TestPhaseProgress:
    @pytest.mark.parametrize(
        ("phase", "expected"),
        [("design", 0), ("build", 33), ("refine", 67), ("launch", 100)],
    )
    def test_feature(self, phase: str, expected: int) -> None:
        assert phase_progress("feature", phase) == expected

    def test_concept_branches(self) -> None:
        assert phase_progress("concept", "ideation") == 0
        assert phase_progress("concept", "research") == 50
        assert phase_progress("concept", "validated") == 100
        assert phase_progress("concept", "rejected") == 0

    def test_bug_terminal(self) -> None:
        assert phase_progress("bug", "verified") == 100

    def test_unknown_phase(self) -> None:
        assert phase_progress("bug", "design") == 0


class TestPhaseDistribution:
    def test_empty(self) -> None:
        assert phase_distribution([]) == {}

    def test_counts_and_zero_fill(self) -> None:
        items = [
            _item(phase="design"),
            _item(phase="design"),
            _item(phase="build"),
            _item("bug", "triage"),
        ]
        dist = phase_distribution(items)
        assert set(dist) == {"feature", "bug"}
        assert dist["feature"]["design"] == {"count": 2, "percentage": 66.7}
        assert dist["feature"]["build"] == {"count": 1, "percentage": 33.3}
        assert dist["feature"]["launch"] == {"count": 0, "percentage": 0.0}
        assert dist["bug"]["triage"]["percentage"] == 100.0
        assert list(dist["bug"]) == ["triage", "investigating", "fixing", "verified"]
