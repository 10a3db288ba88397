"""Phase calculator: effective phase, timeline buckets, and progress.

Pure functions only. Nothing here is memoized; a bucket can change
between calls when calendar time moves, which is expected.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Any

from phasectl.domain.catalog import get_entry, get_phase_order
from phasectl.domain.models import WorkItem
from phasectl.domain.types import TimelineBucket, WorkItemType

DEFAULT_MVP_HORIZON_DAYS = 90
DEFAULT_SHORT_HORIZON_DAYS = 365

# Terminal phases that mean "abandoned" rather than "done".
ABANDONED_PHASES: frozenset[tuple[str, str]] = frozenset({(WorkItemType.CONCEPT, "rejected")})


def effective_phase(item: WorkItem) -> str:
    """The phase used for display: an identity read of the stored phase."""
    return item.phase


def timeline_bucket(
    item: WorkItem,
    *,
    now: date | datetime,
    mvp_horizon_days: int = DEFAULT_MVP_HORIZON_DAYS,
    short_horizon_days: int = DEFAULT_SHORT_HORIZON_DAYS,
) -> TimelineBucket | None:
    """Bucket *item* into MVP/SHORT/LONG from its planned dates.

    Uses ``planned_end`` and falls back to ``planned_start``. Overdue
    items land in MVP. Returns ``None`` when no planned date is set.
    """
    anchor = item.planned_end or item.planned_start
    if anchor is None:
        return None
    today = now.date() if isinstance(now, datetime) else now
    if anchor <= today + timedelta(days=mvp_horizon_days):
        return TimelineBucket.MVP
    if anchor <= today + timedelta(days=short_horizon_days):
        return TimelineBucket.SHORT
    return TimelineBucket.LONG


def _phase_depths(item_type: str) -> dict[str, int]:
    """Shortest successor distance of every phase from the first phase."""
    entry = get_entry(item_type)
    depths = {entry.phases[0]: 0}
    frontier = [entry.phases[0]]
    while frontier:
        next_frontier: list[str] = []
        for phase in frontier:
            for succ in entry.successors(phase):
                if succ not in depths:
                    depths[succ] = depths[phase] + 1
                    next_frontier.append(succ)
        frontier = next_frontier
    return depths


def phase_progress(item_type: str, phase: str) -> int:
    """Position of *phase* along its type's lifecycle as 0-100.

    Terminal phases read 100, except abandoned outcomes which read 0.
    """
    entry = get_entry(item_type)
    if phase not in entry.phases:
        return 0
    if phase in entry.terminal:
        return 0 if (str(item_type), phase) in ABANDONED_PHASES else 100
    depths = _phase_depths(item_type)
    longest = max(depths[t] for t in entry.terminal)
    return round(depths.get(phase, 0) * 100 / longest)


def phase_distribution(items: Iterable[WorkItem]) -> dict[str, dict[str, dict[str, Any]]]:
    """Count items per (type, phase) with each phase's share of its type.

    Every catalog phase of a type that appears is listed, zero counts
    included, so callers can render a full breakdown.
    """
    counts: dict[str, dict[str, int]] = {}
    for item in items:
        per_type = counts.setdefault(
            str(item.type), dict.fromkeys(get_phase_order(item.type), 0)
        )
        per_type[item.phase] += 1

    result: dict[str, dict[str, dict[str, Any]]] = {}
    for item_type, per_phase in counts.items():
        total = sum(per_phase.values())
        result[item_type] = {
            phase: {
                "count": count,
                "percentage": round(count * 100 / total, 1) if total else 0.0,
            }
            for phase, count in per_phase.items()
        }
    return result
