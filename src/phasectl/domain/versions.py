"""Version chains: enhancing a launched item into its next version.

A chain is singly linked through ``enhances_work_item_id``: every
version points at the one it supersedes and each item is enhanced at
most once, so a chain never forks and never cycles.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from phasectl.domain.catalog import BASIC_FIELDS, get_terminal_phases
from phasectl.domain.models import WorkItem
from phasectl.domain.permissions import PermissionSet
from phasectl.domain.types import ReasonCode, WorkItemType

ENHANCEABLE_TYPES: frozenset[str] = frozenset({WorkItemType.FEATURE, WorkItemType.ENHANCEMENT})

# Every new version is tracked as an enhancement.
ENHANCED_TYPE = WorkItemType.ENHANCEMENT


class VersionChainError(ValueError):
    """Stored version links do not form a single chain."""


@dataclass(frozen=True)
class EnhanceDecision:
    allowed: bool
    reason: ReasonCode | None = None
    message: str = ""


def can_enhance(
    item: WorkItem,
    permissions: PermissionSet,
    *,
    already_enhanced: bool,
    version_notes: str | None,
) -> EnhanceDecision:
    """Check whether *item* may be enhanced into a new version."""
    if item.type not in ENHANCEABLE_TYPES or item.phase not in get_terminal_phases(item.type):
        return EnhanceDecision(
            False,
            ReasonCode.NOT_ENHANCEABLE,
            "Only launched features and enhancements can be enhanced",
        )
    if not permissions.for_phase(item.phase).can_edit:
        return EnhanceDecision(
            False, ReasonCode.FORBIDDEN, f"No edit permission on phase {item.phase!r}"
        )
    if already_enhanced:
        return EnhanceDecision(
            False, ReasonCode.ALREADY_ENHANCED, f"{item.id} already has a newer version"
        )
    if version_notes is None or not version_notes.strip():
        return EnhanceDecision(
            False, ReasonCode.VALIDATION_FAILED, "Version notes are required"
        )
    return EnhanceDecision(True, message=f"Enhancing {item.id}")


def next_version(chain: Iterable[WorkItem]) -> int:
    """One past the highest version in *chain*."""
    return max((item.version for item in chain), default=0) + 1


def carried_fields(item: WorkItem) -> dict[str, Any]:
    """Basic field values a new version inherits; phase-specific fields reset."""
    return {k: v for k, v in item.fields.items() if k in BASIC_FIELDS}


def order_chain(items: Iterable[WorkItem], start_id: str) -> list[WorkItem]:
    """Return the full chain containing *start_id*, oldest first.

    Raises:
        VersionChainError: The links fork, cycle, or *start_id* is absent.
    """
    by_id = {item.id: item for item in items}
    if start_id not in by_id:
        raise VersionChainError(f"{start_id} is not part of the given items")

    successor: dict[str, str] = {}
    for item in by_id.values():
        parent = item.enhances_work_item_id
        if parent is None or parent not in by_id:
            continue
        if parent in successor:
            raise VersionChainError(f"{parent} is enhanced more than once")
        successor[parent] = item.id

    root = by_id[start_id]
    seen = {root.id}
    while root.enhances_work_item_id in by_id:
        root = by_id[root.enhances_work_item_id]
        if root.id in seen:
            raise VersionChainError(f"Version chain through {start_id} has a cycle")
        seen.add(root.id)

    chain = [root]
    visited = {root.id}
    while chain[-1].id in successor:
        nxt = by_id[successor[chain[-1].id]]
        if nxt.id in visited:
            raise VersionChainError(f"Version chain through {start_id} has a cycle")
        visited.add(nxt.id)
        chain.append(nxt)
    return chain
