"""Phase catalog: the single source of truth for per-type phase configuration.

Every work item type owns an ordered list of phases, a set of terminal
phases, optional branch successors, the phases gated behind review
approval, and per-phase field visibility/editability.

The catalog is built once at import time and exposed through read-only
mappings. It is never mutated afterwards, so it needs no synchronization.
An unknown type is a configuration error: :func:`validate_catalog` is run
when the store is constructed and lookups raise :class:`UnknownTypeError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from phasectl.domain.types import WorkItemType


class CatalogError(ValueError):
    """The phase catalog is misconfigured."""


class UnknownTypeError(CatalogError):
    """A work item type has no catalog entry."""

    def __init__(self, item_type: str) -> None:
        super().__init__(f"Unknown work item type: {item_type!r}")
        self.item_type = item_type


@dataclass(frozen=True)
class PhaseCatalogEntry:
    """Static lifecycle configuration for one work item type."""

    item_type: WorkItemType
    phases: tuple[str, ...]
    terminal: frozenset[str]
    review_gated: frozenset[str] = frozenset()
    branches: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    visible: Mapping[str, frozenset[str]] = field(default_factory=dict)
    editable: Mapping[str, frozenset[str]] = field(default_factory=dict)

    def successors(self, phase: str) -> tuple[str, ...]:
        """Phases directly reachable from *phase* (empty when terminal)."""
        if phase in self.terminal or phase not in self.phases:
            return ()
        if phase in self.branches:
            return self.branches[phase]
        index = self.phases.index(phase)
        if index + 1 >= len(self.phases):
            return ()
        return (self.phases[index + 1],)


# --- Field groups ---

BASIC_FIELDS = frozenset({"title", "description", "tags", "priority"})

FEATURE_DESIGN_FIELDS = frozenset(
    {
        "target_release",
        "acceptance_criteria",
        "business_value",
        "customer_impact",
        "strategic_alignment",
        "estimated_hours",
        "stakeholders",
    }
)
FEATURE_BUILD_FIELDS = frozenset(
    {
        "actual_start_date",
        "actual_end_date",
        "actual_hours",
        "progress_percent",
        "blockers",
    }
)

BUG_TRIAGE_FIELDS = frozenset(
    {
        "severity",
        "reproducible",
        "steps_to_reproduce",
        "expected_behavior",
        "actual_behavior",
    }
)
BUG_INVESTIGATION_FIELDS = frozenset({"root_cause", "affected_areas"})
BUG_FIX_FIELDS = frozenset({"solution", "pr_link"})
BUG_VERIFICATION_FIELDS = frozenset({"verification_notes", "verified_by"})

CONCEPT_IDEATION_FIELDS = frozenset({"problem_statement", "target_users", "hypothesis"})
CONCEPT_RESEARCH_FIELDS = frozenset({"research_findings", "feasibility", "market_analysis"})
CONCEPT_OUTCOME_FIELDS = frozenset({"outcome_summary", "rejection_reason"})

_NOTHING: frozenset[str] = frozenset()


def _feature_entry(item_type: WorkItemType) -> PhaseCatalogEntry:
    """Feature and enhancement share one lifecycle: design -> build -> refine -> launch.

    Design fields lock once build starts; everything locks at launch.
    """
    tracked = BASIC_FIELDS | FEATURE_DESIGN_FIELDS | FEATURE_BUILD_FIELDS
    return PhaseCatalogEntry(
        item_type=item_type,
        phases=("design", "build", "refine", "launch"),
        terminal=frozenset({"launch"}),
        review_gated=frozenset({"launch"}),
        visible=MappingProxyType(
            {
                "design": BASIC_FIELDS | FEATURE_DESIGN_FIELDS,
                "build": tracked,
                "refine": tracked,
                "launch": tracked,
            }
        ),
        editable=MappingProxyType(
            {
                "design": BASIC_FIELDS | FEATURE_DESIGN_FIELDS,
                "build": BASIC_FIELDS | FEATURE_BUILD_FIELDS,
                "refine": BASIC_FIELDS | FEATURE_BUILD_FIELDS,
                "launch": _NOTHING,
            }
        ),
    )


def _bug_entry() -> PhaseCatalogEntry:
    triage = BASIC_FIELDS | BUG_TRIAGE_FIELDS
    investigating = triage | BUG_INVESTIGATION_FIELDS
    fixing = investigating | BUG_FIX_FIELDS | BUG_VERIFICATION_FIELDS
    return PhaseCatalogEntry(
        item_type=WorkItemType.BUG,
        phases=("triage", "investigating", "fixing", "verified"),
        terminal=frozenset({"verified"}),
        review_gated=frozenset({"verified"}),
        visible=MappingProxyType(
            {
                "triage": triage,
                "investigating": investigating,
                "fixing": fixing,
                "verified": fixing,
            }
        ),
        editable=MappingProxyType(
            {
                "triage": triage,
                "investigating": BASIC_FIELDS | BUG_INVESTIGATION_FIELDS,
                "fixing": BASIC_FIELDS | BUG_FIX_FIELDS | BUG_VERIFICATION_FIELDS,
                "verified": _NOTHING,
            }
        ),
    )


def _concept_entry() -> PhaseCatalogEntry:
    """Concepts branch after research into two mutually exclusive outcomes."""
    ideation = BASIC_FIELDS | CONCEPT_IDEATION_FIELDS
    research = ideation | CONCEPT_RESEARCH_FIELDS | CONCEPT_OUTCOME_FIELDS
    return PhaseCatalogEntry(
        item_type=WorkItemType.CONCEPT,
        phases=("ideation", "research", "validated", "rejected"),
        terminal=frozenset({"validated", "rejected"}),
        branches=MappingProxyType({"research": ("validated", "rejected")}),
        visible=MappingProxyType(
            {
                "ideation": ideation,
                "research": research,
                "validated": research,
                "rejected": research,
            }
        ),
        editable=MappingProxyType(
            {
                "ideation": ideation,
                "research": BASIC_FIELDS | CONCEPT_RESEARCH_FIELDS | CONCEPT_OUTCOME_FIELDS,
                "validated": _NOTHING,
                "rejected": _NOTHING,
            }
        ),
    )


CATALOG: Mapping[str, PhaseCatalogEntry] = MappingProxyType(
    {
        WorkItemType.FEATURE: _feature_entry(WorkItemType.FEATURE),
        WorkItemType.ENHANCEMENT: _feature_entry(WorkItemType.ENHANCEMENT),
        WorkItemType.BUG: _bug_entry(),
        WorkItemType.CONCEPT: _concept_entry(),
    }
)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def get_entry(item_type: str) -> PhaseCatalogEntry:
    """Return the catalog entry for *item_type* or raise :class:`UnknownTypeError`."""
    entry = CATALOG.get(str(item_type))
    if entry is None:
        raise UnknownTypeError(str(item_type))
    return entry


def is_known_type(item_type: str) -> bool:
    return str(item_type) in CATALOG


def get_phase_order(item_type: str) -> tuple[str, ...]:
    """Ordered phases for *item_type*."""
    return get_entry(item_type).phases


def get_terminal_phases(item_type: str) -> frozenset[str]:
    return get_entry(item_type).terminal


def get_review_gated_phases(item_type: str) -> frozenset[str]:
    """Phases that require an approved review before entry (when review is enabled)."""
    return get_entry(item_type).review_gated


def get_field_visibility(item_type: str, phase: str) -> frozenset[str]:
    """Fields visible for *item_type* while in *phase* (empty for an unknown phase)."""
    return get_entry(item_type).visible.get(phase, _NOTHING)


def get_field_editability(item_type: str, phase: str) -> frozenset[str]:
    """Fields editable for *item_type* while in *phase* (empty for an unknown phase)."""
    return get_entry(item_type).editable.get(phase, _NOTHING)


def get_successors(item_type: str, phase: str) -> tuple[str, ...]:
    return get_entry(item_type).successors(phase)


def default_phase(item_type: str) -> str:
    """The initial phase for a newly created work item."""
    return get_phase_order(item_type)[0]


def is_valid_phase(item_type: str, phase: str) -> bool:
    return phase in get_phase_order(item_type)


def is_terminal(item_type: str, phase: str) -> bool:
    return phase in get_terminal_phases(item_type)


def all_phases() -> tuple[str, ...]:
    """Union of every type's phases, in catalog order, without duplicates.

    This is the applicable phase set of a workspace: phase assignments
    and permission maps are keyed by these names.
    """
    seen: dict[str, None] = {}
    for entry in CATALOG.values():
        for phase in entry.phases:
            seen.setdefault(phase, None)
    return tuple(seen)


# ---------------------------------------------------------------------------
# Startup validation
# ---------------------------------------------------------------------------


def validate_catalog(catalog: Mapping[str, PhaseCatalogEntry] | None = None) -> None:
    """Check catalog completeness and internal consistency.

    Raises:
        UnknownTypeError: A :class:`WorkItemType` has no entry.
        CatalogError: An entry references phases it does not define.
    """
    catalog = CATALOG if catalog is None else catalog

    for item_type in WorkItemType:
        if str(item_type) not in catalog:
            raise UnknownTypeError(str(item_type))

    for key, entry in catalog.items():
        if key not in {str(t) for t in WorkItemType}:
            raise UnknownTypeError(key)
        phases = set(entry.phases)
        errors: list[str] = []
        if not entry.phases:
            errors.append("no phases defined")
        if len(phases) != len(entry.phases):
            errors.append("duplicate phases")
        if not entry.terminal <= phases:
            errors.append(f"terminal phases not in order: {sorted(entry.terminal - phases)}")
        if not entry.review_gated <= phases:
            errors.append(f"review-gated phases not in order: {sorted(entry.review_gated - phases)}")
        for source, targets in entry.branches.items():
            if source not in phases or not set(targets) <= phases:
                errors.append(f"branch {source!r} -> {list(targets)} references unknown phases")
        if set(entry.visible) != phases or set(entry.editable) != phases:
            errors.append("field maps must cover every phase")
        for phase in entry.phases:
            if not entry.editable.get(phase, _NOTHING) <= entry.visible.get(phase, _NOTHING):
                errors.append(f"editable fields not visible in {phase!r}")
            if phase in entry.terminal and entry.editable.get(phase):
                errors.append(f"terminal phase {phase!r} has editable fields")
            if phase not in entry.terminal and not entry.successors(phase):
                errors.append(f"non-terminal phase {phase!r} has no successor")
        if errors:
            msg = f"Invalid catalog entry for {key!r}: " + "; ".join(errors)
            raise CatalogError(msg)
