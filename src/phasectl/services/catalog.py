"""CatalogService: read-only description of the phase catalog."""

from __future__ import annotations

from typing import Any

from phasectl.domain.calculator import phase_progress
from phasectl.domain.catalog import CATALOG, PhaseCatalogEntry, all_phases, is_known_type
from phasectl.domain.types import ReasonCode
from phasectl.services._helpers import failure
from phasectl.services.result import ServiceResult
from phasectl.services.telemetry import traced


def _describe(entry: PhaseCatalogEntry) -> dict[str, Any]:
    return {
        "type": str(entry.item_type),
        "phases": [
            {
                "name": phase,
                "terminal": phase in entry.terminal,
                "review_gated": phase in entry.review_gated,
                "next": list(entry.successors(phase)),
                "progress": phase_progress(entry.item_type, phase),
                "visible_fields": sorted(entry.visible.get(phase, ())),
                "editable_fields": sorted(entry.editable.get(phase, ())),
            }
            for phase in entry.phases
        ],
    }


class CatalogService:
    """Catalog lookups need no store."""

    @staticmethod
    @traced
    def describe(item_type: str | None = None) -> ServiceResult:
        op = "catalog"
        if item_type is not None:
            if not is_known_type(item_type):
                return failure(
                    op,
                    ReasonCode.UNKNOWN_TYPE,
                    f"Unknown work item type {item_type!r}; expected one of {sorted(CATALOG)}",
                    type=item_type,
                )
            entries = [CATALOG[item_type]]
        else:
            entries = list(CATALOG.values())
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "types": [_describe(entry) for entry in entries],
                "all_phases": list(all_phases()),
            },
        )
