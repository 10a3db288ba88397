"""WorkItemService: create, read, edit, move, archive, and version work items.

Every mutation follows the same path: load membership, load the item
inside the team, resolve permissions for the item's workspace, ask the
pure domain function for a decision, then persist with a
compare-and-set on the state the decision was computed from. Events
are dispatched after the transaction commits.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import IntegrityError

from phasectl.domain.calculator import (
    effective_phase,
    phase_distribution,
    phase_progress,
    timeline_bucket,
)
from phasectl.domain.catalog import (
    default_phase,
    get_field_editability,
    get_field_visibility,
    get_successors,
    is_known_type,
    is_terminal,
)
from phasectl.domain.models import PhaseHistoryEntry, WorkItem, to_public_dict
from phasectl.domain.transitions import can_transition
from phasectl.domain.types import ReasonCode, ReviewStatus, TimelineBucket
from phasectl.domain.versions import (
    ENHANCED_TYPE,
    VersionChainError,
    can_enhance,
    carried_fields,
    next_version,
    order_chain,
)
from phasectl.infrastructure.database.counters import WORK_ITEM_PREFIX, next_sequential_id
from phasectl.infrastructure.repositories import (
    append_phase_history,
    archive_work_item,
    compare_and_set_phase,
    find_enhancement,
    insert_work_item,
    list_work_items,
    load_phase_history,
    load_work_item,
    update_work_item_fields,
)
from phasectl.services._helpers import failure, now_iso, parse_date, today
from phasectl.services.base import BaseService
from phasectl.services.result import ServiceResult
from phasectl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from sqlalchemy import Connection

logger = logging.getLogger(__name__)

# Content columns that are not catalog fields; any editor of the phase may set them.
_SCHEDULE_KEYS = frozenset({"planned_start", "planned_end"})

UNSCHEDULED = "unscheduled"


def _not_found(op: str, work_item_id: str, team_id: str) -> ServiceResult:
    return failure(
        op,
        ReasonCode.NOT_FOUND,
        f"No work item {work_item_id} in {team_id}",
        work_item_id=work_item_id,
    )


def _check_schedule(
    op: str, planned_start: date | None, planned_end: date | None
) -> ServiceResult | None:
    if planned_start is not None and planned_end is not None and planned_end < planned_start:
        return failure(
            op, ReasonCode.VALIDATION_FAILED, "planned_end must not be before planned_start"
        )
    return None


class WorkItemService(BaseService):
    """Work item lifecycle operations."""

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def _bucket(self, item: WorkItem) -> TimelineBucket | None:
        timeline = self.settings.timeline
        return timeline_bucket(
            item,
            now=today(),
            mvp_horizon_days=timeline.mvp_horizon_days,
            short_horizon_days=timeline.short_horizon_days,
        )

    def _summary(self, item: WorkItem) -> dict[str, Any]:
        bucket = self._bucket(item)
        return {
            "id": item.id,
            "type": str(item.type),
            "phase": effective_phase(item),
            "title": item.title,
            "version": item.version,
            "progress": phase_progress(item.type, item.phase),
            "bucket": str(bucket) if bucket is not None else None,
            "review_status": str(item.review_status),
            "archived": item.archived,
        }

    def _detail(self, item: WorkItem) -> dict[str, Any]:
        data = to_public_dict(item)
        visible = get_field_visibility(item.type, item.phase)
        data["fields"] = {k: v for k, v in item.fields.items() if k in visible}
        data["visible_fields"] = sorted(visible)
        data["editable_fields"] = sorted(get_field_editability(item.type, item.phase))
        data["next_phases"] = list(get_successors(item.type, item.phase))
        data["progress"] = phase_progress(item.type, item.phase)
        bucket = self._bucket(item)
        data["bucket"] = str(bucket) if bucket is not None else None
        return data

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @traced
    def create(
        self,
        team_id: str,
        workspace_id: str,
        item_type: str,
        title: str,
        *,
        actor: str,
        fields: dict[str, Any] | None = None,
        planned_start: str | date | None = None,
        planned_end: str | date | None = None,
        review_enabled: bool = False,
    ) -> ServiceResult:
        """Create a work item in its type's first phase.

        Initial *fields* must all be editable in that phase.
        """
        op = "create_work_item"
        if not is_known_type(item_type):
            return failure(
                op, ReasonCode.UNKNOWN_TYPE, f"Unknown work item type {item_type!r}", type=item_type
            )
        if not title.strip():
            return failure(op, ReasonCode.VALIDATION_FAILED, "Title is required")
        try:
            start = parse_date(planned_start)
            end = parse_date(planned_end)
        except ValueError as exc:
            return failure(op, ReasonCode.VALIDATION_FAILED, f"Invalid planned date: {exc}")
        if (bad := _check_schedule(op, start, end)) is not None:
            return bad

        phase = default_phase(item_type)
        fields = dict(fields or {})
        if "title" in fields:
            return failure(
                op,
                ReasonCode.VALIDATION_FAILED,
                "Title is a column, not a catalog field; pass it as the title",
                fields=["title"],
            )
        locked = sorted(set(fields) - get_field_editability(item_type, phase))
        if locked:
            return failure(
                op,
                ReasonCode.FIELD_LOCKED,
                f"Fields not editable in {phase!r}: {', '.join(locked)}",
                fields=locked,
            )

        now = now_iso()
        with self._store.transaction() as txn:
            if self._load_membership(txn.conn, team_id, actor) is None:
                return self._not_a_member(op, team_id, actor)
            if (missing := self._workspace_missing(txn.conn, op, team_id, workspace_id)) is not None:
                return missing

            work_item_id = next_sequential_id(txn.conn, WORK_ITEM_PREFIX)
            item = WorkItem(
                id=work_item_id,
                team_id=team_id,
                workspace_id=workspace_id,
                type=item_type,
                phase=phase,
                title=title.strip(),
                fields=fields,
                created_by=actor,
                created=now,
                modified=now,
                planned_start=start,
                planned_end=end,
                review_enabled=review_enabled,
            )
            self._insert(txn.conn, item, actor=actor, now=now)

        warnings: list[str] = []
        self._dispatch_event(
            "post_create",
            {
                "work_item_id": work_item_id,
                "team_id": team_id,
                "workspace_id": workspace_id,
                "item_type": str(item.type),
                "phase": phase,
            },
            warnings,
            actor=actor,
        )
        logger.info("Created %s %s in %s", item_type, work_item_id, workspace_id)
        return ServiceResult(ok=True, op=op, data=self._detail(item), warnings=warnings)

    @staticmethod
    def _insert(conn: Connection, item: WorkItem, *, actor: str, now: str) -> None:
        values = item.model_dump(exclude={"team_id", "workspace_id"})
        insert_work_item(conn, values, team_id=item.team_id, workspace_id=item.workspace_id)
        append_phase_history(
            conn,
            item.id,
            team_id=item.team_id,
            workspace_id=item.workspace_id,
            from_phase=None,
            phase=item.phase,
            entered_at=now,
            entered_by=actor,
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @traced
    def get(
        self, team_id: str, work_item_id: str, *, actor: str, include_archived: bool = False
    ) -> ServiceResult:
        op = "get_work_item"
        with self._store.connect() as conn:
            membership = self._load_membership(conn, team_id, actor)
            if membership is None:
                return self._not_a_member(op, team_id, actor)
            row = load_work_item(
                conn, work_item_id, team_id=team_id, include_archived=include_archived
            )
            if row is None:
                return _not_found(op, work_item_id, team_id)
            item = WorkItem.model_validate(row)
            permissions = self._load_permissions(conn, membership, item.workspace_id)

        data = self._detail(item)
        data["permissions"] = asdict(permissions.for_phase(item.phase))
        return ServiceResult(ok=True, op=op, data=data)

    @traced
    def list_items(
        self,
        team_id: str,
        workspace_id: str,
        *,
        actor: str,
        item_type: str | None = None,
        phase: str | None = None,
        bucket: str | None = None,
        include_archived: bool = False,
    ) -> ServiceResult:
        op = "list_work_items"
        if item_type is not None and not is_known_type(item_type):
            return failure(
                op, ReasonCode.UNKNOWN_TYPE, f"Unknown work item type {item_type!r}", type=item_type
            )
        valid_buckets = {str(b) for b in TimelineBucket} | {UNSCHEDULED}
        if bucket is not None and bucket not in valid_buckets:
            return failure(
                op,
                ReasonCode.VALIDATION_FAILED,
                f"Unknown bucket {bucket!r}; expected one of {sorted(valid_buckets)}",
            )

        items = self._load_items(
            op, team_id, workspace_id, actor=actor, item_type=item_type, phase=phase,
            include_archived=include_archived,
        )
        if isinstance(items, ServiceResult):
            return items

        summaries = [self._summary(item) for item in items]
        if bucket is not None:
            wanted = None if bucket == UNSCHEDULED else bucket
            summaries = [s for s in summaries if s["bucket"] == wanted]
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "team_id": team_id,
                "workspace_id": workspace_id,
                "count": len(summaries),
                "items": summaries,
            },
        )

    def _load_items(
        self,
        op: str,
        team_id: str,
        workspace_id: str,
        *,
        actor: str,
        item_type: str | None = None,
        phase: str | None = None,
        include_archived: bool = False,
    ) -> list[WorkItem] | ServiceResult:
        with self._store.connect() as conn:
            if self._load_membership(conn, team_id, actor) is None:
                return self._not_a_member(op, team_id, actor)
            if (missing := self._workspace_missing(conn, op, team_id, workspace_id)) is not None:
                return missing
            rows = list_work_items(
                conn,
                team_id=team_id,
                workspace_id=workspace_id,
                item_type=item_type,
                phase=phase,
                include_archived=include_archived,
            )
        return [WorkItem.model_validate(row) for row in rows]

    @traced
    def history(self, team_id: str, work_item_id: str, *, actor: str) -> ServiceResult:
        op = "work_item_history"
        with self._store.connect() as conn:
            if self._load_membership(conn, team_id, actor) is None:
                return self._not_a_member(op, team_id, actor)
            if load_work_item(conn, work_item_id, team_id=team_id, include_archived=True) is None:
                return _not_found(op, work_item_id, team_id)
            rows = load_phase_history(conn, work_item_id, team_id=team_id)
        entries = [to_public_dict(PhaseHistoryEntry.model_validate(row)) for row in rows]
        return ServiceResult(
            ok=True,
            op=op,
            data={"work_item_id": work_item_id, "count": len(entries), "items": entries},
        )

    @traced
    def buckets(self, team_id: str, workspace_id: str, *, actor: str) -> ServiceResult:
        """Group a workspace's live items into MVP/SHORT/LONG timeline buckets."""
        op = "timeline_buckets"
        items = self._load_items(op, team_id, workspace_id, actor=actor)
        if isinstance(items, ServiceResult):
            return items

        groups: dict[str, list[dict[str, Any]]] = {str(b): [] for b in TimelineBucket}
        groups[UNSCHEDULED] = []
        for item in items:
            summary = self._summary(item)
            groups[summary["bucket"] or UNSCHEDULED].append(summary)
        timeline = self.settings.timeline
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "workspace_id": workspace_id,
                "as_of": today().isoformat(),
                "mvp_horizon_days": timeline.mvp_horizon_days,
                "short_horizon_days": timeline.short_horizon_days,
                "buckets": groups,
                "counts": {name: len(group) for name, group in groups.items()},
            },
        )

    @traced
    def distribution(self, team_id: str, workspace_id: str, *, actor: str) -> ServiceResult:
        """Per-type phase counts and percentages for a workspace."""
        op = "phase_distribution"
        items = self._load_items(op, team_id, workspace_id, actor=actor)
        if isinstance(items, ServiceResult):
            return items
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "workspace_id": workspace_id,
                "total": len(items),
                "distribution": phase_distribution(items),
            },
        )

    # ------------------------------------------------------------------
    # Transition
    # ------------------------------------------------------------------

    @traced
    def transition(
        self, team_id: str, work_item_id: str, target_phase: str, *, actor: str
    ) -> ServiceResult:
        op = "transition"
        now = now_iso()
        with self._store.transaction() as txn:
            with trace_span("guard"):
                membership = self._load_membership(txn.conn, team_id, actor)
                if membership is None:
                    return self._not_a_member(op, team_id, actor)
                row = load_work_item(txn.conn, work_item_id, team_id=team_id)
                if row is None:
                    return _not_found(op, work_item_id, team_id)
                item = WorkItem.model_validate(row)
                permissions = self._load_permissions(txn.conn, membership, item.workspace_id)
                decision = can_transition(item, target_phase, permissions)

            if not decision.allowed:
                return failure(
                    op,
                    decision.reason,
                    decision.message,
                    work_item_id=work_item_id,
                    phase=item.phase,
                    target_phase=target_phase,
                )

            with trace_span("persist"):
                if not compare_and_set_phase(
                    txn.conn,
                    work_item_id,
                    team_id=team_id,
                    expected_phase=item.phase,
                    expected_review_status=item.review_status,
                    new_phase=target_phase,
                    modified=now,
                ):
                    return failure(
                        op,
                        ReasonCode.CONFLICT,
                        f"{work_item_id} changed concurrently; reload and retry",
                        work_item_id=work_item_id,
                    )
                append_phase_history(
                    txn.conn,
                    work_item_id,
                    team_id=team_id,
                    workspace_id=item.workspace_id,
                    from_phase=item.phase,
                    phase=target_phase,
                    entered_at=now,
                    entered_by=actor,
                )

        warnings: list[str] = []
        with trace_span("dispatch"):
            self._dispatch_event(
                "post_transition",
                {
                    "work_item_id": work_item_id,
                    "team_id": team_id,
                    "workspace_id": item.workspace_id,
                    "from_phase": item.phase,
                    "to_phase": target_phase,
                },
                warnings,
                actor=actor,
            )
        logger.info("%s moved %s -> %s by %s", work_item_id, item.phase, target_phase, actor)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": work_item_id,
                "from_phase": item.phase,
                "phase": target_phase,
                "terminal": is_terminal(item.type, target_phase),
                "progress": phase_progress(item.type, target_phase),
                "next_phases": list(get_successors(item.type, target_phase)),
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Edit / archive
    # ------------------------------------------------------------------

    @traced
    def update_fields(
        self, team_id: str, work_item_id: str, changes: dict[str, Any], *, actor: str
    ) -> ServiceResult:
        """Edit content in the current phase.

        ``title`` and catalog fields must be editable in (type, phase);
        ``planned_start``/``planned_end`` only need edit permission. A
        ``None`` value clears a field.
        """
        op = "update_fields"
        if not changes:
            return failure(op, ReasonCode.VALIDATION_FAILED, "No changes given")

        now = now_iso()
        with self._store.transaction() as txn:
            membership = self._load_membership(txn.conn, team_id, actor)
            if membership is None:
                return self._not_a_member(op, team_id, actor)
            row = load_work_item(txn.conn, work_item_id, team_id=team_id)
            if row is None:
                return _not_found(op, work_item_id, team_id)
            item = WorkItem.model_validate(row)
            permissions = self._load_permissions(txn.conn, membership, item.workspace_id)

            if not permissions.for_phase(item.phase).can_edit:
                return failure(
                    op, ReasonCode.FORBIDDEN, f"No edit permission on phase {item.phase!r}"
                )
            editable = get_field_editability(item.type, item.phase)
            locked = sorted(k for k in changes if k not in _SCHEDULE_KEYS and k not in editable)
            if locked:
                return failure(
                    op,
                    ReasonCode.FIELD_LOCKED,
                    f"Fields not editable in {item.phase!r}: {', '.join(locked)}",
                    fields=locked,
                    phase=item.phase,
                )

            update: dict[str, Any] = {}
            fields = dict(item.fields)
            for key, value in changes.items():
                if key == "title":
                    if value is None or not str(value).strip():
                        return failure(op, ReasonCode.VALIDATION_FAILED, "Title is required")
                    update["title"] = str(value).strip()
                elif key in _SCHEDULE_KEYS:
                    try:
                        update[key] = parse_date(value)
                    except ValueError as exc:
                        return failure(op, ReasonCode.VALIDATION_FAILED, f"Invalid {key}: {exc}")
                elif value is None:
                    fields.pop(key, None)
                else:
                    fields[key] = value
            if fields != item.fields:
                update["fields"] = fields

            start = update.get("planned_start", item.planned_start)
            end = update.get("planned_end", item.planned_end)
            if (bad := _check_schedule(op, start, end)) is not None:
                return bad

            if update and not update_work_item_fields(
                txn.conn,
                work_item_id,
                team_id=team_id,
                expected_phase=item.phase,
                changes=update,
                modified=now,
            ):
                return failure(
                    op,
                    ReasonCode.CONFLICT,
                    f"{work_item_id} changed concurrently; reload and retry",
                    work_item_id=work_item_id,
                )

        updated = item.model_copy(update=update)
        warnings: list[str] = []
        if update:
            self._dispatch_event(
                "post_update",
                {
                    "work_item_id": work_item_id,
                    "team_id": team_id,
                    "fields_changed": sorted(changes),
                },
                warnings,
                actor=actor,
            )
        data = self._detail(updated)
        data["fields_changed"] = sorted(changes)
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def archive(self, team_id: str, work_item_id: str, *, actor: str) -> ServiceResult:
        """Soft-delete. Requires ``can_delete`` on the current phase."""
        op = "archive"
        with self._store.transaction() as txn:
            membership = self._load_membership(txn.conn, team_id, actor)
            if membership is None:
                return self._not_a_member(op, team_id, actor)
            row = load_work_item(txn.conn, work_item_id, team_id=team_id)
            if row is None:
                return _not_found(op, work_item_id, team_id)
            item = WorkItem.model_validate(row)
            permissions = self._load_permissions(txn.conn, membership, item.workspace_id)
            if not permissions.for_phase(item.phase).can_delete:
                return failure(
                    op, ReasonCode.FORBIDDEN, f"No delete permission on phase {item.phase!r}"
                )
            if not archive_work_item(
                txn.conn, work_item_id, team_id=team_id, expected_phase=item.phase, modified=now_iso()
            ):
                return failure(
                    op,
                    ReasonCode.CONFLICT,
                    f"{work_item_id} changed concurrently; reload and retry",
                    work_item_id=work_item_id,
                )

        warnings: list[str] = []
        self._dispatch_event(
            "post_archive",
            {"work_item_id": work_item_id, "team_id": team_id},
            warnings,
            actor=actor,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": work_item_id, "phase": item.phase, "archived": True},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    @staticmethod
    def _load_chain(conn: Connection, item: WorkItem) -> list[WorkItem]:
        """Every item linked to *item* through ``enhances_work_item_id``, unordered."""
        found = {item.id: item}
        cursor = item
        while cursor.enhances_work_item_id and cursor.enhances_work_item_id not in found:
            row = load_work_item(
                conn, cursor.enhances_work_item_id, team_id=item.team_id, include_archived=True
            )
            if row is None:
                break
            cursor = WorkItem.model_validate(row)
            found[cursor.id] = cursor
        cursor = item
        while True:
            row = find_enhancement(conn, cursor.id, team_id=item.team_id)
            if row is None or row["id"] in found:
                break
            cursor = WorkItem.model_validate(row)
            found[cursor.id] = cursor
        return list(found.values())

    @traced
    def versions(self, team_id: str, work_item_id: str, *, actor: str) -> ServiceResult:
        """The full version chain containing *work_item_id*, oldest first."""
        op = "versions"
        with self._store.connect() as conn:
            if self._load_membership(conn, team_id, actor) is None:
                return self._not_a_member(op, team_id, actor)
            row = load_work_item(conn, work_item_id, team_id=team_id, include_archived=True)
            if row is None:
                return _not_found(op, work_item_id, team_id)
            chain = self._load_chain(conn, WorkItem.model_validate(row))

        try:
            ordered = order_chain(chain, work_item_id)
        except VersionChainError as exc:
            return failure(op, ReasonCode.VALIDATION_FAILED, str(exc), work_item_id=work_item_id)
        items = [self._summary(item) | {"enhances": item.enhances_work_item_id} for item in ordered]
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "work_item_id": work_item_id,
                "latest": ordered[-1].id,
                "count": len(items),
                "items": items,
            },
        )

    @traced
    def enhance(
        self,
        team_id: str,
        work_item_id: str,
        *,
        actor: str,
        version_notes: str | None,
        title: str | None = None,
    ) -> ServiceResult:
        """Start the next version of a launched feature or enhancement."""
        op = "enhance"
        now = now_iso()
        try:
            with self._store.transaction() as txn:
                membership = self._load_membership(txn.conn, team_id, actor)
                if membership is None:
                    return self._not_a_member(op, team_id, actor)
                row = load_work_item(txn.conn, work_item_id, team_id=team_id)
                if row is None:
                    return _not_found(op, work_item_id, team_id)
                source = WorkItem.model_validate(row)
                permissions = self._load_permissions(txn.conn, membership, source.workspace_id)

                decision = can_enhance(
                    source,
                    permissions,
                    already_enhanced=(
                        find_enhancement(txn.conn, work_item_id, team_id=team_id) is not None
                    ),
                    version_notes=version_notes,
                )
                if not decision.allowed:
                    return failure(op, decision.reason, decision.message, work_item_id=work_item_id)

                chain = self._load_chain(txn.conn, source)
                new_id = next_sequential_id(txn.conn, WORK_ITEM_PREFIX)
                item = WorkItem(
                    id=new_id,
                    team_id=team_id,
                    workspace_id=source.workspace_id,
                    type=ENHANCED_TYPE,
                    phase=default_phase(ENHANCED_TYPE),
                    title=(title or source.title).strip(),
                    fields=carried_fields(source),
                    created_by=actor,
                    created=now,
                    modified=now,
                    version=next_version(chain),
                    enhances_work_item_id=source.id,
                    version_notes=version_notes.strip() if version_notes else None,
                    review_enabled=source.review_enabled,
                    review_status=ReviewStatus.NONE,
                )
                self._insert(txn.conn, item, actor=actor, now=now)
        except IntegrityError:
            # Another writer claimed the unique enhances_work_item_id slot first.
            # The rollback also releases the claimed WI- number.
            return failure(
                op, ReasonCode.ALREADY_ENHANCED, f"{work_item_id} already has a newer version"
            )

        warnings: list[str] = []
        self._dispatch_event(
            "post_create",
            {
                "work_item_id": new_id,
                "team_id": team_id,
                "workspace_id": item.workspace_id,
                "item_type": str(item.type),
                "phase": item.phase,
            },
            warnings,
            actor=actor,
        )
        logger.info("%s enhanced into %s (v%d)", work_item_id, new_id, item.version)
        return ServiceResult(ok=True, op=op, data=self._detail(item), warnings=warnings)
