"""Built-in activity log plugin.

Appends one JSON line per lifecycle event to ``{data_dir}/activity.jsonl``
so teams get an external, greppable trail of who moved what. Disable it
with ``[plugins] activity_log = false``.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from phasectl.plugins.hookspecs import hookimpl

logger = logging.getLogger(__name__)


class ActivityLogPlugin:
    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _append(self, event: str, **fields: Any) -> None:
        record = {"at": datetime.now(UTC).isoformat(), "event": event, **fields}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, sort_keys=True) + "\n")

    # ------------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------------

    @hookimpl
    def post_create(
        self,
        work_item_id: str,
        team_id: str,
        workspace_id: str,
        item_type: str,
        phase: str,
        actor: str,
    ) -> None:
        self._append(
            "create",
            work_item_id=work_item_id,
            team_id=team_id,
            workspace_id=workspace_id,
            type=item_type,
            phase=phase,
            actor=actor,
        )

    @hookimpl
    def post_transition(
        self,
        work_item_id: str,
        team_id: str,
        workspace_id: str,
        from_phase: str,
        to_phase: str,
        actor: str,
    ) -> None:
        self._append(
            "transition",
            work_item_id=work_item_id,
            team_id=team_id,
            workspace_id=workspace_id,
            from_phase=from_phase,
            to_phase=to_phase,
            actor=actor,
        )

    @hookimpl
    def post_review(
        self,
        work_item_id: str,
        team_id: str,
        action: str,
        review_status: str,
        actor: str,
    ) -> None:
        self._append(
            f"review.{action}",
            work_item_id=work_item_id,
            team_id=team_id,
            review_status=review_status,
            actor=actor,
        )

    @hookimpl
    def post_archive(self, work_item_id: str, team_id: str, actor: str) -> None:
        self._append("archive", work_item_id=work_item_id, team_id=team_id, actor=actor)
