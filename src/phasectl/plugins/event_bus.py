"""WAL-backed synchronous event dispatch via pluggy.

Each event is written to the ``event_wal`` table before its hook runs,
so an event whose plugin failed (or whose process died mid-dispatch)
stays ``pending``/``failed`` and is retried by :meth:`EventBus.drain`.
Dispatch runs inline on the caller's thread; there are no workers.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update

from phasectl.infrastructure.database.schema import event_wal

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from phasectl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

PENDING = "pending"
COMPLETED = "completed"
FAILED = "failed"
DEAD_LETTER = "dead_letter"


def _now() -> str:
    return datetime.now(UTC).isoformat()


class EventBus:
    """Record-then-dispatch event bus.

    Parameters:
        engine: SQLAlchemy engine with the ``event_wal`` table.
        plugin_manager: Loaded PluginManager for hook dispatch.
        max_retries: Failed attempts before an event is ``dead_letter``.
    """

    def __init__(self, engine: Engine, plugin_manager: PluginManager, *, max_retries: int = 3) -> None:
        self._engine = engine
        self._pm = plugin_manager
        self._max_retries = max_retries

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    def dispatch(self, hook_name: str, payload: dict[str, Any], *, actor: str | None = None) -> str:
        """Write the event to the WAL, run its hook, and return the final status.

        *actor* is recorded on the WAL row and passed to the hook as ``actor``.
        """
        payload = {**payload, "actor": actor}
        event_id = self._write_wal(hook_name, payload, actor=actor)
        return self._execute_hook(event_id, hook_name, payload)

    def drain(self) -> list[dict[str, Any]]:
        """Retry every pending or failed event in insertion order.

        Returns ``{id, hook_name, status}`` for each retried event.
        """
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(event_wal.c.id, event_wal.c.hook_name, event_wal.c.payload)
                .where(event_wal.c.status.in_([PENDING, FAILED]))
                .order_by(event_wal.c.id)
            ).fetchall()

        return [
            {
                "id": row.id,
                "hook_name": row.hook_name,
                "status": self._execute_hook(row.id, row.hook_name, json.loads(row.payload)),
            }
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _write_wal(self, hook_name: str, payload: dict[str, Any], *, actor: str | None) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(
                insert(event_wal).values(
                    hook_name=hook_name,
                    payload=json.dumps(payload, default=str),
                    status=PENDING,
                    retries=0,
                    actor=actor,
                    created=_now(),
                )
            )
            assert result.lastrowid is not None
            return result.lastrowid

    def _execute_hook(self, event_id: int, hook_name: str, payload: dict[str, Any]) -> str:
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            return self._mark_completed(event_id)
        try:
            hook_fn(**payload)
        except Exception as exc:
            logger.warning("Hook %s failed: %s", hook_name, exc)
            return self._mark_failed(event_id, str(exc))
        return self._mark_completed(event_id)

    def _mark_completed(self, event_id: int) -> str:
        with self._engine.begin() as conn:
            conn.execute(
                update(event_wal)
                .where(event_wal.c.id == event_id)
                .values(status=COMPLETED, completed=_now(), error=None)
            )
        return COMPLETED

    def _mark_failed(self, event_id: int, error: str) -> str:
        with self._engine.begin() as conn:
            retries = conn.execute(
                select(event_wal.c.retries).where(event_wal.c.id == event_id)
            ).scalar_one() + 1
            status = DEAD_LETTER if retries >= self._max_retries else FAILED
            conn.execute(
                update(event_wal)
                .where(event_wal.c.id == event_id)
                .values(
                    status=status,
                    error=error,
                    retries=retries,
                    completed=_now() if status == DEAD_LETTER else None,
                )
            )
        return status
