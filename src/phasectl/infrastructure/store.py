"""Store: the explicit persistence handle every service receives.

A Store is constructed from :class:`PhaseSettings` and released with
:meth:`close`. There is no module-level client; callers own the
lifecycle. Each service call opens its own unit of work with
:meth:`transaction` (write) or :meth:`connect` (read-only).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from phasectl.domain.catalog import validate_catalog
from phasectl.infrastructure.database.engine import init_database

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from phasectl.config.settings import PhaseSettings
    from phasectl.plugins.event_bus import EventBus

logger = logging.getLogger(__name__)


@dataclass
class StoreTransaction:
    """Active unit of work. All writes go through :attr:`conn`."""

    conn: Connection


class Store:
    """Owns the SQLAlchemy engine and the optional plugin event bus.

    Construction validates the phase catalog first: a misconfigured
    catalog aborts startup with :class:`~phasectl.domain.catalog.CatalogError`.
    """

    def __init__(self, settings: PhaseSettings) -> None:
        validate_catalog()
        self._settings = settings
        self._engine: Engine | None = init_database(settings.db_path)
        self._event_bus: EventBus | None = None
        logger.debug("Opened store at %s", settings.db_path)

    @property
    def settings(self) -> PhaseSettings:
        return self._settings

    @property
    def db_path(self) -> Path:
        return self._settings.db_path

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Store is closed")
        return self._engine

    @property
    def event_bus(self) -> EventBus | None:
        """The plugin event bus (None if not initialized or plugins disabled)."""
        return self._event_bus

    def init_event_bus(self, *, plugins: list[Any] | None = None) -> None:
        """Wire up plugin discovery and the WAL-backed event bus.

        Entry-point plugins and single-file plugins from
        ``{data_dir}/plugins/`` are loaded, then the built-in activity
        log and any extra *plugins* are registered.
        """
        if not self._settings.plugins.enabled:
            return

        from phasectl.plugins.builtins.activity import ActivityLogPlugin
        from phasectl.plugins.event_bus import EventBus
        from phasectl.plugins.manager import PluginManager

        pm = PluginManager()
        pm.discover_and_load(local_dir=self._settings.data_dir / "plugins")
        if self._settings.plugins.activity_log:
            pm.register_plugin(
                ActivityLogPlugin(self._settings.data_dir / "activity.jsonl"),
                name="activity-log",
            )
        for plugin in plugins or []:
            pm.register_plugin(plugin)

        self._event_bus = EventBus(self.engine, pm, max_retries=self._settings.plugins.max_retries)

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        """One atomic unit of work: commits on success, rolls back on error.

        Usage::

            with store.transaction() as txn:
                if not compare_and_set_phase(txn.conn, ...):
                    ...  # conflict
                append_phase_history(txn.conn, ...)
        """
        with self.engine.begin() as conn:
            yield StoreTransaction(conn=conn)

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Read-only connection (no transaction is committed)."""
        with self.engine.connect() as conn:
            yield conn

    def close(self) -> None:
        """Dispose the engine. Safe to call more than once."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._event_bus = None
            logger.debug("Closed store at %s", self._settings.db_path)

    def __enter__(self) -> Store:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
