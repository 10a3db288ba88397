"""InitService: create a phasectl store in a project directory.

Pipeline: CONFIG -> SCHEMA -> STAMP -> REPORT
"""

from __future__ import annotations

import logging
from pathlib import Path

from phasectl.config.discovery import write_default_config
from phasectl.config.settings import PhaseSettings
from phasectl.infrastructure.database.migrations import current_revision, stamp_head
from phasectl.infrastructure.store import Store
from phasectl.services.result import ServiceResult
from phasectl.services.telemetry import traced

logger = logging.getLogger(__name__)


class InitService:
    """Initializes the on-disk store. Needs no existing Store."""

    @staticmethod
    @traced
    def init_store(root: Path, *, name: str | None = None) -> ServiceResult:
        """Write ``phasectl.toml``, create the schema, and stamp the Alembic head.

        Re-running on an initialized directory is harmless: the config is
        kept and an already stamped database is left at its revision.
        """
        op = "init"
        root = root.resolve()
        root.mkdir(parents=True, exist_ok=True)
        config_path = write_default_config(root, name or root.name)

        settings = PhaseSettings.from_cli(config_path=str(config_path), root=root)
        existed = settings.db_path.exists()
        with Store(settings) as store:
            db_path = store.db_path

        revision = current_revision(db_path)
        if revision is None:
            stamp_head(db_path)
            revision = current_revision(db_path)
            logger.info("Initialized store at %s (revision %s)", db_path, revision)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "root": str(root),
                "name": settings.store.name,
                "config_path": str(config_path),
                "db_path": str(db_path),
                "revision": revision,
                "created": not existed,
            },
        )
