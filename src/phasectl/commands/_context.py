"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy Store initialization, the acting
user, and centralized result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from phasectl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from phasectl.config.settings import PhaseSettings
    from phasectl.infrastructure.store import Store
    from phasectl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  The store is lazily
    opened on first use so ``--help`` and ``--version`` never trigger
    database access.
    """

    def __init__(self, settings: PhaseSettings) -> None:
        self.settings = settings
        self._store: Store | None = None

        # Configure structured logging
        from phasectl.config.logging import bind_request_context, configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        bind_request_context(actor=settings.actor)

        # Enable telemetry context var when verbose
        if settings.verbose:
            from phasectl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def store(self) -> Store:
        """The store instance (opened lazily on first access)."""
        if self._store is None:
            from phasectl.infrastructure.store import Store

            self._store = Store(self.settings)
            self._store.init_event_bus()
        return self._store

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
            self._store = None

    @property
    def actor(self) -> str:
        """The acting user id. Exits with a usage error when none was given."""
        if not self.settings.actor:
            raise click.UsageError("No acting user: pass --as USER_ID or set PHASECTL_ACTOR.")
        return self.settings.actor

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
