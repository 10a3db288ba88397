"""Root CLI group for phasectl with global flags and command registration."""

from __future__ import annotations

import click

from phasectl import __version__
from phasectl.commands import register_commands
from phasectl.commands._context import AppContext
from phasectl.config.settings import PhaseSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="phasectl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--as", "actor", default=None, help="Acting user id (or PHASECTL_ACTOR).")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    actor: str | None,
) -> None:
    """phasectl: type-aware phase lifecycle for team work items."""
    ctx.ensure_object(dict)
    # Unset flags are dropped so PHASECTL_* env vars and phasectl.toml still apply.
    settings = PhaseSettings.from_cli(
        config_path=config_path,
        json_output=json_output or None,
        quiet=quiet or None,
        verbose=verbose or None,
        log_json=log_json or None,
        actor=actor,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
