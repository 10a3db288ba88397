"""Command: store initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from phasectl.commands._base import PhaseCommand

if TYPE_CHECKING:
    from phasectl.commands._context import AppContext

_INIT_EXAMPLES = """\
  phasectl init
  phasectl init /path/to/project --name roadmap
  phasectl --json init ."""


@click.command("init", cls=PhaseCommand, examples=_INIT_EXAMPLES)
@click.argument("path", required=False, default=".")
@click.option("--name", default=None, help="Store name (defaults to the directory name).")
@click.pass_obj
def init_cmd(app: AppContext, path: str, name: str | None) -> None:
    """Create phasectl.toml and the store database, stamped at the latest schema."""
    from phasectl.services.init import InitService

    app.emit(InitService.init_store(Path(path), name=name))
