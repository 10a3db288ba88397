"""Command group: phase catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from phasectl.commands._base import PhaseGroup
from phasectl.services.catalog import CatalogService

if TYPE_CHECKING:
    from phasectl.commands._context import AppContext


@click.group(
    cls=PhaseGroup,
    examples="""\
  phasectl catalog show
  phasectl -v catalog show bug
  phasectl --json catalog show concept""",
)
@click.pass_obj
def catalog(app: AppContext) -> None:
    """Inspect the per-type phase catalog."""


@catalog.command(examples="  phasectl catalog show feature")
@click.argument("item_type", required=False)
@click.pass_obj
def show(app: AppContext, item_type: str | None) -> None:
    """Show phases, successors, and review gates for one or all types."""
    app.emit(CatalogService.describe(item_type))
