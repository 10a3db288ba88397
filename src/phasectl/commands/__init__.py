"""Subcommand modules for phasectl.

Provides register_commands() which uses deferred imports to keep
``phasectl --help`` fast as the codebase grows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group.

    Uses deferred imports so modules are only loaded when actually invoked.
    """
    # --- Groups ---
    from phasectl.commands.catalog import catalog
    from phasectl.commands.item import item
    from phasectl.commands.perms import perms
    from phasectl.commands.review import review
    from phasectl.commands.team import team
    from phasectl.commands.workspace import workspace

    cli.add_command(team)
    cli.add_command(workspace)
    cli.add_command(item)
    cli.add_command(review)
    cli.add_command(perms)
    cli.add_command(catalog)

    # --- Standalone commands ---
    from phasectl.commands.init_cmd import init_cmd

    cli.add_command(init_cmd)
