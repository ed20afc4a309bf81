"""Subcommand modules for bootctl.

Provides register_commands() which uses deferred imports to keep
``bootctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group.

    2 groups (have subcommands) + 3 standalone commands.
    """
    # --- Groups ---
    from bootctl.commands.alerts import alerts
    from bootctl.commands.identity import identity

    cli.add_command(identity)
    cli.add_command(alerts)

    # --- Standalone commands ---
    from bootctl.commands.contacts import contacts
    from bootctl.commands.run import run
    from bootctl.commands.steps import steps

    cli.add_command(run)
    cli.add_command(steps)
    cli.add_command(contacts)
