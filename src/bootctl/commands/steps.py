"""Command: list the configured bootstrap steps."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from bootctl.commands._base import BootCommand

if TYPE_CHECKING:
    from bootctl.commands._context import AppContext


@click.command(
    cls=BootCommand,
    examples="""\
  bootctl steps
  bootctl --json steps
  bootctl -q steps""",
)
@click.pass_obj
def steps(app: AppContext) -> None:
    """List bootstrap steps in execution order without running them."""
    from bootctl.services.boot import BootService

    app.emit(BootService(app.runtime).steps())
