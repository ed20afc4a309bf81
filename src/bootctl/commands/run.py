"""Command: run the bootstrap sequence."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from bootctl.commands._base import BootCommand

if TYPE_CHECKING:
    from bootctl.commands._context import AppContext


@click.command(
    cls=BootCommand,
    examples="""\
  bootctl run
  bootctl --sync run
  bootctl --json run
  bootctl -c ./bootctl.toml run --wait 5""",
)
@click.option(
    "--wait",
    "wait_timeout",
    type=float,
    default=30.0,
    show_default=True,
    help="Seconds to wait for deferred tasks before reporting.",
)
@click.pass_obj
def run(app: AppContext, wait_timeout: float) -> None:
    """Bring up every configured subsystem and print the report.

    Exits 1 when a critical step fails.
    """
    from bootctl.services.boot import BootService

    app.emit(BootService(app.runtime).run(wait_timeout=wait_timeout))
