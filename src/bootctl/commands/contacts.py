"""Command: normalize a contacts CSV."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from bootctl.commands._base import BootCommand

if TYPE_CHECKING:
    from bootctl.commands._context import AppContext


@click.command(
    cls=BootCommand,
    examples="""\
  bootctl contacts contacts.csv
  bootctl contacts contacts.csv --exclude-name "Jane Doe"
  bootctl --json contacts contacts.csv""",
)
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--exclude-name",
    default=None,
    help="Drop the owner's own entry (case-insensitive). Defaults to [device] name.",
)
@click.pass_obj
def contacts(app: AppContext, path: Path, exclude_name: str | None) -> None:
    """Load contacts from a CSV file with name and phone columns."""
    from bootctl.services.contacts import ContactService

    app.emit(ContactService(app.runtime).load(path, exclude_name=exclude_name))
