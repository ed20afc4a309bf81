"""Identity command group: resolve, login, logout."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from bootctl.commands._base import BootGroup

if TYPE_CHECKING:
    from bootctl.commands._context import AppContext


@click.group(
    cls=BootGroup,
    examples="""\
  bootctl identity resolve
  bootctl identity login --token abc123 --user-id user-42
  bootctl identity logout""",
)
def identity() -> None:
    """Resolve and manage the current identity."""


@identity.command(
    examples="""\
  bootctl identity resolve
  bootctl --json identity resolve""",
)
@click.pass_obj
def resolve(app: AppContext) -> None:
    """Resolve through session, then device fingerprint."""
    from bootctl.services.identity import IdentityService

    app.emit(IdentityService(app.runtime).resolve())


@identity.command(
    examples="""\
  bootctl identity login --token abc123 --user-id user-42""",
)
@click.option("--token", required=True, help="Session token issued by the backend.")
@click.option("--user-id", required=True, help="Authenticated user id.")
@click.pass_obj
def login(app: AppContext, token: str, user_id: str) -> None:
    """Store a session and promote the device identity to it."""
    from bootctl.services.identity import IdentityService

    app.emit(IdentityService(app.runtime).login(token, user_id))


@identity.command()
@click.pass_obj
def logout(app: AppContext) -> None:
    """Clear the stored session."""
    from bootctl.services.identity import IdentityService

    app.emit(IdentityService(app.runtime).logout())
