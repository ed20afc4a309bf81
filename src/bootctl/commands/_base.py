"""Click base classes shared by every bootctl command.

``BootCommand`` and ``BootGroup`` add two things to Click:

- an eager ``--examples`` flag that prints usage examples and exits, which
  keeps ``--help`` short;
- error reporting: a bootctl or state-database error escaping a command is
  emitted as a failed result through :class:`AppContext`, so ``--json``
  callers get a JSON error and exit code 1 instead of a traceback.
"""

from __future__ import annotations

from typing import Any

import click
from sqlalchemy.exc import SQLAlchemyError

from bootctl.commands._context import AppContext
from bootctl.errors import (
    BootctlError,
    ConfigurationError,
    IdentityResolutionFailure,
    SubsystemFailure,
)
from bootctl.services.result import ServiceResult

# First match wins, so subclasses go before BootctlError.
ERROR_CODES: tuple[tuple[type[Exception], str], ...] = (
    (ConfigurationError, "CONFIG_INVALID"),
    (IdentityResolutionFailure, "IDENTITY_UNRESOLVED"),
    (SubsystemFailure, "SUBSYSTEM_FAILED"),
    (SQLAlchemyError, "STATE_DB_ERROR"),
    (BootctlError, "BOOTCTL_ERROR"),
)
HANDLED_ERRORS = tuple(cls for cls, _ in ERROR_CODES)


def error_code(exc: Exception) -> str:
    for cls, code in ERROR_CODES:
        if isinstance(exc, cls):
            return code
    return "BOOTCTL_ERROR"


def _add_examples_option(cmd: click.Command, examples: str) -> None:
    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class BootCommand(click.Command):
    """Command with ``--examples`` and bootctl error reporting."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except HANDLED_ERRORS as exc:
            app = ctx.find_object(AppContext)
            if app is None:
                raise click.ClickException(str(exc)) from exc
            op = ctx.command_path.split(" ", 1)[-1].replace(" ", "_")
            app.emit(ServiceResult.failure(op, error_code(exc), str(exc)))


class BootGroup(click.Group):
    """Group whose subcommands are :class:`BootCommand` by default."""

    command_class = BootCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)
