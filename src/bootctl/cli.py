"""Root CLI group for bootctl with global flags and command registration."""

from __future__ import annotations

import click

from bootctl import __version__
from bootctl.commands import register_commands
from bootctl.commands._context import AppContext
from bootctl.config.settings import BootSettings
from bootctl.errors import ConfigurationError


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="bootctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--sync", is_flag=True, help="Deliver alerts and deferred tasks synchronously.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    sync: bool,
) -> None:
    """bootctl — subsystem bootstrap, identity, and security alert control."""
    ctx.ensure_object(dict)
    try:
        settings = BootSettings.from_cli(
            config_path=config_path,
            json_output=json_output,
            quiet=quiet,
            verbose=verbose,
            log_json=log_json,
            sync=sync,
        )
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = AppContext(settings)
    ctx.call_on_close(ctx.obj.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
