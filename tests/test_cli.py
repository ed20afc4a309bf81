"""Tests for the root bootctl CLI."""

import pytest
from click.testing import CliRunner

from bootctl import __version__
from bootctl.cli import cli


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "bootctl" in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


@pytest.mark.usefixtures("_isolated_root")
def test_cli_no_args(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


# --- Global flags ---


@pytest.mark.parametrize("flag", ["--json", "-q", "-v", "--log-json", "--sync"])
def test_global_flag_accepted(cli_runner: CliRunner, flag: str) -> None:
    result = cli_runner.invoke(cli, [flag, "--version"])
    assert result.exit_code == 0


def test_config_option_accepted(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["-c", "/tmp/test.toml", "--version"])
    assert result.exit_code == 0


# --- Command groups registered ---

EXPECTED_GROUPS = ["identity", "alerts"]
EXPECTED_COMMANDS = ["run", "steps", "contacts"]


@pytest.mark.parametrize("name", EXPECTED_GROUPS + EXPECTED_COMMANDS)
def test_command_registered(name: str) -> None:
    assert name in cli.commands


@pytest.mark.usefixtures("_isolated_root")
def test_invalid_config_is_usage_error(cli_runner: CliRunner, tmp_path) -> None:
    (tmp_path / "bootctl.toml").write_text("[identity]\nsession_timeout_minutes = 'soon'\n")
    result = cli_runner.invoke(cli, ["steps"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


@pytest.mark.usefixtures("_isolated_root")
def test_malformed_toml(cli_runner: CliRunner, tmp_path) -> None:
    (tmp_path / "bootctl.toml").write_text("[identity\n")
    result = cli_runner.invoke(cli, ["steps"])
    assert result.exit_code == 1
    assert "Invalid TOML" in result.output
