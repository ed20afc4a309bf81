"""Parametrized help and --examples tests for all CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from bootctl.cli import cli

# (CLI args, expected keywords in output)
HELP_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["run", "--help"], ["--wait", "--examples"]),
    (["steps", "--help"], ["execution order"]),
    (["contacts", "--help"], ["PATH", "--exclude-name"]),
    (["identity", "--help"], ["resolve", "login", "logout"]),
    (["identity", "login", "--help"], ["--token", "--user-id"]),
    (["alerts", "--help"], ["emit", "event"]),
    (["alerts", "emit", "--help"], ["--severity", "--type", "MESSAGE"]),
    (["alerts", "event", "--help"], ["--identifier", "--message"]),
]

EXAMPLES_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["run", "--examples"], ["bootctl --sync run"]),
    (["steps", "--examples"], ["bootctl -q steps"]),
    (["contacts", "--examples"], ["--exclude-name"]),
    (["identity", "--examples"], ["bootctl identity login"]),
    (["identity", "resolve", "--examples"], ["bootctl --json identity resolve"]),
    (["alerts", "--examples"], ["bootctl alerts emit"]),
    (["alerts", "event", "--examples"], ["auth_failed --identifier alice"]),
]


def _id(item: tuple[list[str], list[str]]) -> str:
    args, _ = item
    return "_".join(a.lstrip("-") for a in args)


@pytest.mark.parametrize("args,expected", HELP_COMMANDS, ids=[_id(i) for i in HELP_COMMANDS])
def test_help(cli_runner: CliRunner, args: list[str], expected: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0
    for kw in expected:
        assert kw in result.output, f"Expected '{kw}' in help output for {args}"


@pytest.mark.parametrize(
    "args,expected", EXAMPLES_COMMANDS, ids=[_id(i) for i in EXAMPLES_COMMANDS]
)
def test_examples_flag(cli_runner: CliRunner, args: list[str], expected: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0
    assert "Examples for" in result.output
    for kw in expected:
        assert kw in result.output


def test_logout_has_no_examples(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["identity", "logout", "--help"])
    assert "--examples" not in result.output
