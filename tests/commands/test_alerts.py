"""Tests for the alerts command group."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from bootctl.cli import cli


@pytest.mark.usefixtures("_isolated_root")
class TestAlertsCommands:
    def test_emit_critical_escalates(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--sync", "alerts", "emit", "--severity", "critical", "Pinning bypassed"]
        )
        assert result.exit_code == 0, result.output
        assert "route: escalate" in result.stdout
        assert "ALERT" in result.stderr
        assert "Pinning bypassed" in result.stderr

    def test_emit_low_is_quiet_on_stderr(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--sync", "alerts", "emit", "--severity", "low", "minor"]
        )
        assert result.exit_code == 0
        assert "ALERT" not in result.stderr
        assert "WARNING [" not in result.stderr

    def test_emit_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli,
            [
                "--sync",
                "--json",
                "alerts",
                "emit",
                "--severity",
                "high",
                "--type",
                "network_security_threat",
                "odd dns",
            ],
        )
        data = json.loads(result.stdout)["data"]
        assert data["alert"]["type"] == "network_security_threat"
        assert data["alert"]["route"] == "prominent"
        assert data["handlers"] == 2

    def test_emit_rejects_bad_severity(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["alerts", "emit", "--severity", "urgent", "x"])
        assert result.exit_code == 2

    def test_event_with_alert(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--sync", "--json", "alerts", "event", "certificate_pinning_bypassed"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["data"]
        assert data["alert"]["severity"] == "critical"

    def test_event_without_alert(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--sync", "alerts", "event", "auth_failed", "--identifier", "alice"]
        )
        assert result.exit_code == 0
        assert "no alert raised" in result.stdout
