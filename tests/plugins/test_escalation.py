"""Tests for the built-in escalation plugin."""

from __future__ import annotations

from io import StringIO

import pytest
from rich.console import Console

from bootctl.domain.alerts import AlertType, SecurityAlert, Severity
from bootctl.output.console import BOOT_THEME
from bootctl.plugins.builtins.escalation import EscalationPlugin


def _plugin() -> tuple[EscalationPlugin, StringIO]:
    buf = StringIO()
    console = Console(file=buf, theme=BOOT_THEME, no_color=True, width=200)
    return EscalationPlugin(console), buf


@pytest.mark.parametrize(
    ("severity", "label"),
    [(Severity.CRITICAL, "ALERT"), (Severity.HIGH, "WARNING")],
)
def test_loud_routes_printed(severity: Severity, label: str) -> None:
    plugin, buf = _plugin()
    plugin.handle_security_alert(
        SecurityAlert(severity=severity, message="pin [bypass]", type=AlertType.GENERIC)
    )
    out = buf.getvalue()
    assert out.startswith(label)
    assert f"[{severity.value}]" in out
    assert "pin [bypass]" in out
    assert plugin.notified == 1


@pytest.mark.parametrize("severity", [Severity.MEDIUM, Severity.LOW])
def test_informational_ignored(severity: Severity) -> None:
    plugin, buf = _plugin()
    plugin.handle_security_alert(SecurityAlert(severity=severity, message="quiet"))
    assert buf.getvalue() == ""
    assert plugin.notified == 0
