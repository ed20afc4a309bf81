"""Built-in escalation plugin.

Surfaces ESCALATE and PROMINENT alerts on stderr with Rich so they are
seen even when logging is quiet. INFORMATIONAL alerts are left to the
log handler.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy
from rich.console import Console
from rich.text import Text

from bootctl.domain.alerts import AlertRoute
from bootctl.output.console import BOOT_THEME

if TYPE_CHECKING:
    from bootctl.domain.alerts import SecurityAlert

hookimpl = pluggy.HookimplMarker("bootctl")

_ROUTE_LABELS: dict[AlertRoute, tuple[str, str]] = {
    AlertRoute.ESCALATE: ("ALERT", "boot.alert.escalate"),
    AlertRoute.PROMINENT: ("WARNING", "boot.alert.prominent"),
}


class EscalationPlugin:
    """Prints a one-line notice for alerts that need attention."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True, theme=BOOT_THEME, highlight=False)
        self.notified: int = 0

    @hookimpl
    def handle_security_alert(self, alert: SecurityAlert) -> None:
        label = _ROUTE_LABELS.get(alert.route)
        if label is None:
            return
        text, style = label
        self._console.print(
            Text(text, style=style),
            Text(f" [{alert.severity.value}]", style="boot.key"),
            Text(f" {alert.type.value}: ", style="boot.op"),
            Text(alert.message),
        )
        self.notified += 1
