"""Alerts command group: emit alerts and report security events."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from bootctl.commands._base import BootGroup
from bootctl.domain.alerts import AlertType, Severity
from bootctl.domain.events import SecurityEventType

if TYPE_CHECKING:
    from bootctl.commands._context import AppContext


@click.group(
    cls=BootGroup,
    examples="""\
  bootctl alerts emit --severity high "Disk encryption disabled"
  bootctl alerts event auth_failed --identifier alice""",
)
def alerts() -> None:
    """Publish security alerts and events."""


@alerts.command(
    examples="""\
  bootctl alerts emit --severity critical "Pinning bypassed"
  bootctl alerts emit --severity low --type network_security_threat "Odd DNS answer" """,
)
@click.option(
    "--severity",
    type=click.Choice([s.value for s in Severity]),
    required=True,
    help="Alert severity.",
)
@click.option(
    "--type",
    "alert_type",
    type=click.Choice([t.value for t in AlertType]),
    default=AlertType.GENERIC.value,
    help="Alert type.",
)
@click.argument("message")
@click.pass_obj
def emit(app: AppContext, severity: str, alert_type: str, message: str) -> None:
    """Publish MESSAGE as an alert to every subscribed handler."""
    from bootctl.services.monitor import AlertService

    app.emit(
        AlertService(app.runtime).emit(
            Severity(severity), message, alert_type=AlertType(alert_type)
        )
    )


@alerts.command(
    examples="""\
  bootctl alerts event data_tampering
  bootctl alerts event auth_failed --identifier alice --message "bad password" """,
)
@click.argument("event_type", type=click.Choice([t.value for t in SecurityEventType]))
@click.option("--message", default="", help="Event description.")
@click.option("--identifier", default=None, help="Account or client the event concerns.")
@click.pass_obj
def event(app: AppContext, event_type: str, message: str, identifier: str | None) -> None:
    """Report a security event; prints the alert it raised, if any."""
    from bootctl.services.monitor import AlertService

    metadata = {"identifier": identifier} if identifier else {}
    app.emit(
        AlertService(app.runtime).event(
            SecurityEventType(event_type), message or event_type, metadata=metadata
        )
    )
