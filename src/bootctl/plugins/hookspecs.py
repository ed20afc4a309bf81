"""Pluggy hook specifications for bootctl.

``handle_security_alert`` is delivered through the AlertRouter, one
subscription per implementing plugin, so each plugin keeps its own FIFO
lane and its failures stay isolated. The other two hooks run inline
on the bootstrap path.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from bootctl.domain.alerts import SecurityAlert
    from bootctl.domain.report import BootstrapReport
    from bootctl.domain.steps import InitStep
    from bootctl.runtime import Runtime

hookspec = pluggy.HookspecMarker("bootctl")


class BootctlHookSpec:
    """Hook specifications for the bootctl plugin system."""

    @hookspec
    def handle_security_alert(self, alert: SecurityAlert) -> None:
        """Called for every alert published after plugins are subscribed."""

    @hookspec
    def register_init_steps(self, runtime: Runtime) -> list[InitStep] | None:
        """Return extra init steps, appended after the configured ones."""

    @hookspec
    def post_bootstrap(self, report: BootstrapReport) -> None:
        """Called once bootstrap has finished without aborting."""
