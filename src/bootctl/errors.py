"""Exception taxonomy for bootctl.

Only two of these ever reach the process boundary: ``ConfigurationError``
(bad registry or config, raised at build time) and ``BootstrapError``
(a CRITICAL step failed). The rest are recovered locally and surface as
report entries, log records, or alerts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bootctl.domain.report import BootstrapReport


class BootctlError(Exception):
    """Base class for all bootctl errors."""


class ConfigurationError(BootctlError):
    """Invalid registry setup or configuration. Fatal at build time."""


class BootstrapError(BootctlError):
    """A CRITICAL init step failed; startup cannot continue.

    The failing step's original exception is chained as ``__cause__``.
    """

    def __init__(self, step: str, error: BaseException, report: BootstrapReport) -> None:
        self.step = step
        self.error = error
        self.report = report
        super().__init__(f"Critical step {step!r} failed: {error}")


class SubsystemFailure(BootctlError):
    """An OPTIONAL init step failed. Recorded and logged, never fatal."""

    def __init__(self, step: str, message: str) -> None:
        self.step = step
        super().__init__(f"{step}: {message}")


class IdentityResolutionFailure(BootctlError):
    """Every identity fallback layer was exhausted.

    Raised by backends and fingerprint sources; the resolver converts it
    into an ``Unresolved`` state plus an alert.
    """


class HandlerFailure(BootctlError):
    """A subscribed alert handler raised. Caught at the router boundary."""

    def __init__(self, subscription_id: str, error: BaseException) -> None:
        self.subscription_id = subscription_id
        self.error = error
        super().__init__(f"Alert handler {subscription_id} failed: {error}")
