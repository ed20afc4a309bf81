"""BootstrapReport — the outcome of one bootstrap run.

Created fresh by every run and handed back to the caller. Never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from bootctl.domain.steps import StepStatus


@dataclass
class BootstrapReport:
    """Per-run record of which steps succeeded, failed, or never ran.

    ``succeeded``, ``skipped`` and ``not_run`` keep execution order.
    ``failed`` maps step name to the exception that step produced.
    """

    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, BaseException] = field(default_factory=dict)
    aborted: bool = False
    skipped: list[str] = field(default_factory=list)
    not_run: list[str] = field(default_factory=list)
    durations_ms: dict[str, float] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True when nothing failed and the run was not aborted."""
        return not self.aborted and not self.failed

    @property
    def degraded(self) -> list[str]:
        """Names of failed steps, in failure order."""
        return list(self.failed)

    def status_of(self, name: str) -> StepStatus | None:
        """Return the recorded status of step *name*, or None if unknown."""
        if name in self.succeeded:
            return StepStatus.SUCCEEDED
        if name in self.failed:
            return StepStatus.FAILED
        if name in self.skipped:
            return StepStatus.SKIPPED
        if name in self.not_run:
            return StepStatus.NOT_RUN
        return None

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view (errors rendered as strings)."""
        return {
            "succeeded": list(self.succeeded),
            "failed": {
                name: f"{type(exc).__name__}: {exc}" for name, exc in self.failed.items()
            },
            "aborted": self.aborted,
            "skipped": list(self.skipped),
            "not_run": list(self.not_run),
            "durations_ms": {k: round(v, 2) for k, v in self.durations_ms.items()},
        }
